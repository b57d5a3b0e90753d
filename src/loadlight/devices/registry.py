"""
Lighting rule registry.

The RuleRegistry knows which controllers get special treatment. It reads
rules.json and answers "what rule applies to the controller OpenRGB calls
X?"::

    OpenRGB reports controller "X570 AORUS ELITE"
                         ↓
    Registry checks rules.json: exact name match?
                         ↓ YES
    DeviceRule(zones=[D_LED1 Bottom, D_LED2 Top, Motherboard])
                         ↓
    TopologyDispatcher turns the rule into LED colors

Controllers with no matching rule use the table's fallback span.

**Declarative Configuration**: Controller quirks live in JSON, not in
if/else chains. Point ``rules_file`` in the config at your own copy to
describe your hardware; ``loadlight devices`` lists the names to use.

**Validation**: Pydantic models ensure the rule table is valid before the
loop starts.
"""

import logging
from pathlib import Path

from loadlight.utils.persistence import PydanticPersistence

from .schema import DeviceRule, LedSpan, RuleTableSchema

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "rules.json"


class RuleRegistry:
    """
    Registry of per-controller lighting rules.

    Loads rules from JSON using Pydantic validation and looks them up by
    exact controller name.
    """

    def __init__(self, rules_path: Path | None = None, schema: RuleTableSchema | None = None):
        """
        Initialize rule registry.

        Args:
            rules_path: Path to a rules JSON file.
                        If None, uses the built-in rules.
            schema: Already-validated rule table; skips loading from disk.

        Raises:
            FileNotFoundError: If rules_path doesn't exist
            ConfigFileInvalidError: If the file isn't valid JSON
            ConfigValidationError: If the rules fail validation
        """
        if rules_path is None:
            rules_path = DEFAULT_RULES_PATH

        self.rules_path = rules_path
        self.schema: RuleTableSchema = schema if schema is not None else self._load_schema()
        self._by_name: dict[str, DeviceRule] = {rule.name: rule for rule in self.schema.rules}

    def _load_schema(self) -> RuleTableSchema:
        """Load and validate the rule table from JSON."""
        schema = PydanticPersistence.load_json(self.rules_path, RuleTableSchema)
        logger.info(f"Loaded {len(schema.rules)} lighting rules from {self.rules_path}")
        return schema

    @property
    def fallback(self) -> LedSpan:
        """Span applied to controllers without a rule."""
        return self.schema.fallback

    @property
    def controller_names(self) -> list[str]:
        return list(self._by_name)

    def find(self, controller_name: str) -> DeviceRule | None:
        """
        Look up the rule for a controller.

        Args:
            controller_name: Name exactly as reported by OpenRGB

        Returns:
            Matching DeviceRule or None if the fallback applies
        """
        rule = self._by_name.get(controller_name)
        if rule is None:
            logger.debug(f"No rule for controller '{controller_name}', using fallback")
        return rule
