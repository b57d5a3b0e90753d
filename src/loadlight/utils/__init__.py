"""Generic utility modules for loadlight."""

from .persistence import PydanticPersistence

__all__ = ["PydanticPersistence"]
