"""Root of the loadlight error hierarchy.

Every failure the control loop can meet is a LoadLightError: losing the
OpenRGB link, a controller whose zones don't fit the rule table, a GPU
that NVML cannot see, or a broken config/rules file. The loop decides
what to do from the error type; the CLI shows ``user_message`` and
``recovery_hint``, and the log gets ``technical_message``.

Connection, topology and metrics errors are ``recoverable``: they clear up
once OpenRGB restarts, the GPU driver comes back or the rules are fixed,
and the loop keeps running in the meantime.
"""

from typing import Optional


class LoadLightError(Exception):
    """
    Base exception for all loadlight errors.

    Attributes:
        user_message: What went wrong, phrased for the terminal
        technical_message: Address, controller, zone or library message for the log
        recoverable: True if the loop can retry (reconnect, skip a controller)
        recovery_hint: What the user can change to fix it, if anything
    """

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
    ):
        """
        Args:
            user_message: Message to show to users
            technical_message: Detailed message for logs (defaults to user_message)
            recoverable: True if the control loop can carry on after it
            recovery_hint: e.g. "start the OpenRGB SDK server"
        """
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint

    def __str__(self) -> str:
        return self.user_message
