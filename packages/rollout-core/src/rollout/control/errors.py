"""Error taxonomy for the rollout control plane."""

from __future__ import annotations


class RolloutError(Exception):
    """Base class for control-plane failures."""


class NotFoundError(RolloutError):
    """Raised when a flag or brand id is unknown."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id


class InvalidStateError(RolloutError):
    """Raised when an operation is not allowed in the current state."""


class ConfirmationRequiredError(InvalidStateError):
    """Raised when a flag needs an explicit confirmation that was not given."""

    def __init__(self, flag_id: str) -> None:
        super().__init__(f"Flag '{flag_id}' requires confirmation")
        self.flag_id = flag_id
