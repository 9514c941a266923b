"""Error types raised by the run state machine."""

from bencha.core.errors import BenchaError


class InvalidRunTransitionError(BenchaError):
    """Raised when a run is asked to move to a state not reachable from its current one."""

    def __init__(self, run_id: str, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Failed to advance run '{run_id}': illegal transition"
            f" {from_state} -> {to_state}"
        )
