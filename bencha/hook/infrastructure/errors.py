"""Error types raised by post-evaluation hook infrastructure."""

from bencha.core.errors import BenchaError


class HookTypeNotSupportedError(BenchaError):
    """Raised when no constructor is registered for a hook type."""

    def __init__(self, hook_type: str) -> None:
        self.hook_type = hook_type
        super().__init__(f"Failed to create hook: unsupported hook type '{hook_type}'")
