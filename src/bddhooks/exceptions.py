class BddHooksError(Exception):
    """Base exception for all hook orchestration errors."""


class DeclarationError(BddHooksError, ValueError):
    """Raised at registration time for a malformed tag expression or hook declaration."""


class HookTimeoutError(BddHooksError, TimeoutError):
    """Raised when a hook did not settle within its timeout."""

    def __init__(self, message: str, timeout=None, hook=None):
        super().__init__(message)
        self.timeout = timeout
        self.hook = hook


class ResolutionError(BddHooksError, LookupError):
    """Raised when the fixture a hook or decorator step needs cannot be resolved."""
