"""Error taxonomy shared by the store, history and deck layers."""


class PhrasebookError(Exception):
    """Base class for all phrasebook errors."""


class InvalidInput(PhrasebookError, ValueError):
    """Malformed or out-of-range request. Raised before any store access."""


class NotFound(PhrasebookError, KeyError):
    """The operation targets a key with no existing record."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Translation not found: {self.key}"


class StoreUnavailable(PhrasebookError):
    """A key-value backend call failed."""

    def __init__(self, operation: str, cause: Exception = None):
        msg = f"Store call failed: {operation}"
        if cause is not None:
            msg += f" ({cause})"
        super().__init__(msg)
        self.operation = operation
        self.cause = cause
