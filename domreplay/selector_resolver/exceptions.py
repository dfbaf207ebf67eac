from typing import Optional, Sequence


class SelectorResolverError(Exception):
    """Base exception for selector generation and resolution errors."""
    pass


class InvalidSelectorError(SelectorResolverError):
    """Raised by a document adapter when a candidate selector has invalid syntax.

    The resolver treats this as non-fatal: the candidate is skipped and the
    remaining candidates are still tried.
    """
    def __init__(self, selector: str, reason: Optional[str] = None):
        super().__init__(f"Invalid selector '{selector}'")
        self.selector = selector
        self.reason = reason

    def __str__(self):
        base_msg = super().__str__()
        if self.reason:
            return f"{base_msg}: {self.reason}"
        return base_msg


class ElementNotFoundError(SelectorResolverError):
    """Raised when no candidate of a descriptor matched before the timeout."""
    def __init__(self, candidates: Sequence[str], timeout_ms: int):
        super().__init__(f"Element not found with selectors {list(candidates)} within {timeout_ms}ms")
        self.candidates = list(candidates)
        self.timeout_ms = timeout_ms


class VisibilityTimeoutError(SelectorResolverError):
    """Raised when a located element never became visible before the timeout."""
    def __init__(self, timeout_ms: int):
        super().__init__(f"Element did not become visible within {timeout_ms}ms")
        self.timeout_ms = timeout_ms
