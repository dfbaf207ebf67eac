class PageDriverError(Exception):
    """Base exception for page driver errors."""
    pass


class DispatchError(PageDriverError):
    """Raised when a DOM mutation or synthetic event could not be applied in the page."""
    def __init__(self, message: str, operation: str, original_exception=None):
        super().__init__(message)
        self.operation = operation
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        return f"{base_msg} (Operation: {self.operation}) Original: {self.original_exception}"
