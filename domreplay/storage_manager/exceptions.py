class StorageManagerError(Exception):
    """Base exception for recording and pending-playback storage errors."""
    pass

class InvalidDocumentKeyError(StorageManagerError):
    """Raised when a document key is empty or contains '.', '..' or empty path segments."""
    def __init__(self, key: str):
        super().__init__(f"Invalid document key: {key!r}")
        self.key = key

class S3ConfigError(StorageManagerError):
    """Raised when the bucket or AWS credentials for document storage are unusable."""
    pass

class LocalStorageError(StorageManagerError):
    """Raised when a document file under the local base path cannot be written, read, claimed or removed."""
    pass

class S3OperationError(StorageManagerError):
    """Raised when a document upload, download or delete against S3 fails."""
    def __init__(self, message, operation: str, original_exception=None):
        super().__init__(message)
        self.operation = operation
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        return f"{base_msg} (Operation: {self.operation}) Original: {self.original_exception}"

class ImportFormatError(StorageManagerError):
    """Raised when an import payload is malformed. Nothing is persisted when this is raised."""
    pass
