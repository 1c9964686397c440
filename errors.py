from typing import Optional


class ApiError(RuntimeError):
    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint

    def __str__(self):
        if self.endpoint:
            return f"{self.endpoint}: {self.message}"
        return self.message


class SyncError(RuntimeError):
    """A required fetch failed while syncing a handle."""

    def __init__(self, handle: str, message: str):
        super().__init__(f"Failed to sync {handle}: {message}")
        self.handle = handle
        self.message = message
