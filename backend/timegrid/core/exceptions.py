class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when a timetable edit is rejected or the engine reaches an invalid state."""
    def __init__(self, message: str, details: dict | None = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class MoveRejectedError(SchedulerError):
    """Raised when a manual move would introduce conflicts."""
    def __init__(self, entry_id: str, conflicts: list[dict]):
        super().__init__(
            f"Move of entry {entry_id} rejected: {len(conflicts)} conflict(s)",
            details={"entryId": entry_id, "conflicts": conflicts},
            status_code=409,
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
