"""
Error taxonomy for the checklist tracker
"""


class ChecklistTrackerError(Exception):
    """Base class for all checklist tracker errors"""


class GatewayError(ChecklistTrackerError):
    """A read or write against the persistence gateway failed (network or backend)"""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ChecklistNotFoundError(ChecklistTrackerError):
    """Checklist was deleted or the id is bad"""

    def __init__(self, checklist_id):
        self.checklist_id = checklist_id
        super().__init__("Checklist not found in database.")


class ChecklistImportError(ChecklistTrackerError):
    """An uploaded checklist document is malformed"""
