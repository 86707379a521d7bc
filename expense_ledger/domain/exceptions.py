"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is out of range or malformed; nothing was written"""

    pass


class ClosedPeriodError(ValidationError):
    """Entry belongs to a month that can no longer be changed"""

    pass


class ResolutionLimitError(ValidationError):
    """User already has the maximum number of resolutions for the month"""

    pass


class NotFoundError(DomainException):
    """Entity does not exist or belongs to another user"""

    pass


class PersistenceError(DomainException):
    """Charge transaction failed and was rolled back"""

    pass


class IdempotencyConflict(DomainException):
    """A ledger entry already exists for this definition and due date"""

    def __init__(self, definition_id, charged_at):
        super().__init__(f"Entry for definition {definition_id} at {charged_at.isoformat()} already exists")
        self.definition_id = definition_id
        self.charged_at = charged_at
