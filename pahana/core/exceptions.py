class BillingError(Exception):
    """Base class for expected failures of billing operations."""


class ValidationError(BillingError):
    """Raised when input is non-numeric, negative or otherwise unusable."""


class ConflictError(BillingError):
    """Raised when a record is created with a key that already exists."""

    def __init__(self, entity, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' already exists")


class NotFoundError(BillingError):
    """Raised when a record looked up by key does not exist."""

    def __init__(self, entity, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' does not exist")


class StorageError(BillingError):
    """Raised when the backing file or database cannot be read or written."""


class MalformedRowError(StorageError):
    """Raised when a persisted row cannot be parsed back into a record."""

    def __init__(self, reason, source=None, line_no=None):
        self.reason = reason
        self.source = source
        self.line_no = line_no
        where = ""
        if source is not None:
            where = f"{source}:{line_no}: " if line_no is not None else f"{source}: "
        super().__init__(f"{where}{reason}")
