"""Error taxonomy for structural schema operations.

Every failure is scoped to a single operation. Validation and dependency
errors are raised before any state changes; persistence errors are raised
after the store has reloaded authoritative state.
"""


class SchemaError(Exception):
    """Base class for all schema engine errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchemaError):
    """Bad or missing required input."""

    status_code = 400


class UnknownKindError(ValidationError):
    """Unrecognised field kind."""

    def __init__(self, kind):
        super().__init__(f"Unknown field type '{kind}'")
        self.kind = kind


class DependencyError(SchemaError):
    """A deletion or type change is blocked by a referencing field."""

    status_code = 409

    def __init__(self, message: str, dependents: list[str] | None = None):
        super().__init__(message)
        self.dependents = dependents or []


class NotFoundError(SchemaError):
    """A referenced field, section, table or item does not exist."""

    status_code = 404


class PersistenceError(SchemaError):
    """A persistence boundary call failed."""

    status_code = 503
