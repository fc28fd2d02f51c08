"""
Platform-wide exception hierarchy.

Services raise these types; ``create_app`` registers one handler per type
so every blueprint gets the same HTTP status codes and error body shape.

Usage:
    from runboard.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Submission", resource_id=42)
    raise ValidationError(
        "Validation failed",
        details=[{"field": "sections", "message": "At least one section is required"}],
    )
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the actor's scope.

    Security note: Used for BOTH genuinely missing records AND records owned
    by someone else. A 403 would confirm the record exists; a 404 does not.

    Args:
        resource: Human-readable entity name (e.g. "Submission", "User").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is malformed or violates a submission rule.

    Maps to HTTP 400. The core never returns partial results alongside
    a ValidationError.

    Args:
        message: Human-readable summary.
        details: Field-level breakdown, a list of ``{"field", "message"}`` dicts.
    """

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        self.details = details or []
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        """Shortcut for the common single-field failure."""
        return cls(message, details=[{"field": field, "message": message}])


class AuthorizationError(Exception):
    """Raised when the actor's role does not permit the operation.

    Distinct from NotFoundError: a role mismatch is a caller bug (e.g. a
    coordinator trying to create a submission), not a data-state issue.
    Maps to HTTP 403.
    """

    def __init__(self, required_roles: tuple[str, ...], actual_role: str | None) -> None:
        self.required_roles = tuple(required_roles)
        self.actual_role = actual_role
        super().__init__(
            f"Access denied. Required role: {' or '.join(self.required_roles)}. "
            f"Current role: {actual_role}"
        )


class RetrievalError(Exception):
    """Raised when the persistence layer fails. Not retried. Maps to HTTP 500.

    Args:
        operation: Short label of what was being done (e.g. "list runs").
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Database error while trying to {operation}")


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value (in logs only).
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
