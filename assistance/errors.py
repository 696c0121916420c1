"""Typed failures surfaced by repositories and services.

Every multi-step mutation runs in one transaction; whichever of these is
raised first aborts it and reaches the caller unchanged.
"""


class AssistanceError(Exception):
    """Base exception for assistance domain failures."""

    pass


class NotFoundError(AssistanceError):
    """A referenced applicant, scheme or application id does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(AssistanceError):
    """A unique key is already taken (scheme name, applicant, application...)."""

    pass


class InvalidInputError(AssistanceError):
    """A fact failed validation before reaching the store."""

    pass


class StorageFailureError(AssistanceError):
    """The store could not begin, execute or commit. Retryable by the caller."""

    pass
