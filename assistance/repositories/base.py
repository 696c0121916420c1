"""Shared repository plumbing for the assistance persistence layer.

Repositories call add()/flush()/refresh() only: never commit().
The session dependency handles commit/rollback (Unit-of-Work).
Store exceptions are translated here into the typed failures in
``assistance.errors`` so services never see driver errors.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from assistance.errors import ConflictError, InvalidInputError, StorageFailureError

# PostgreSQL unique_violation
_PG_UNIQUE_VIOLATION = "23505"


def is_duplicate_key(exc: IntegrityError) -> bool:
    """Tell a duplicate-key violation apart from FK / CHECK violations."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _PG_UNIQUE_VIOLATION
    message = str(orig if orig is not None else exc)
    return "UNIQUE constraint failed" in message or "Duplicate entry" in message


@contextmanager
def translate_errors(entity: str) -> Iterator[None]:
    """Map store failures raised inside the block onto domain errors."""
    try:
        yield
    except IntegrityError as exc:
        if is_duplicate_key(exc):
            raise ConflictError(f"An entry for the {entity} already exists.") from exc
        raise InvalidInputError(f"The {entity} violates a store constraint.") from exc
    except SQLAlchemyError as exc:
        raise StorageFailureError(f"Failed to store {entity}.") from exc
