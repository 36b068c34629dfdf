from partybook.repositories.base import RepositoryAdapter
from partybook.repositories.resilience import (
    CircuitOpenError,
    NotFoundError,
    PermissionDeniedError,
    RepositoryError,
    SchemaMismatchError,
    UnavailableError,
)

__all__ = [
    "CircuitOpenError",
    "NotFoundError",
    "PermissionDeniedError",
    "RepositoryAdapter",
    "RepositoryError",
    "SchemaMismatchError",
    "UnavailableError",
]
