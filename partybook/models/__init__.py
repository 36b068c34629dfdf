from partybook.models.enums import (
    ConflictKind,
    IssueCode,
    PackageTier,
    RepositoryErrorKind,
    Severity,
    SourceKind,
)
from partybook.models.package import CalendarDayAvailability, PackageDefinition
from partybook.models.reconciliation import (
    Conflict,
    ReconciliationResult,
    SourceResult,
    SourceUnavailable,
    WriteBackItem,
)
from partybook.models.reservation import (
    NaturalKey,
    ReservationDraft,
    ReservationRecord,
    normalise,
)
from partybook.models.validation import ValidationIssue, ValidationOutcome

__all__ = [
    "CalendarDayAvailability",
    "Conflict",
    "ConflictKind",
    "IssueCode",
    "NaturalKey",
    "PackageDefinition",
    "PackageTier",
    "ReconciliationResult",
    "RepositoryErrorKind",
    "ReservationDraft",
    "ReservationRecord",
    "Severity",
    "SourceKind",
    "SourceResult",
    "SourceUnavailable",
    "ValidationIssue",
    "ValidationOutcome",
    "WriteBackItem",
    "normalise",
]
