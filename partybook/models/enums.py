from enum import StrEnum


class PackageTier(StrEnum):
    ABRA = "Abra"
    KADABRA = "Kadabra"
    ABRAKADABRA = "Abrakadabra"

    @property
    def rank(self) -> int:
        """Ordinal position of the tier (1 = basic, 3 = premium)."""
        return list(PackageTier).index(self) + 1


class SourceKind(StrEnum):
    DATABASE = "database"
    SHEETS = "sheets"
    LOCAL = "local"


class RepositoryErrorKind(StrEnum):
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"
    SCHEMA_MISMATCH = "schema_mismatch"
    PERMISSION_DENIED = "permission_denied"


class IssueCode(StrEnum):
    INVALID_DATE = "invalid_date"
    MISSING_FIELD = "missing_field"
    DEPOSIT_EXCEEDS_TOTAL = "deposit_exceeds_total"
    PRICE_MISMATCH = "price_mismatch"
    UNKNOWN_PACKAGE_TIER = "unknown_package_tier"
    NEGATIVE_AMOUNT = "negative_amount"


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


class ConflictKind(StrEnum):
    DOUBLE_BOOKING = "double_booking"
    DIVERGENT_DUPLICATE = "divergent_duplicate"
