"""Validate booking drafts into reservation records."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from partybook.models.enums import IssueCode, PackageTier, Severity
from partybook.models.package import PackageDefinition
from partybook.models.reservation import ReservationDraft, ReservationRecord
from partybook.models.validation import ValidationIssue, ValidationOutcome
from partybook.scheduling.dates import parse_iso_date
from partybook.scheduling.pricing import CATALOG, UnknownPackageTier, parse_tier, price

logger = logging.getLogger(__name__)

_REQUIRED_TEXT_FIELDS = ("customer_name", "customer_phone", "child_name")


def generate_reservation_id() -> str:
    return f"event_{uuid4().hex}"


class ReservationValidator:
    """Check a draft and build a :class:`ReservationRecord` from it.

    Every check runs; issues accumulate instead of stopping at the first.
    A price that differs from the catalog price is a warning unless
    ``strict_pricing`` is set, in which case it rejects the draft. Drafts
    flagged ``price_override`` skip the price comparison entirely.

    Args:
        catalog: Package definitions used for the expected-price check.
        strict_pricing: Treat price mismatches as errors.
        id_factory: Produces ids for drafts that carry none.
        clock: Returns the creation timestamp for new records.
    """

    def __init__(
        self,
        catalog: dict[PackageTier, PackageDefinition] = CATALOG,
        *,
        strict_pricing: bool = False,
        id_factory: Callable[[], str] = generate_reservation_id,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self.catalog = catalog
        self.strict_pricing = strict_pricing
        self.id_factory = id_factory
        self.clock = clock

    def validate(self, draft: ReservationDraft) -> ValidationOutcome:
        issues: list[ValidationIssue] = []

        event_date = None
        try:
            event_date = parse_iso_date(draft.date)
        except ValueError:
            issues.append(ValidationIssue(
                code=IssueCode.INVALID_DATE,
                field="date",
                message=f"Date '{draft.date}' is not a valid YYYY-MM-DD calendar date",
                details={"value": draft.date},
            ))

        for name in _REQUIRED_TEXT_FIELDS:
            if not getattr(draft, name).strip():
                issues.append(ValidationIssue(
                    code=IssueCode.MISSING_FIELD,
                    field=name,
                    message=f"{name} is required",
                ))

        tier = None
        try:
            tier = parse_tier(draft.package_tier)
            if tier not in self.catalog:
                raise UnknownPackageTier(draft.package_tier)
        except UnknownPackageTier as exc:
            tier = None
            issues.append(ValidationIssue(
                code=IssueCode.UNKNOWN_PACKAGE_TIER,
                field="package_tier",
                message=str(exc),
                details={"value": draft.package_tier},
            ))

        negative = [
            name for name in ("total_amount", "deposit_amount") if getattr(draft, name) < 0
        ]
        for name in negative:
            issues.append(ValidationIssue(
                code=IssueCode.NEGATIVE_AMOUNT,
                field=name,
                message=f"{name} cannot be negative",
                details={"value": getattr(draft, name)},
            ))

        if not negative and draft.deposit_amount > draft.total_amount:
            issues.append(ValidationIssue(
                code=IssueCode.DEPOSIT_EXCEEDS_TOTAL,
                field="deposit_amount",
                message=(
                    f"Deposit {draft.deposit_amount} exceeds total {draft.total_amount}"
                ),
                details={
                    "deposit_amount": draft.deposit_amount,
                    "total_amount": draft.total_amount,
                },
            ))

        if (
            event_date is not None
            and tier is not None
            and not negative
            and not draft.price_override
        ):
            expected = price(event_date, tier, self.catalog)
            if draft.total_amount != expected:
                issues.append(ValidationIssue(
                    code=IssueCode.PRICE_MISMATCH,
                    field="total_amount",
                    message=(
                        f"Total {draft.total_amount} differs from the {tier} price "
                        f"{expected} for {event_date.isoformat()}"
                    ),
                    severity=Severity.ERROR if self.strict_pricing else Severity.WARNING,
                    details={"expected": expected, "actual": draft.total_amount},
                ))

        if any(i.severity == Severity.ERROR for i in issues):
            logger.debug("Rejected draft for %s: %s", draft.date, [i.code for i in issues])
            return ValidationOutcome(issues=issues)

        assert event_date is not None and tier is not None
        record = ReservationRecord.from_amounts(
            total_amount=draft.total_amount,
            deposit_amount=draft.deposit_amount,
            id=draft.id or self.id_factory(),
            date=event_date.isoformat(),
            time=draft.time.strip(),
            customer_name=draft.customer_name.strip(),
            customer_phone=draft.customer_phone.strip(),
            child_name=draft.child_name.strip(),
            package_tier=tier,
            notes=draft.notes or None,
            created_at=draft.created_at or self.clock(),
        )
        return ValidationOutcome(record=record, issues=issues)
