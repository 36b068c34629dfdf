"""Plain-text rendering of reservations and diagnostics for tool replies."""

from partybook.models.enums import ConflictKind
from partybook.models.reconciliation import Conflict, ReconciliationResult
from partybook.models.reservation import ReservationRecord
from partybook.models.validation import ValidationIssue


def money(amount: int) -> str:
    return f"${amount:,}"


def format_reservation(record: ReservationRecord) -> str:
    status = "PAID" if record.is_paid else f"{money(record.remaining_amount)} due"
    line = (
        f"{record.date} {record.time} - {record.child_name}'s party "
        f"({record.package_tier}) for {record.customer_name}, {record.customer_phone}. "
        f"Total {money(record.total_amount)}, deposit {money(record.deposit_amount)}, "
        f"{status}. [id: {record.id}]"
    )
    if record.notes:
        line += f"\n    Notes: {record.notes}"
    return line


def format_issue(issue: ValidationIssue) -> str:
    return f"[{issue.severity}] {issue.code}: {issue.message}"


def format_conflict(conflict: Conflict) -> str:
    if conflict.kind == ConflictKind.DOUBLE_BOOKING:
        names = ", ".join(conflict.fields.get("customer_name", {}).values())
        return (
            f"DOUBLE BOOKING on {conflict.date}: {len(conflict.record_ids)} parties "
            f"({names}) [ids: {', '.join(conflict.record_ids)}]"
        )
    parts = [
        f"{field}: " + ", ".join(f"{src}={val}" for src, val in values.items())
        for field, values in conflict.fields.items()
    ]
    return f"Copies disagree on {conflict.date} [{', '.join(conflict.record_ids)}]: " + "; ".join(parts)


def format_report(result: ReconciliationResult) -> str:
    lines = [f"{len(result.reservations)} reservations after reconciliation."]
    for missing in result.unavailable:
        lines.append(f"Source '{missing.source}' unavailable ({missing.kind}): {missing.message}")
    for source, count in result.skipped.items():
        lines.append(f"Source '{source}' has {count} unreadable row(s); not written back.")
    for conflict in result.conflicts:
        lines.append(format_conflict(conflict))
    if result.write_back:
        lines.append(f"{len(result.write_back)} reservations missing from some sources:")
        for item in result.write_back:
            lines.append(f"  {item.record.date} [{item.record.id}] → {', '.join(item.missing_from)}")
    return "\n".join(lines)
