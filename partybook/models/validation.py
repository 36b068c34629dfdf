from pydantic import BaseModel

from partybook.models.enums import IssueCode, Severity
from partybook.models.reservation import ReservationRecord


class ValidationIssue(BaseModel):
    code: IssueCode
    message: str
    field: str | None = None
    severity: Severity = Severity.ERROR
    details: dict = {}


class ValidationOutcome(BaseModel):
    """Result of validating a draft: a record on success, plus every issue found."""

    record: ReservationRecord | None = None
    issues: list[ValidationIssue] = []

    @property
    def ok(self) -> bool:
        return self.record is not None

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def codes(self) -> list[IssueCode]:
        return [i.code for i in self.issues]
