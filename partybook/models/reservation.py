from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from partybook.models.enums import PackageTier


def normalise(text: str) -> str:
    """Trim and lower-case an identity field for natural-key comparison."""
    return text.strip().lower()


class NaturalKey(BaseModel):
    """``(date, customer name, customer phone)`` with normalised text fields."""

    model_config = ConfigDict(frozen=True)

    date: str
    customer_name: str
    customer_phone: str

    @classmethod
    def of(cls, date: str, customer_name: str, customer_phone: str) -> "NaturalKey":
        return cls(
            date=date.strip(),
            customer_name=normalise(customer_name),
            customer_phone=normalise(customer_phone),
        )


class ReservationRecord(BaseModel):
    """A booked party slot.

    ``remaining_amount`` and ``is_paid`` are derived from the two stored
    amounts; a record whose derived fields disagree with its amounts cannot
    be constructed. Use :meth:`from_amounts` to have them computed.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    date: str
    time: str
    customer_name: str
    customer_phone: str
    child_name: str
    package_tier: PackageTier
    total_amount: int = Field(ge=0)
    deposit_amount: int = Field(ge=0)
    remaining_amount: int
    is_paid: bool
    notes: str | None = None
    created_at: datetime | None = None

    @model_validator(mode="after")
    def _check_payment_state(self) -> "ReservationRecord":
        expected = self.total_amount - self.deposit_amount
        if expected < 0:
            raise ValueError(
                f"deposit {self.deposit_amount} exceeds total {self.total_amount}"
            )
        if self.remaining_amount != expected:
            raise ValueError(
                f"remaining_amount {self.remaining_amount} != "
                f"total_amount - deposit_amount ({expected})"
            )
        if self.is_paid != (self.remaining_amount <= 0):
            raise ValueError(
                f"is_paid={self.is_paid} inconsistent with remaining_amount "
                f"{self.remaining_amount}"
            )
        return self

    @classmethod
    def from_amounts(
        cls, *, total_amount: int, deposit_amount: int, **fields: object
    ) -> "ReservationRecord":
        """Build a record, deriving ``remaining_amount`` and ``is_paid``."""
        fields.pop("remaining_amount", None)
        fields.pop("is_paid", None)
        remaining = total_amount - deposit_amount
        return cls(
            total_amount=total_amount,
            deposit_amount=deposit_amount,
            remaining_amount=remaining,
            is_paid=remaining <= 0,
            **fields,
        )

    @property
    def natural_key(self) -> NaturalKey:
        return NaturalKey.of(self.date, self.customer_name, self.customer_phone)

    def mark_paid(self) -> "ReservationRecord":
        """Return a copy with the full total collected."""
        return self.model_copy(
            update={
                "deposit_amount": self.total_amount,
                "remaining_amount": 0,
                "is_paid": True,
            }
        )


class ReservationDraft(BaseModel):
    """Unvalidated booking input, as typed by a user or a caller."""

    id: str | None = None
    date: str = ""
    time: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    child_name: str = ""
    package_tier: str = ""
    total_amount: int = 0
    deposit_amount: int = 0
    price_override: bool = False
    notes: str | None = None
    created_at: datetime | None = None
