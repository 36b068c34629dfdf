from pydantic import BaseModel

from partybook.models.enums import PackageTier


class PackageDefinition(BaseModel):
    tier: PackageTier
    description: str
    weekday_price: int
    weekend_price: int
    features: list[str] = []


class CalendarDayAvailability(BaseModel):
    date: str
    is_current_month: bool
    is_past: bool
    is_today: bool
    reservation_count: int
    is_available: bool

    @property
    def is_overbooked(self) -> bool:
        """More than one event on a day breaks the one-party-per-day rule."""
        return self.reservation_count > 1
