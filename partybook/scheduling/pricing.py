"""Package catalog and weekday/weekend pricing.

Saturday and Sunday share the weekend price. The catalog carries exactly
two price buckets per package; there is no separate Sunday rate.
"""

from datetime import date

from partybook.models.enums import PackageTier
from partybook.models.package import PackageDefinition
from partybook.scheduling.dates import is_weekend, parse_iso_date


class UnknownPackageTier(ValueError):
    """Raised when a tier name does not resolve to a catalog package."""

    def __init__(self, tier: object) -> None:
        super().__init__(f"Unknown package tier: '{tier}'")
        self.tier = tier


CATALOG: dict[PackageTier, PackageDefinition] = {
    PackageTier.ABRA: PackageDefinition(
        tier=PackageTier.ABRA,
        description="Basic package for small celebrations",
        weekday_price=2500,
        weekend_price=3000,
        features=[
            "Basic decoration",
            "Small candy table",
            "2 hours of entertainment",
            "Up to 15 children",
        ],
    ),
    PackageTier.KADABRA: PackageDefinition(
        tier=PackageTier.KADABRA,
        description="Intermediate package with games and activities",
        weekday_price=3500,
        weekend_price=4200,
        features=[
            "Themed decoration",
            "Medium candy table",
            "3 hours of entertainment",
            "Games and activities",
            "Up to 25 children",
        ],
    ),
    PackageTier.ABRAKADABRA: PackageDefinition(
        tier=PackageTier.ABRAKADABRA,
        description="Premium package with the full magic show",
        weekday_price=5000,
        weekend_price=6000,
        features=[
            "Premium decoration",
            "Large candy table",
            "4 hours of entertainment",
            "Magic show",
            "Piñata included",
            "Up to 40 children",
        ],
    ),
}

# Alternate spellings → tier
_TIER_ALIASES: dict[str, PackageTier] = {
    "basic": PackageTier.ABRA,
    "tier1": PackageTier.ABRA,
    "mid": PackageTier.KADABRA,
    "tier2": PackageTier.KADABRA,
    "premium": PackageTier.ABRAKADABRA,
    "tier3": PackageTier.ABRAKADABRA,
}


def parse_tier(value: str | PackageTier) -> PackageTier:
    """Resolve a display name or alias (case-insensitive) to a tier.

    Raises:
        UnknownPackageTier: If nothing matches.
    """
    if isinstance(value, PackageTier):
        return value
    cleaned = str(value).strip().lower()
    for tier in PackageTier:
        if tier.value.lower() == cleaned:
            return tier
    if cleaned in _TIER_ALIASES:
        return _TIER_ALIASES[cleaned]
    raise UnknownPackageTier(value)


def price(
    day: date | str,
    tier: str | PackageTier,
    catalog: dict[PackageTier, PackageDefinition] = CATALOG,
) -> int:
    """Return the package price for a calendar date.

    Args:
        day: Event date (``date`` or ``YYYY-MM-DD``).
        tier: Package tier or any name accepted by :func:`parse_tier`.
        catalog: Package definitions to price from.

    Raises:
        UnknownPackageTier: If the tier is not in ``catalog``.
        ValueError: If ``day`` is not a valid ISO date.
    """
    resolved = parse_tier(tier)
    definition = catalog.get(resolved)
    if definition is None:
        raise UnknownPackageTier(tier)
    event_day = parse_iso_date(day)
    if is_weekend(event_day):
        return definition.weekend_price
    return definition.weekday_price
