"""Time zone helpers for the request location hint.

The Copilot API expects an IANA identifier. ``tzlocal`` already returns IANA
names on most systems; legacy Windows zone names are mapped through a static
table and anything unknown is passed through unchanged.
"""

from __future__ import annotations

from typing import Mapping, Optional

import tzlocal

from copilot_cli.infrastructure.logging.logger import logger


WINDOWS_TO_IANA: Mapping[str, str] = {
    "Pacific Standard Time": "America/Los_Angeles",
    "Mountain Standard Time": "America/Denver",
    "Central Standard Time": "America/Chicago",
    "Eastern Standard Time": "America/New_York",
    "GMT Standard Time": "Europe/London",
    "UTC": "UTC",
    "W. Europe Standard Time": "Europe/Paris",
    "Central Europe Standard Time": "Europe/Warsaw",
    "Romance Standard Time": "Europe/Paris",
    "Central European Standard Time": "Europe/Belgrade",
    "AUS Eastern Standard Time": "Australia/Sydney",
    "E. Australia Standard Time": "Australia/Brisbane",
    "AUS Central Standard Time": "Australia/Darwin",
    "China Standard Time": "Asia/Shanghai",
    "India Standard Time": "Asia/Kolkata",
    "Tokyo Standard Time": "Asia/Tokyo",
}


def is_iana_name(zone_id: str) -> bool:
    """Loose check: IANA names are ``Area/Location`` or ``UTC``."""

    return zone_id == "UTC" or ("/" in zone_id and " " not in zone_id)


def to_iana_time_zone(zone_id: str) -> str:
    if is_iana_name(zone_id):
        return zone_id
    return WINDOWS_TO_IANA.get(zone_id, zone_id)


def local_zone_name() -> str:
    """Return the local system zone name, ``UTC`` when it cannot be determined."""

    try:
        name = tzlocal.get_localzone_name()
    except (LookupError, ValueError) as exc:
        logger.warning(f"Unable to detect local time zone: {exc}")
        return "UTC"
    return name or "UTC"


def resolve_time_zone(override: Optional[str] = None) -> str:
    """Pick the zone for the location hint: explicit override first, then the local zone."""

    return to_iana_time_zone(override or local_zone_name())
