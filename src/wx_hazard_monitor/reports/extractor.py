"""Field extractor for raw METAR/TAF text.

Every function here is total over ``str | None``: absent text, unknown tokens
and unparsable numbers produce ``None`` or empty collections, never an
exception. Extraction works on whitespace-delimited groups; a trailing ``=``
(bulletin terminator) is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .hazards import classify_hazards
from .models import ExtractedFields

CAVOK_VISIBILITY_M = 10000
# "9999" is the coded form of "10 km or more"; it is folded into the same
# value CAVOK yields so both report types compare on one scale.
UNLIMITED_VISIBILITY_CODE = 9999

_VISIBILITY_TOKEN_RE = re.compile(r"^\d{4}$")
_ISSUE_GROUP_RE = re.compile(r"^(\d{2})(\d{2})(\d{2})Z$")
_VALIDITY_RE = re.compile(r"^(\d{2})(\d{2})/(\d{2})(\d{2})$")
_TEMP_DEW_RE = re.compile(r"^(M?\d{2})/(M?\d{2})$")
_RVR_RE = re.compile(r"\bR\d{2}[LRC]?/[PM]?(\d{4})(?:V[PM]?(\d{4}))?[UDN]?\b")
_CEILING_RE = re.compile(r"\b(?:BKN|OVC|VV)(\d{3})(?:CB|TCU)?(?!\w)")
_WIND_RE = re.compile(r"\b(\d{3}|VRB)(\d{2,3})(?:G(\d{2,3}))?KT\b")
_GUST_RE = re.compile(r"\b(?:\d{3}|VRB)\d{2,3}G(\d{2,3})KT\b")
_QNH_RE = re.compile(r"\bQ(\d{4})\b")
_CHANGE_GROUP_RES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("TEMPO", re.compile(r"\bTEMPO\b")),
    ("BECMG", re.compile(r"\bBECMG\b")),
    ("PROB", re.compile(r"\bPROB\d{2}\b")),
    ("FM", re.compile(r"\bFM\d{6}\b")),
)


@dataclass(frozen=True)
class WindGroup:
    direction: str
    speed_kt: int
    gust_kt: int | None = None


@dataclass(frozen=True)
class ValidityPeriod:
    from_day: int
    from_hour: int
    to_day: int
    to_hour: int


def _tokens(raw: str | None) -> list[str]:
    if not raw:
        return []
    tokens = (token.rstrip("=") for token in raw.split())
    return [token for token in tokens if token]


def _normalize_visibility(value: int) -> int:
    return CAVOK_VISIBILITY_M if value == UNLIMITED_VISIBILITY_CODE else value


def parse_visibility_m(raw: str | None) -> int | None:
    """Return the prevailing visibility in meters, or None when absent.

    CAVOK wins; otherwise the first standalone four-digit group is used. A
    group touching a slash (RVR ``R27/0600``, validity ``0818/0918``) is part
    of a larger token and is never taken as visibility.
    """
    tokens = _tokens(raw)
    if "CAVOK" in tokens:
        return CAVOK_VISIBILITY_M
    for token in tokens:
        if _VISIBILITY_TOKEN_RE.match(token):
            return _normalize_visibility(int(token))
    return None


def extract_all_visibility_m(raw: str | None) -> list[int]:
    """Return every visibility value in the text, one per change group."""
    tokens = _tokens(raw)
    values: list[int] = []
    if "CAVOK" in tokens:
        values.append(CAVOK_VISIBILITY_M)
    for token in tokens:
        if _VISIBILITY_TOKEN_RE.match(token):
            values.append(_normalize_visibility(int(token)))
    return values


def extract_rvr_m(raw: str | None) -> list[int]:
    """Return every runway visual range value, both bounds of variable groups."""
    if not raw:
        return []
    values: list[int] = []
    for match in _RVR_RE.finditer(raw):
        values.append(int(match.group(1)))
        if match.group(2):
            values.append(int(match.group(2)))
    return values


def parse_ceiling_ft(raw: str | None) -> int | None:
    """Return the lowest broken/overcast/vertical-visibility base in feet."""
    if not raw:
        return None
    heights = [int(match.group(1)) * 100 for match in _CEILING_RE.finditer(raw)]
    return min(heights) if heights else None


def parse_max_gust_kt(raw: str | None) -> int | None:
    if not raw:
        return None
    gusts = [int(match.group(1)) for match in _GUST_RE.finditer(raw)]
    return max(gusts) if gusts else None


def parse_wind(raw: str | None) -> WindGroup | None:
    """Return the first (headline) wind group."""
    if not raw:
        return None
    match = _WIND_RE.search(raw)
    if match is None:
        return None
    gust = int(match.group(3)) if match.group(3) else None
    return WindGroup(direction=match.group(1), speed_kt=int(match.group(2)), gust_kt=gust)


def parse_issue_group(raw: str | None) -> str | None:
    """Return the ``DDHHMMZ`` issue-time group, or None if missing or invalid."""
    for token in _tokens(raw):
        match = _ISSUE_GROUP_RE.match(token)
        if match is None:
            continue
        day, hour, minute = (int(part) for part in match.groups())
        if 1 <= day <= 31 and hour <= 23 and minute <= 59:
            return token
        return None
    return None


def parse_validity(raw: str | None) -> ValidityPeriod | None:
    """Return the TAF validity period (first ``DDHH/DDHH`` group)."""
    for token in _tokens(raw):
        match = _VALIDITY_RE.match(token)
        if match:
            from_day, from_hour, to_day, to_hour = (int(part) for part in match.groups())
            return ValidityPeriod(from_day, from_hour, to_day, to_hour)
    return None


def parse_temperature_dewpoint(raw: str | None) -> tuple[int, int] | None:
    """Return (temperature, dew point) in Celsius; an ``M`` prefix is negative."""
    for token in _tokens(raw):
        match = _TEMP_DEW_RE.match(token)
        if match:
            temp, dew = (int(part.replace("M", "-")) for part in match.groups())
            return temp, dew
    return None


def parse_qnh_hpa(raw: str | None) -> int | None:
    if not raw:
        return None
    match = _QNH_RE.search(raw)
    return int(match.group(1)) if match else None


def find_change_groups(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [label for label, pattern in _CHANGE_GROUP_RES if pattern.search(raw)]


def extract_fields(raw: str | None) -> ExtractedFields:
    """Extract every scored quantity from one report."""
    return ExtractedFields(
        visibility_m=parse_visibility_m(raw),
        visibility_values_m=tuple(extract_all_visibility_m(raw)),
        rvr_values_m=tuple(extract_rvr_m(raw)),
        ceiling_ft=parse_ceiling_ft(raw),
        max_gust_kt=parse_max_gust_kt(raw),
        issue_group=parse_issue_group(raw),
        hazards=classify_hazards(raw),
    )
