"""Additive severity scoring for one report's extracted fields."""

from __future__ import annotations

from .extractor import extract_fields
from .models import ExtractedFields, ReportScore

MAX_SCORE = 100

# (upper limit, points), tightest band first; the first band a value falls
# into is the only one that scores.
VISIBILITY_BANDS_M: tuple[tuple[int, int], ...] = (
    (150, 35),
    (175, 30),
    (250, 26),
    (300, 24),
    (500, 18),
    (550, 16),
    (800, 12),
)
RVR_BANDS_M: tuple[tuple[int, int], ...] = (
    (75, 28),
    (200, 22),
    (300, 18),
    (500, 12),
)
# Ceiling limits are exclusive (< 500 ft, < 800 ft).
CEILING_BANDS_FT: tuple[tuple[int, int], ...] = (
    (500, 22),
    (800, 12),
)
HAZARD_POINTS: dict[str, int] = {
    "ts": 22,
    "fzfg": 18,
    "fg": 14,
    "sn": 10,
    "ra": 8,
    "br": 6,
}


def band_points(
    value: int | None,
    bands: tuple[tuple[int, int], ...],
    *,
    inclusive: bool = True,
) -> int:
    """Return the points of the single band ``value`` falls into (0 if none)."""
    if value is None:
        return 0
    for limit, points in bands:
        if value <= limit if inclusive else value < limit:
            return points
    return 0


def score_fields(fields: ExtractedFields) -> int:
    """Sum the independent category contributions and clamp to MAX_SCORE."""
    score = band_points(fields.visibility_m, VISIBILITY_BANDS_M)
    score += band_points(fields.rvr_min_m, RVR_BANDS_M)
    score += band_points(fields.ceiling_ft, CEILING_BANDS_FT, inclusive=False)
    for flag, points in HAZARD_POINTS.items():
        if getattr(fields.hazards, flag):
            score += points
    return min(MAX_SCORE, score)


def score_report(raw: str | None) -> ReportScore:
    """Extract and score one raw report."""
    fields = extract_fields(raw)
    return ReportScore(fields=fields, score=score_fields(fields))
