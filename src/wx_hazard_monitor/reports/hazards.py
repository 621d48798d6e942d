"""Hazard classifier: exact weather-code membership tests over raw report text."""

from __future__ import annotations

import re

from .models import HazardFlags

# Word boundaries let intensity prefixes through (-RA, +TSRA) while keeping
# longer codes out (FZFG never counts as FG, SHRA never counts as RA).
_FZFG_RE = re.compile(r"\bFZFG\b")
_FG_RE = re.compile(r"\bFG\b")
_BR_RE = re.compile(r"\bBR\b")
_SN_RE = re.compile(r"\b(?:SN|SHSN)\b")
_RA_RE = re.compile(r"\b(?:RA|DZ)\b")
_TS_RE = re.compile(r"\b(?:TS|TSRA|TSGR)\b")


def classify_hazards(raw: str | None) -> HazardFlags:
    """Map weather codes in one report to the fixed set of hazard flags."""
    if not raw:
        return HazardFlags()
    return HazardFlags(
        fzfg=bool(_FZFG_RE.search(raw)),
        fg=bool(_FG_RE.search(raw)),
        br=bool(_BR_RE.search(raw)),
        sn=bool(_SN_RE.search(raw)),
        ra=bool(_RA_RE.search(raw)),
        ts=bool(_TS_RE.search(raw)),
    )
