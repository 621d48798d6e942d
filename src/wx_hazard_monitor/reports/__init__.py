"""METAR/TAF field extraction, hazard classification and scoring."""

from .extractor import extract_fields
from .hazards import classify_hazards
from .models import ExtractedFields, HazardFlags, ReportKind, ReportScore
from .scoring import score_fields, score_report

__all__ = [
    "ExtractedFields",
    "HazardFlags",
    "ReportKind",
    "ReportScore",
    "classify_hazards",
    "extract_fields",
    "score_fields",
    "score_report",
]
