"""Station feed retrieval and normalization."""

from .client import FeedClient, load_feed_file
from .models import FeedSnapshot, StationReport
from .parser import normalize_station, parse_feed

__all__ = [
    "FeedClient",
    "FeedSnapshot",
    "StationReport",
    "load_feed_file",
    "normalize_station",
    "parse_feed",
]
