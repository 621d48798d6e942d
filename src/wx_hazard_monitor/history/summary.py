"""Rolling per-cycle summary samples, update intervals and feed health."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import TypeAdapter

from ..log_setup import get_logger
from ..stations.models import BoardCounts
from .models import FeedHealth, SummarySample, UpdateIntervals
from .store import SUMMARY_HISTORY_KEY, KeyValueStore, load_model, save_model

DEFAULT_MAX_SAMPLES = 240
HEALTH_STALE_FACTOR = 2

_SAMPLES_ADAPTER: TypeAdapter[list[SummarySample]] = TypeAdapter(list[SummarySample])


def _minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


class SummaryHistory:
    """Capped list of cycle samples persisted under one store key."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.max_samples = max_samples
        self.logger = logger or get_logger("summary")
        self._samples: list[SummarySample] = load_model(
            store, SUMMARY_HISTORY_KEY, _SAMPLES_ADAPTER, [], logger=self.logger
        )

    @property
    def samples(self) -> list[SummarySample]:
        return list(self._samples)

    @property
    def last(self) -> SummarySample | None:
        return self._samples[-1] if self._samples else None

    def record(
        self,
        counts: BoardCounts,
        *,
        fetched_at: datetime,
        generated_at: datetime | None,
    ) -> SummarySample:
        """Append a sample for this cycle and persist the capped list.

        A sample is new unless both it and the previous sample carry the
        same ``generated_at``; an unknown time on either side counts as new.
        """
        previous_generated = self.last.generated_at if self.last else None
        if previous_generated is not None and generated_at is not None:
            is_new = generated_at != previous_generated
        else:
            is_new = True
        delta_min = None
        if is_new and previous_generated is not None and generated_at is not None:
            delta_min = _minutes_between(previous_generated, generated_at)

        sample = SummarySample(
            fetched_at=fetched_at,
            generated_at=generated_at,
            is_new=is_new,
            delta_min=delta_min,
            stations=counts.total,
            metar=counts.metar_present,
            taf=counts.taf_present,
            eng=counts.engine_ice_ops,
            crit=counts.tiers.get("CRIT", 0),
            high=counts.tiers.get("HIGH", 0),
            med=counts.tiers.get("MED", 0),
            ok=counts.tiers.get("OK", 0),
            vis175=counts.vis175,
            ts=counts.thunderstorm,
        )
        self._samples.append(sample)
        if len(self._samples) > self.max_samples:
            del self._samples[: len(self._samples) - self.max_samples]
        save_model(self.store, SUMMARY_HISTORY_KEY, _SAMPLES_ADAPTER, self._samples)
        return sample

    def update_intervals(self) -> UpdateIntervals | None:
        """Average and last gap between distinct feed updates, or None below two."""
        distinct = sorted({sample.generated_at for sample in self._samples if sample.generated_at})
        deltas = [
            _minutes_between(earlier, later)
            for earlier, later in zip(distinct, distinct[1:], strict=False)
        ]
        if not deltas:
            return None
        return UpdateIntervals(
            average_min=sum(deltas) / len(deltas),
            last_min=deltas[-1],
            samples=len(deltas),
        )


def feed_health(
    generated_at: datetime | None,
    *,
    now: datetime,
    expected_update_minutes: int,
) -> FeedHealth:
    """OK while the feed is no older than twice the expected update interval."""
    limit = float(expected_update_minutes * HEALTH_STALE_FACTOR)
    if generated_at is None:
        return FeedHealth(status="UNKNOWN", limit_min=limit)
    age = _minutes_between(generated_at, now)
    return FeedHealth(status="OK" if age <= limit else "STALE", age_min=age, limit_min=limit)
