"""Active metrics monitor.

Pulls the recent treatment and reading windows from the configured
sources, computes IOB, COB, the 5-minute delta and the AR2 forecast, and
keeps the latest result as a snapshot for the dashboard.

Treatments go through a :class:`FetchCache` so the concurrent IOB and COB
computations share one fetch. Only the newest refresh may publish: a
refresh that finishes after a later one started is discarded.
"""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from glucometrics.config import Settings, settings
from glucometrics.core.models import GlucoseReading, Treatment
from glucometrics.logging_config import correlation_scope, get_logger
from glucometrics.schemas.insulin import ActiveMetricsSnapshot, IOBBreakdown
from glucometrics.services.cob import calculate_cob
from glucometrics.services.fetch_cache import FetchCache
from glucometrics.services.iob import calculate_iob_breakdown
from glucometrics.services.sources import (
    DataSourceError,
    ReadingSource,
    TreatmentSource,
)
from glucometrics.services.trend import calculate_ar2, calculate_delta

logger = get_logger(__name__)

TREATMENTS_CACHE_KEY = "treatments"


class ActiveMetricsMonitor:
    """Computes and holds the latest active metrics snapshot.

    Args:
        reading_source: Where CGM readings come from
        treatment_source: Where logged treatments come from
        cache: Treatment fetch cache; a private one is created when omitted
        app_settings: Settings to use instead of the module-level instance
    """

    def __init__(
        self,
        reading_source: ReadingSource,
        treatment_source: TreatmentSource,
        cache: FetchCache | None = None,
        app_settings: Settings | None = None,
    ):
        self._settings = app_settings or settings
        self._parameters = self._settings.model_parameters()
        self._reading_source = reading_source
        self._treatment_source = treatment_source
        self._cache = cache or FetchCache(
            ttl_seconds=self._settings.treatment_cache_ttl_seconds
        )
        self._snapshot: ActiveMetricsSnapshot | None = None
        self._request_token = 0

    @property
    def snapshot(self) -> ActiveMetricsSnapshot | None:
        """Last successfully computed snapshot, or None before the first."""
        return self._snapshot

    @property
    def settings(self) -> Settings:
        """Settings this monitor was configured with."""
        return self._settings

    @property
    def cache(self) -> FetchCache:
        return self._cache

    def notify_treatment_saved(self) -> None:
        """Drop cached treatments so the next refresh sees the new entry."""
        self._cache.invalidate(TREATMENTS_CACHE_KEY)

    async def _get_treatments(
        self, now: datetime, data_version: str | None
    ) -> Sequence[Treatment]:
        start = now - timedelta(hours=self._settings.treatment_window_hours)
        return await self._cache.get_or_fetch(
            TREATMENTS_CACHE_KEY,
            lambda: self._treatment_source.get_treatments(start, now),
            data_version=data_version,
        )

    async def _get_readings(self, now: datetime) -> Sequence[GlucoseReading]:
        start = now - timedelta(minutes=self._settings.reading_window_minutes)
        return await self._reading_source.get_readings(start, now)

    async def _compute_iob(
        self, now: datetime, data_version: str | None
    ) -> tuple[IOBBreakdown, int]:
        treatments = await self._get_treatments(now, data_version)
        breakdown = calculate_iob_breakdown(
            treatments,
            dia_hours=self._parameters.dia_hours,
            scheduled_basal_rate=self._parameters.scheduled_basal_rate,
            at_time=now,
        )
        return breakdown, len(treatments)

    async def _compute_cob(self, now: datetime, data_version: str | None) -> float:
        treatments = await self._get_treatments(now, data_version)
        return calculate_cob(
            treatments,
            absorption_rate=self._parameters.carb_absorption_rate,
            at_time=now,
        )

    async def _build_snapshot(
        self,
        now: datetime,
        data_version: str | None,
        token: int,
        refresh_id: str,
    ) -> ActiveMetricsSnapshot | None:
        try:
            (breakdown, treatments_count), cob, readings = await asyncio.gather(
                self._compute_iob(now, data_version),
                self._compute_cob(now, data_version),
                self._get_readings(now),
            )
        except DataSourceError as e:
            logger.warning(
                "Active metrics refresh failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        except Exception as e:
            logger.exception(
                "Unexpected error refreshing active metrics",
                error_type=type(e).__name__,
            )
            return None

        if token != self._request_token:
            logger.debug(
                "Discarding superseded refresh",
                token=token,
                latest_token=self._request_token,
            )
            return None

        latest = max(readings, key=lambda r: r.timestamp) if readings else None
        return ActiveMetricsSnapshot(
            computed_at=now,
            iob=breakdown.total_iob,
            iob_breakdown=breakdown,
            cob=cob,
            delta=calculate_delta(readings),
            latest_glucose=latest.value if latest else None,
            forecast=calculate_ar2(readings, now=now),
            treatments_count=treatments_count,
            readings_count=len(readings),
            refresh_id=refresh_id,
        )

    async def refresh(
        self,
        now: datetime | None = None,
        data_version: str | None = None,
    ) -> ActiveMetricsSnapshot | None:
        """Recompute all active metrics and publish a new snapshot.

        Args:
            now: Evaluation instant (default: current UTC time)
            data_version: Marker of the treatment store, passed to the cache

        Returns:
            The new snapshot, or None when the refresh failed or was
            superseded. In both cases the previous snapshot is kept.
        """
        if now is None:
            now = datetime.now(UTC)

        self._request_token += 1
        token = self._request_token
        with correlation_scope() as refresh_id:
            snapshot = await self._build_snapshot(
                now, data_version, token, refresh_id
            )
            if snapshot is None:
                return None

            self._snapshot = snapshot
            logger.debug(
                "Active metrics refreshed",
                iob=snapshot.iob,
                cob=snapshot.cob,
                delta=snapshot.delta,
                readings=snapshot.readings_count,
            )
            return snapshot
