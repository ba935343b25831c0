"""Data source abstraction layer.

Abstract base classes for the collaborators that store readings and
treatments (a Nightscout-style database, a cloud CGM API, a test fake).
The calculators never query storage themselves; the monitor pulls data
through these interfaces.
"""

import abc
from collections.abc import Collection, Sequence
from datetime import datetime

from glucometrics.core.enums import TreatmentEventType
from glucometrics.core.models import GlucoseReading, Treatment


class DataSourceError(Exception):
    """Base exception for reading and treatment source errors."""

    pass


class DataSourceUnavailableError(DataSourceError):
    """The backing store could not be reached."""

    pass


class DataSourceFormatError(DataSourceError):
    """The backing store returned records that could not be parsed."""

    pass


class ReadingSource(abc.ABC):
    """Provides CGM readings for a time window."""

    @abc.abstractmethod
    async def get_readings(
        self, start: datetime, end: datetime
    ) -> Sequence[GlucoseReading]:
        """Fetch readings with ``start <= timestamp <= end``.

        Args:
            start: Window start (timezone-aware).
            end: Window end (timezone-aware).

        Returns:
            Readings in any order.

        Raises:
            DataSourceError: If the readings could not be fetched.
        """


class TreatmentSource(abc.ABC):
    """Provides logged treatments for a time window."""

    @abc.abstractmethod
    async def get_treatments(
        self,
        start: datetime,
        end: datetime,
        event_types: Collection[TreatmentEventType] | None = None,
    ) -> Sequence[Treatment]:
        """Fetch treatments with ``start <= occurred_at <= end``.

        Args:
            start: Window start (timezone-aware).
            end: Window end (timezone-aware).
            event_types: Restrict to these types; None returns every type.

        Returns:
            Treatments in any order.

        Raises:
            DataSourceError: If the treatments could not be fetched.
        """
