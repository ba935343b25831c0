"""Carbs on Board (COB) calculator.

Linear absorption: each entry is fully absorbed after
``carbs / absorption_rate`` hours, matching Nightscout's minimum
absorption rate model. The rate reflects how fast the gut delivers
glucose, not insulin sensitivity (typically 20-30 g/h).
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from glucometrics.core.constants import DEFAULT_CARB_ABSORPTION_RATE
from glucometrics.core.models import Treatment
from glucometrics.core.numeric import round_half_up


def calculate_carbs_remaining(
    elapsed_hours: float, carbs_grams: float, absorption_rate: float
) -> float:
    """Grams of a single entry not yet absorbed after ``elapsed_hours``."""
    if carbs_grams <= 0 or absorption_rate <= 0:
        return 0.0
    absorption_hours = carbs_grams / absorption_rate
    if elapsed_hours < 0 or elapsed_hours >= absorption_hours:
        return 0.0
    return carbs_grams * (1.0 - elapsed_hours / absorption_hours)


def calculate_cob(
    treatments: Iterable[Treatment],
    absorption_rate: float = DEFAULT_CARB_ABSORPTION_RATE,
    at_time: datetime | None = None,
) -> float:
    """Total carbs on board in grams, rounded to 1 decimal.

    Any treatment with ``carbs_grams > 0`` counts (Meal Bolus, Snack Bolus,
    Carb Correction, ...). Returns 0 when ``absorption_rate <= 0``.
    """
    if absorption_rate <= 0:
        return 0.0
    if at_time is None:
        at_time = datetime.now(UTC)

    total = 0.0
    for treatment in treatments:
        carbs = treatment.carbs_grams
        if not carbs or carbs <= 0:
            continue
        elapsed = (at_time - treatment.occurred_at).total_seconds() / 3600
        total += calculate_carbs_remaining(elapsed, carbs, absorption_rate)

    return round_half_up(total, 1)
