"""
Dose Generator Tool
Expands a medication's frequency into concrete scheduled dose instants
"""

import logging
from typing import List, Optional
from datetime import date, datetime, time, timedelta

from config import engine_config


logger = logging.getLogger(__name__)


def doses_per_day(frequency: str) -> int:
    """
    Map a free-text frequency to a daily dose count.

    "three times daily" / "thrice" -> 3, "twice daily" -> 2, anything else -> 1.
    """
    text = (frequency or "").lower()
    if "three" in text or "thrice" in text:
        return 3
    if "twice" in text:
        return 2
    return 1


def daily_slots(frequency: str) -> List[time]:
    """Time-of-day slots for a frequency"""
    hours = engine_config.DOSE_SLOTS[doses_per_day(frequency)]
    return [time(hour, 0) for hour in hours]


def generate_dose_times(
    frequency: str,
    start_date: Optional[date] = None,
    days: int = 30,
    history_days: int = 0
) -> List[datetime]:
    """
    Generate scheduled dose instants for a medication.

    Args:
        frequency: Frequency text (e.g., "twice daily")
        start_date: First day of the forward window (default: today)
        days: Number of days to generate going forward, including start_date
        history_days: Extra days generated before start_date

    Returns:
        Sorted list of naive datetimes, one per dose
    """
    if days < 0 or history_days < 0:
        raise ValueError("Generation window cannot be negative")

    first_day = (start_date or datetime.utcnow().date()) - timedelta(days=history_days)
    slots = daily_slots(frequency)

    times = []
    for offset in range(history_days + days):
        day = first_day + timedelta(days=offset)
        for slot in slots:
            times.append(datetime.combine(day, slot))

    logger.debug(f"Generated {len(times)} dose times for '{frequency}' from {first_day}")
    return times
