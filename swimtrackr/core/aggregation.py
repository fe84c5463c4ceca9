"""
Dashboard Aggregator helpers

Numeric contract: percentages are integers in [0, 100], rounded half up;
any division by zero yields 0. Independent statistics are fetched
concurrently and a failing one falls back to its default value.
"""

import asyncio
import logging
import math
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

StatisticJob = Tuple[Callable[[], Any], Any]


def percentage(part: Optional[float], whole: Optional[float]) -> int:
    if not part or not whole or whole <= 0:
        return 0
    value = math.floor(part / whole * 100 + 0.5)
    return max(0, min(100, value))


def completion_rate(completed_tasks: Optional[int], total_tasks: Optional[int]) -> int:
    return percentage(completed_tasks, total_tasks)


def attendance_rate(enrolled: Optional[int], capacity: Optional[int]) -> int:
    """Seat fill rate: enrolled students over offered seats."""
    return percentage(enrolled, capacity)


def growth_rate(current: Optional[int], previous: Optional[int]) -> float:
    """Percent change from the previous window, one decimal. 0.0 when there is no baseline."""
    if not previous or previous <= 0:
        return 0.0
    return round(((current or 0) - previous) / previous * 100, 1)


def safe_ratio(numerator: Optional[float], denominator: Optional[float], digits: int = 1) -> float:
    if not numerator or not denominator or denominator <= 0:
        return 0.0
    return round(numerator / denominator, digits)


def count_of(result) -> int:
    """Row count of an executed query, preferring the exact count when requested."""
    if result is None:
        return 0
    count = getattr(result, "count", None)
    if count is not None:
        return count
    return len(result.data or [])


async def gather_statistics(jobs: Dict[str, StatisticJob]) -> Dict[str, Any]:
    """Run blocking statistic queries concurrently; failures degrade to the job's default."""
    names = list(jobs)
    results = await asyncio.gather(
        *(asyncio.to_thread(jobs[name][0]) for name in names),
        return_exceptions=True,
    )
    statistics: Dict[str, Any] = {}
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            logger.error(f"Statistic '{name}' failed, using default: {result}")
            statistics[name] = jobs[name][1]
        else:
            statistics[name] = result
    return statistics
