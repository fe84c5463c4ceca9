"""
Sibling ordering for curriculum rows (levels within a package, tasks within a level).

Order is carried by `order_index`; the sequence may have gaps. Moving a row
swaps its index with its neighbour's, so the set of indices never changes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


def sort_by_order(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(rows, key=lambda r: (r.get("order_index", 0), r.get("id", "")))


def swap_with_neighbour(
    rows: List[Dict[str, Any]], row_id: str, direction: Direction
) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
    """
    Return the two updates `({"id", "order_index"}, {"id", "order_index"})` that
    move `row_id` one step in `direction`, or None when the move is impossible
    (unknown id, already first/last).
    """
    ordered = sort_by_order(rows)
    index = next((i for i, r in enumerate(ordered) if r["id"] == row_id), None)
    if index is None:
        return None
    neighbour = index - 1 if direction == Direction.UP else index + 1
    if neighbour < 0 or neighbour >= len(ordered):
        return None
    current, adjacent = ordered[index], ordered[neighbour]
    return (
        {"id": current["id"], "order_index": adjacent["order_index"]},
        {"id": adjacent["id"], "order_index": current["order_index"]},
    )


def next_order_index(rows: List[Dict[str, Any]]) -> int:
    if not rows:
        return 0
    return max(r.get("order_index", 0) for r in rows) + 1
