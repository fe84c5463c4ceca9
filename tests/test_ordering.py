from swimtrackr.core.ordering import Direction, next_order_index, sort_by_order, swap_with_neighbour

LEVELS = [
    {"id": "c", "order_index": 7},
    {"id": "a", "order_index": 1},
    {"id": "b", "order_index": 4},
]


def apply(rows, updates):
    indices = {u["id"]: u["order_index"] for u in updates}
    return [{**r, "order_index": indices.get(r["id"], r["order_index"])} for r in rows]


def test_sort_by_order():
    assert [r["id"] for r in sort_by_order(LEVELS)] == ["a", "b", "c"]


def test_swap_exchanges_indices_with_neighbour():
    updates = swap_with_neighbour(LEVELS, "b", Direction.UP)
    assert updates == ({"id": "b", "order_index": 1}, {"id": "a", "order_index": 4})


def test_swap_preserves_index_set():
    moved = apply(LEVELS, swap_with_neighbour(LEVELS, "a", Direction.DOWN))
    assert sorted(r["order_index"] for r in moved) == [1, 4, 7]
    assert [r["id"] for r in sort_by_order(moved)] == ["b", "a", "c"]


def test_double_swap_restores_order():
    once = apply(LEVELS, swap_with_neighbour(LEVELS, "b", Direction.DOWN))
    twice = apply(once, swap_with_neighbour(once, "b", Direction.UP))
    assert sort_by_order(twice) == sort_by_order(LEVELS)


def test_swap_at_the_ends_is_a_no_op():
    assert swap_with_neighbour(LEVELS, "a", Direction.UP) is None
    assert swap_with_neighbour(LEVELS, "c", Direction.DOWN) is None
    assert swap_with_neighbour(LEVELS, "missing", Direction.UP) is None


def test_next_order_index():
    assert next_order_index([]) == 0
    assert next_order_index(LEVELS) == 8
