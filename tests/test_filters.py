import unittest

from basekit.filters import Eq, In, Limit, Order, QueryFilter


class RecordingQuery:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def eq(self, column, value):
        self.calls.append(("eq", column, value))
        return self

    def in_(self, column, values):
        self.calls.append(("in", column, values))
        return self

    def order(self, column, desc=False):
        self.calls.append(("order", column, desc))
        return self

    def limit(self, count):
        self.calls.append(("limit", count))
        return self


class QueryFilterTests(unittest.TestCase):
    def test_from_mapping_preserves_original_clause_order(self) -> None:
        query_filter = QueryFilter.from_mapping(
            eq={"owner": "u1", "kind": "note"},
            in_filter={"status": ["open", "done"]},
            order_by="created_at",
            ascending=False,
            limit=10,
        )

        self.assertEqual(
            query_filter.predicates,
            (
                Eq("owner", "u1"),
                Eq("kind", "note"),
                In("status", ("open", "done")),
                Order("created_at", ascending=False),
                Limit(10),
            ),
        )

    def test_apply_translates_predicates_to_builder_calls(self) -> None:
        query = RecordingQuery()
        QueryFilter().limit(3).eq("id", 7).order("name").in_("tag", {"a"}).apply(query)

        self.assertEqual(
            query.calls,
            [
                ("limit", 3),
                ("eq", "id", 7),
                ("order", "name", False),
                ("in", "tag", ["a"]),
            ],
        )

    def test_builder_returns_new_values(self) -> None:
        base = QueryFilter().eq("a", 1)
        extended = base.eq("b", 2)

        self.assertEqual(len(base), 1)
        self.assertEqual(len(extended), 2)
        self.assertFalse(QueryFilter())
        self.assertTrue(base)

    def test_row_only_distinguishes_mutation_safe_filters(self) -> None:
        self.assertTrue(QueryFilter().eq("a", 1).in_("b", [1, 2]).row_only)
        self.assertFalse(QueryFilter().eq("a", 1).limit(1).row_only)
        self.assertFalse(QueryFilter().order("a").row_only)

    def test_rejects_empty_column_and_negative_limit(self) -> None:
        with self.assertRaises(ValueError):
            QueryFilter().eq("", 1)
        with self.assertRaises(ValueError):
            QueryFilter().limit(-1)
        with self.assertRaises(ValueError):
            QueryFilter.from_mapping(order_by="")
