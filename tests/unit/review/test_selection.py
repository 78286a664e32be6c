"""Unit tests for SelectionSet."""

import pytest

from review.selection import SelectAllPolicy, SelectionSet


class TestSelectionSet:

    def test_toggle(self):
        s = SelectionSet()
        assert s.toggle("a") is True
        assert "a" in s
        assert s.toggle("a") is False
        assert "a" not in s

    def test_double_toggle_restores(self):
        s = SelectionSet()
        s.set_selected("x", True)
        before = s.ids()
        s.toggle("y")
        s.toggle("y")
        assert s.ids() == before

    def test_set_explicit(self):
        s = SelectionSet()
        s.set_selected("a", True)
        s.set_selected("a", True)
        assert s.size() == 1
        s.set_selected("a", False)
        assert s.size() == 0

    def test_clear_and_page_change(self):
        s = SelectionSet()
        s.toggle("a")
        s.on_page_change()
        assert len(s) == 0

    def test_consume_empties(self):
        s = SelectionSet()
        s.toggle("a")
        s.toggle("b")
        taken = s.consume()
        assert taken == {"a", "b"}
        assert s.size() == 0

    def test_discard_missing(self):
        s = SelectionSet()
        s.toggle("a")
        s.toggle("gone")
        s.discard_missing(["a", "b"])
        assert s.ids() == {"a"}

    def test_ids_is_a_copy(self):
        s = SelectionSet()
        s.toggle("a")
        s.ids().add("b")
        assert not s.is_selected("b")


class TestSelectAll:

    def test_page_policy_selects_visible_only(self):
        s = SelectionSet(SelectAllPolicy.PAGE)
        s.select_all(["a", "b"], collection_ids=["a", "b", "c"])
        assert s.ids() == {"a", "b"}

    def test_collection_policy_selects_everything(self):
        s = SelectionSet(SelectAllPolicy.COLLECTION)
        s.select_all(["a", "b"], collection_ids=["a", "b", "c"])
        assert s.ids() == {"a", "b", "c"}

    def test_collection_policy_needs_collection(self):
        s = SelectionSet(SelectAllPolicy.COLLECTION)
        with pytest.raises(ValueError):
            s.select_all(["a"])

    def test_select_all_twice_deselects(self):
        s = SelectionSet()
        s.select_all(["a", "b"])
        s.select_all(["a", "b"])
        assert s.size() == 0

    def test_partial_then_select_all_fills(self):
        s = SelectionSet()
        s.toggle("a")
        s.select_all(["a", "b"])
        assert s.ids() == {"a", "b"}

    def test_all_selected(self):
        s = SelectionSet()
        assert not s.all_selected([])
        s.select_all(["a", "b"])
        assert s.all_selected(["a", "b"])
        assert not s.all_selected(["a", "b", "c"])

    def test_toggle_after_select_all_drops_one(self):
        page = ["a", "b", "c", "d", "e"]
        s = SelectionSet()
        s.select_all(page)
        assert s.size() == 5

        s.toggle("c")

        assert s.size() == 4
        assert s.ids() == {"a", "b", "d", "e"}
        assert not s.all_selected(page)

    def test_select_all_returns_selected_ids(self):
        s = SelectionSet()
        assert s.select_all(["a", "b"]) == {"a", "b"}
        assert SelectionSet.select_all.__annotations__["return"] == set[str]
