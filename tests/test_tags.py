"""Tests for sentinel.tags — vocabulary, toggles and filtering."""

import pytest

from sentinel.errors import RejectedInput
from sentinel.models import Identity
from sentinel.tags import TAG_OPTIONS, TagClassifier, dedupe, primary_tag, toggle, visible


@pytest.fixture
def records():
    return [
        Identity(name="a", tags=["FARM"]),
        Identity(name="b", tags=["MAIN"]),
        Identity(name="c", tags=["MAIN", "FARM"]),
        Identity(name="d", tags=[]),
        Identity(name="e", tags=["VIP", "FARM"]),
    ]


class TestToggle:
    def test_vocabulary(self):
        assert TAG_OPTIONS == ("MAIN", "ALT", "FARM", "TRADE")

    def test_add_then_remove(self):
        tags = toggle([], "ALT")
        assert tags == ["ALT"]
        assert toggle(tags, "ALT") == []

    def test_no_duplicates(self):
        tags = toggle(["MAIN"], "MAIN")
        assert tags == []

    def test_does_not_mutate_input(self):
        tags = ["MAIN"]
        toggle(tags, "FARM")
        assert tags == ["MAIN"]

    def test_unknown_tag_rejected(self):
        with pytest.raises(RejectedInput) as exc:
            toggle(["MAIN"], "VIP")
        assert exc.value.field == "tags"

    def test_can_remove_imported_tag_only_via_vocabulary(self):
        # Unknown tags stay in place; toggling a known one leaves them alone
        assert toggle(["VIP"], "MAIN") == ["VIP", "MAIN"]


class TestVisible:
    def test_none_returns_all_in_order(self, records):
        assert [r.name for r in visible(records, None)] == ["a", "b", "c", "d", "e"]

    def test_filter_keeps_relative_order(self, records):
        assert [r.name for r in visible(records, "FARM")] == ["a", "c", "e"]

    def test_filter_on_unknown_tag(self, records):
        assert [r.name for r in visible(records, "VIP")] == ["e"]

    def test_no_matches(self, records):
        assert visible(records, "TRADE") == []


class TestTagClassifier:
    def test_default_shows_all(self, records):
        tc = TagClassifier()
        assert tc.filter is None
        assert len(tc.visible(records)) == 5

    def test_set_and_clear_filter(self, records):
        tc = TagClassifier()
        tc.set_filter("MAIN")
        assert [r.name for r in tc.visible(records)] == ["b", "c"]
        tc.set_filter(None)
        assert len(tc.visible(records)) == 5


class TestHelpers:
    def test_dedupe(self):
        assert dedupe(["A", "B", "A", "C", "B"]) == ["A", "B", "C"]

    def test_primary_tag(self):
        assert primary_tag(Identity(tags=["FARM", "MAIN"])) == "FARM"
        assert primary_tag(Identity()) == "DEFAULT"
