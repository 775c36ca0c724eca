from app.engine.hints import Hints, hint_at
from tests.helpers.fake_gateway import make_question


class TestHints:

    def test_reads_levels_from_question(self):
        hints = Hints.from_question(make_question(1))
        assert hints.at(1) == "hint one for 1"
        assert hints.at(3) == "hint three for 1"
        assert hints.at(4) is None
        assert hints.available == 3

    def test_legacy_hint_fills_first_level(self):
        hints = Hints.from_question({"hint": "  old hint  ", "hint2": "second"})
        assert hints.level1 == "old hint"
        assert hints.available == 2

    def test_blank_levels_count_as_missing(self):
        hints = Hints.from_question({"hint1": "first", "hint2": "   ", "hint3": "third"})
        assert hints.at(2) is None
        assert hints.available == 1

    def test_hint_at(self):
        assert hint_at({"hint1": "only"}, 1) == "only"
        assert hint_at({}, 1) is None
