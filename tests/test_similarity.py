"""Edit distance and normalized similarity."""

import pytest

from priorauth_rulesets.similarity import edit_distance, similarity


class TestEditDistance:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("ozempic", "ozempic", 0),
            ("entivo", "entyvio", 2),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert edit_distance(a, b) == expected

    def test_symmetric(self):
        assert edit_distance("humira", "humera") == edit_distance("humera", "humira")


class TestSimilarity:
    def test_identical_strings(self):
        assert similarity("stelara", "stelara") == 1.0

    def test_both_empty(self):
        assert similarity("", "") == 1.0

    def test_one_empty(self):
        assert similarity("abc", "") == 0.0

    def test_normalized_by_longer_string(self):
        # 2 edits over 7 characters
        assert similarity("entivo", "entyvio") == pytest.approx(1 - 2 / 7)

    def test_bounded(self):
        for a, b in [("a", "xyz"), ("dupixent", "d"), ("taltz", "tremfya")]:
            assert 0.0 <= similarity(a, b) <= 1.0

    @pytest.mark.parametrize(
        "a, b",
        [
            ("humira", "humera"),
            ("entivo", "entyvio"),
            ("", "abc"),
            ("ozempic", "ozempick"),
            ("rinvoq ibd", "rinvoq"),
            ("Type 2 Diabetes", "type 2 diabetes"),
        ],
    )
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)
