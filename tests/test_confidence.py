import pytest

from digitalme.services.profile.confidence import ConfidenceEstimator, missing_attributes, validate_source


class TestValidateSource:
    """Readings need all five writing attributes to be merged."""

    def test_complete_reading_is_valid(self, make_reading):
        assert validate_source(make_reading("gmail")) is True

    def test_missing_attribute_is_excluded_with_diagnostic(self, make_reading):
        diagnostics: list[str] = []
        reading = make_reading("blog", avoidance=None)

        assert validate_source(reading, diagnostics) is False
        assert missing_attributes(reading) == ["avoidance"]
        assert len(diagnostics) == 1
        assert "blog" in diagnostics[0]
        assert "avoidance" in diagnostics[0]

    def test_reading_without_style(self, make_reading):
        reading = make_reading("text", with_style=False)
        assert validate_source(reading) is False
        assert len(missing_attributes(reading)) == 5


class TestConfidenceEstimator:
    """Overall confidence from source count and word volume."""

    def test_no_sources(self):
        assert ConfidenceEstimator.calculate([]) == 0.30

    def test_single_small_source(self, make_reading):
        assert ConfidenceEstimator.calculate([make_reading("gmail", words=400)]) == 0.5

    def test_word_bonuses(self, make_reading):
        assert ConfidenceEstimator.calculate([make_reading("gmail", words=1000)]) == 0.5
        assert ConfidenceEstimator.calculate([make_reading("gmail", words=1001)]) == 0.55
        assert ConfidenceEstimator.calculate([make_reading("gmail", words=2001)]) == 0.6

    def test_two_sources(self, make_reading):
        readings = [make_reading("gmail", words=1000), make_reading("text", words=800)]
        assert ConfidenceEstimator.calculate(readings) == 0.7

    def test_source_count_saturates_at_four(self, make_reading):
        four = [make_reading("text", words=100) for _ in range(4)]
        six = [make_reading("text", words=100) for _ in range(6)]
        assert ConfidenceEstimator.calculate(four) == 0.95
        assert ConfidenceEstimator.calculate(six) == 0.95

    def test_never_exceeds_ceiling(self, make_reading):
        readings = [make_reading("gmail", words=5000) for _ in range(5)]
        assert ConfidenceEstimator.calculate(readings) == 0.95

    def test_monotonic_in_sources_and_words(self, make_reading):
        previous = ConfidenceEstimator.calculate([])
        for count in range(1, 7):
            for words in (0, 600, 1200, 2400):
                readings = [make_reading("text", words=words // count) for _ in range(count)]
                value = ConfidenceEstimator.calculate(readings)
                assert 0.30 <= value <= 0.95
            current = ConfidenceEstimator.calculate([make_reading("text", words=100) for _ in range(count)])
            assert current >= previous
            previous = current

        by_words = [ConfidenceEstimator.calculate([make_reading("text", words=words)]) for words in range(0, 3000, 250)]
        assert by_words == sorted(by_words)

    @pytest.mark.parametrize(
        "confidence,lines,expected",
        [(0.8, 0, 0.8), (0.8, 499, 0.8), (0.8, 500, 0.85), (0.8, 2000, 0.9), (0.9, 2500, 0.95), (0.3, 600, 0.35)],
    )
    def test_code_bonus(self, confidence, lines, expected):
        assert ConfidenceEstimator.apply_code_bonus(confidence, lines) == pytest.approx(expected)
