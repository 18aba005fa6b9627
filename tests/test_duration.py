import pytest

from recipehub import duration
from recipehub.duration import Duration
from recipehub.errors import InvalidDuration


@pytest.mark.parametrize(
    "text,expected",
    (
        ("PT45M", 2700),
        ("PT3H30M", 12600),
        ("PT1H", 3600),
        ("PT90S", 90),
        ("P1DT2H", 93600),
        ("P2D", 172800),
        ("pt10m", 600),
        ("PT1.5S", 1),
        ("PT0S", 0),
    ),
)
def test_parse_valid(text, expected):
    assert duration.parse(text) == expected
    assert duration.parse_strict(text) == expected


@pytest.mark.parametrize("text", (None, "", "3 hours", "P", "PT", "PT5X", "-PT5M"))
def test_parse_is_lenient(text):
    assert duration.parse(text) == 0


@pytest.mark.parametrize("text", ("", "3 hours", "P", "PT", "PT5X", "-PT5M", "PT-5M", None))
def test_parse_strict_rejects(text):
    with pytest.raises(InvalidDuration):
        duration.parse_strict(text)


@pytest.mark.parametrize(
    "seconds,expected",
    ((0, "PT0S"), (60, "PT1M"), (3600, "PT1H"), (5430, "PT1H30M30S"), (93600, "PT26H")),
)
def test_format_seconds(seconds, expected):
    assert duration.format_seconds(seconds) == expected


def test_combine_sums_both_parts():
    assert duration.combine(1800, 600) == "PT40M"
    assert duration.combine(0, 0) == "PT0S"


def test_combine_is_indeterminate_when_a_side_is_unknown():
    assert duration.combine(None, 600) is None
    assert duration.combine(600, None) is None


def test_total_time_treats_absent_as_zero_and_malformed_as_unknown():
    assert duration.total_time("PT1H", None) == "PT1H"
    assert duration.total_time("", "PT5M") == "PT5M"
    assert duration.total_time("PT1H", "soon") is None


def test_duration_value_keeps_text_and_seconds_together():
    value = Duration.from_text("PT2H")
    assert value.text == "PT2H"
    assert value.seconds == 7200
    assert value == Duration("PT2H", 7200)
    assert value.__composite_values__() == ("PT2H", 7200)


def test_duration_from_text_lenient_and_strict():
    assert Duration.from_text("nonsense") == Duration("nonsense", 0)
    assert Duration.from_text(None, strict=True) == Duration(None, 0)
    with pytest.raises(InvalidDuration):
        Duration.from_text("nonsense", strict=True)
    with pytest.raises(InvalidDuration):
        Duration.from_text("", strict=True)


def test_total_time_keeps_fractional_seconds():
    assert duration.total_time("PT1.5S", None) == "PT1.5S"
    assert duration.total_time("PT1M0.25S", "PT0,25S") == "PT1M0.5S"
    assert duration.total_time("PT59.5S", "PT0.5S") == "PT1M"
    assert duration.format_seconds(90) == "PT1M30S"
