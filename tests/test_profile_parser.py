import pytest

from AquaRank.SwimProfile import (
    FEMALE,
    MALE,
    TimedEvent,
    parseAge,
    parseSwimmerProfileHTML,
)

from conftest import PROFILE_HTML


def test_identity_fields():
    record = parseSwimmerProfileHTML(PROFILE_HTML)

    assert record.name == "Jane Doe"
    assert record.age == 17
    assert record.club == "Gator Swim Club"
    assert record.gender == FEMALE


def test_only_scy_rows_in_table_order():
    record = parseSwimmerProfileHTML(PROFILE_HTML)

    assert [t.event for t in record.times] == ["100 Free", "200 Free", "50 Fly"]
    assert record.times[0].time == pytest.approx(52.10)
    assert record.times[1].time == pytest.approx(115.30)


def test_unparseable_time_is_kept_as_none():
    record = parseSwimmerProfileHTML(PROFILE_HTML)
    assert record.times[-1] == TimedEvent(event="50 Fly", time=None)


def test_age_defaults_without_digits():
    html = '<ul class="c-list--horizontal"><li>Age unknown</li></ul>'
    assert parseSwimmerProfileHTML(html).age == 18


@pytest.mark.parametrize(
    "text, expected",
    [("Age: 17, Region: X", 17), ("21", 21), ("", 18), ("Age 0", 18)],
)
def test_parse_age(text, expected):
    assert parseAge(text) == expected


def test_gender_defaults_to_male():
    html = '<a class="c-tabs__link" href="/team/42/men">Men</a><h1>John</h1>'
    assert parseSwimmerProfileHTML(html).gender == MALE


def test_women_tab_wins_over_other_content():
    html = (
        '<a class="c-tabs__link" href="/team/42/men">Men</a>'
        '<a class="c-tabs__link" href="/team/42/women">Women</a>'
    )
    assert parseSwimmerProfileHTML(html).gender == FEMALE


def test_empty_page():
    record = parseSwimmerProfileHTML("<html></html>")
    assert record.to_dict() == {
        "name": "",
        "age": 18,
        "gender": MALE,
        "club": "",
        "times": [],
    }


def test_to_dict_serializes_times():
    html = (
        '<table class="c-table-clean">'
        '<tr><td><a>500 Free SCY</a></td><td><a>4:59.01</a></td></tr>'
        "</table>"
    )
    times = parseSwimmerProfileHTML(html).to_dict()["times"]
    assert times == [{"event": "500 Free", "time": pytest.approx(299.01)}]
