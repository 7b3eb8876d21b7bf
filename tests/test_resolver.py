import uuid
from datetime import date, datetime, timedelta

import pytest

from calendarsync import models
from calendarsync.services.resolver import (
    InvalidCivilDateError,
    InvalidUnitError,
    OccurrenceNotFoundError,
    Unresolvable,
    UnresolvableReason,
    calculate_nth_date,
    calculate_relative_date,
    parse_civil_date,
    resolve_all,
    resolve_date,
    weekday_index,
)

TODAY = date(2026, 10, 18)

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


def fixed(title, start, end=None):
    return models.Event(id=uuid.uuid4(), title=title, date_type="fixed", start_date=start, end_date=end)


def nth(title, occurrence, day_of_week, month, base_year=None):
    return models.Event(
        id=uuid.uuid4(),
        title=title,
        date_type="nth",
        nth_occurrence=occurrence,
        day_of_week=day_of_week,
        month=month,
        base_year=base_year,
    )


def relative(title, period, unit, direction, reference):
    return models.Event(
        id=uuid.uuid4(),
        title=title,
        date_type="relative",
        relative_period=period,
        relative_unit=unit,
        relative_direction=direction,
        relative_event_name=reference,
    )


def assert_unresolvable(result, reason):
    assert isinstance(result, Unresolvable)
    assert result.reason is reason


def test_weekday_index_starts_on_sunday():
    assert weekday_index(date(2024, 3, 3)) == SUNDAY
    assert weekday_index(date(2024, 3, 9)) == SATURDAY


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-12-25", date(2024, 12, 25)),
        ("2024-12-25T23:30:00-05:00", date(2024, 12, 25)),
        ("2024-12-25T00:00:00.000Z", date(2024, 12, 25)),
        ("2024-12-25 08:00", date(2024, 12, 25)),
        (datetime(2024, 12, 25, 23, 59), date(2024, 12, 25)),
        (date(2024, 12, 25), date(2024, 12, 25)),
    ],
)
def test_parse_civil_date_keeps_literal_components(value, expected):
    assert parse_civil_date(value) == expected


@pytest.mark.parametrize("value", ["25/12/2024", "2024-02-30", "not a date", 20241225])
def test_parse_civil_date_rejects_malformed_values(value):
    with pytest.raises(InvalidCivilDateError):
        parse_civil_date(value)


def test_first_occurrence_is_first_matching_weekday():
    assert calculate_nth_date(1, TUESDAY, 3, 2024) == date(2024, 3, 5)
    assert calculate_nth_date(1, FRIDAY, 3, 2024) == date(2024, 3, 1)


@pytest.mark.parametrize("year", [2023, 2024, 2025])
@pytest.mark.parametrize("month", range(1, 13))
@pytest.mark.parametrize("day_of_week", range(7))
def test_first_occurrence_matches_calendar(year, month, day_of_week):
    expected = next(
        date(year, month, day)
        for day in range(1, 8)
        if weekday_index(date(year, month, day)) == day_of_week
    )
    assert calculate_nth_date(1, day_of_week, month, year) == expected


def test_last_occurrence_in_five_occurrence_month():
    # March 2024 has five Fridays
    assert calculate_nth_date(-1, FRIDAY, 3, 2024) == date(2024, 3, 29)
    assert calculate_nth_date(4, FRIDAY, 3, 2024) == date(2024, 3, 22)


@pytest.mark.parametrize("month", range(1, 13))
@pytest.mark.parametrize("day_of_week", range(7))
def test_last_occurrence_is_latest_matching_day_in_month(month, day_of_week):
    result = calculate_nth_date(-1, day_of_week, month, 2024)
    assert result.month == month
    assert weekday_index(result) == day_of_week
    assert (result + timedelta(weeks=1)).month != month


def test_fourth_occurrence_in_four_occurrence_month():
    # February 2024 has exactly four Mondays: 5, 12, 19, 26
    assert calculate_nth_date(4, MONDAY, 2, 2024) == date(2024, 2, 26)
    assert calculate_nth_date(-1, MONDAY, 2, 2024) == date(2024, 2, 26)


def test_occurrence_past_month_end_is_an_error():
    with pytest.raises(OccurrenceNotFoundError):
        calculate_nth_date(5, MONDAY, 2, 2024)


@pytest.mark.parametrize(
    "occurrence, day_of_week, month",
    [(0, MONDAY, 5), (-2, MONDAY, 5), (1, 7, 5), (1, MONDAY, 13), (1, MONDAY, 0)],
)
def test_out_of_range_nth_inputs_are_errors(occurrence, day_of_week, month):
    with pytest.raises(OccurrenceNotFoundError):
        calculate_nth_date(occurrence, day_of_week, month, 2024)


@pytest.mark.parametrize(
    "period, unit, direction, expected",
    [
        (3, "days", "before", date(2024, 12, 22)),
        (3, "days", "after", date(2024, 12, 28)),
        (2, "weeks", "before", date(2024, 12, 11)),
        (1, "months", "after", date(2025, 1, 25)),
        (13, "months", "before", date(2023, 11, 25)),
        (1, "years", "after", date(2025, 12, 25)),
    ],
)
def test_relative_offsets(period, unit, direction, expected):
    assert calculate_relative_date(date(2024, 12, 25), period, unit, direction) == expected


def test_month_arithmetic_clamps_to_month_end():
    assert calculate_relative_date(date(2024, 1, 31), 1, "months", "after") == date(2024, 2, 29)
    assert calculate_relative_date(date(2024, 2, 29), 1, "years", "after") == date(2025, 2, 28)


def test_relative_with_invalid_unit_is_an_error():
    with pytest.raises(InvalidUnitError):
        calculate_relative_date(date(2024, 12, 25), 1, "fortnights", "after")


def test_resolve_fixed_event():
    event = fixed("Christmas", date(2024, 12, 25))
    assert resolve_date(event, [event], today=TODAY) == date(2024, 12, 25)


def test_resolve_fixed_event_from_iso_string():
    event = fixed("Christmas", "2024-12-25T00:00:00.000Z")
    assert resolve_date(event, [event], today=TODAY) == date(2024, 12, 25)


def test_resolve_fixed_event_without_start_date():
    event = fixed("Someday", None)
    assert_unresolvable(resolve_date(event, [event], today=TODAY), UnresolvableReason.MISSING_FIELDS)


def test_resolve_fixed_event_with_unparseable_date():
    event = fixed("Someday", "soon")
    assert_unresolvable(resolve_date(event, [event], today=TODAY), UnresolvableReason.INVALID_DATE)


def test_resolve_nth_event_uses_base_year():
    thanksgiving = nth("Thanksgiving", 4, THURSDAY, 11, base_year=2024)
    assert resolve_date(thanksgiving, [thanksgiving], today=TODAY) == date(2024, 11, 28)


def test_resolve_nth_event_defaults_to_current_year():
    labor_day = nth("Labor Day", 1, MONDAY, 9)
    assert resolve_date(labor_day, [labor_day], today=TODAY) == date(2026, 9, 7)


def test_resolve_nth_event_missing_fields():
    event = nth("Unfinished", 2, None, 5, base_year=2024)
    result = resolve_date(event, [event], today=TODAY)
    assert_unresolvable(result, UnresolvableReason.MISSING_FIELDS)
    assert "day_of_week" in result.detail


def test_resolve_nth_event_without_occurrence_in_month():
    event = nth("Fifth Monday", 5, MONDAY, 2, base_year=2024)
    assert_unresolvable(resolve_date(event, [event], today=TODAY), UnresolvableReason.NO_SUCH_OCCURRENCE)


def test_resolve_relative_event():
    christmas = fixed("Christmas", date(2024, 12, 25))
    shopping = relative("Shopping", 3, "days", "before", "Christmas")
    party = relative("Party", 1, "months", "after", "Christmas")
    snapshot = [christmas, shopping, party]

    assert resolve_date(shopping, snapshot, today=TODAY) == date(2024, 12, 22)
    assert resolve_date(party, snapshot, today=TODAY) == date(2025, 1, 25)


def test_resolve_relative_to_nth_event():
    mothers_day = nth("Mother's Day", 2, SUNDAY, 5, base_year=2024)
    flowers = relative("Order flowers", 1, "days", "before", "Mother's Day")
    assert resolve_date(flowers, [flowers, mothers_day], today=TODAY) == date(2024, 5, 11)


def test_chained_relative_events_follow_the_anchor():
    anchor = fixed("A", date(2024, 12, 25))
    middle = relative("B", 1, "weeks", "before", "A")
    last = relative("C", 2, "days", "after", "B")
    snapshot = [anchor, middle, last]

    assert resolve_date(last, snapshot, today=TODAY) == date(2024, 12, 20)

    anchor.start_date = date(2025, 1, 1)
    assert resolve_date(last, snapshot, today=TODAY) == date(2024, 12, 27)


def test_long_reference_chain_does_not_exhaust_the_stack():
    events = [fixed("step-0", date(2024, 1, 1))]
    for index in range(1, 1500):
        events.append(relative(f"step-{index}", 1, "days", "after", f"step-{index - 1}"))

    assert resolve_date(events[-1], events, today=TODAY) == date(2024, 1, 1) + timedelta(days=1499)


def test_reference_not_found():
    orphan = relative("Orphan", 1, "days", "before", "Nobody")
    result = resolve_date(orphan, [orphan], today=TODAY)
    assert_unresolvable(result, UnresolvableReason.REFERENCE_NOT_FOUND)
    assert "Nobody" in result.detail


def test_reference_match_is_exact():
    christmas = fixed("Christmas", date(2024, 12, 25))
    shopping = relative("Shopping", 3, "days", "before", "christmas")
    assert_unresolvable(
        resolve_date(shopping, [christmas, shopping], today=TODAY),
        UnresolvableReason.REFERENCE_NOT_FOUND,
    )


def test_duplicate_titles_use_first_in_snapshot_order():
    first = fixed("Launch", date(2024, 6, 1))
    second = fixed("Launch", date(2024, 9, 1))
    follow_up = relative("Retro", 1, "weeks", "after", "Launch")

    assert resolve_date(follow_up, [first, second, follow_up], today=TODAY) == date(2024, 6, 8)
    assert resolve_date(follow_up, [second, first, follow_up], today=TODAY) == date(2024, 9, 8)


def test_self_reference_is_circular():
    loop = relative("Loop", 1, "days", "after", "Loop")
    assert_unresolvable(resolve_date(loop, [loop], today=TODAY), UnresolvableReason.CIRCULAR_REFERENCE)


def test_mutual_references_are_circular_for_both_events():
    a = relative("A", 1, "days", "after", "B")
    b = relative("B", 1, "days", "before", "A")
    snapshot = [a, b]

    assert_unresolvable(resolve_date(a, snapshot, today=TODAY), UnresolvableReason.CIRCULAR_REFERENCE)
    assert_unresolvable(resolve_date(b, snapshot, today=TODAY), UnresolvableReason.CIRCULAR_REFERENCE)


def test_event_depending_on_a_cycle_is_circular():
    a = relative("A", 1, "days", "after", "B")
    b = relative("B", 1, "days", "after", "C")
    c = relative("C", 1, "days", "after", "A")
    outsider = relative("D", 1, "weeks", "before", "A")

    result = resolve_date(outsider, [a, b, c, outsider], today=TODAY)
    assert_unresolvable(result, UnresolvableReason.CIRCULAR_REFERENCE)


def test_relative_event_missing_fields():
    incomplete = relative("Incomplete", None, "days", "before", "Christmas")
    christmas = fixed("Christmas", date(2024, 12, 25))
    result = resolve_date(incomplete, [christmas, incomplete], today=TODAY)
    assert_unresolvable(result, UnresolvableReason.MISSING_FIELDS)
    assert "relative_period" in result.detail


@pytest.mark.parametrize("period", [0, -2])
def test_relative_event_with_non_positive_period(period):
    christmas = fixed("Christmas", date(2024, 12, 25))
    backwards = relative("Backwards", period, "days", "before", "Christmas")
    result = resolve_date(backwards, [christmas, backwards], today=TODAY)
    assert_unresolvable(result, UnresolvableReason.INVALID_PERIOD)
    assert "relative_period" in result.detail


def test_relative_event_with_invalid_unit():
    christmas = fixed("Christmas", date(2024, 12, 25))
    odd = relative("Odd", 1, "fortnights", "before", "Christmas")
    assert_unresolvable(resolve_date(odd, [christmas, odd], today=TODAY), UnresolvableReason.INVALID_UNIT)


def test_unresolvable_reference_propagates_its_reason():
    broken = nth("Fifth Monday", 5, MONDAY, 2, base_year=2024)
    dependent = relative("Dependent", 1, "days", "after", "Fifth Monday")
    assert_unresolvable(
        resolve_date(dependent, [broken, dependent], today=TODAY),
        UnresolvableReason.NO_SUCH_OCCURRENCE,
    )


def test_unknown_date_type():
    event = models.Event(id=uuid.uuid4(), title="Weekly", date_type="weekly")
    assert_unresolvable(resolve_date(event, [event], today=TODAY), UnresolvableReason.UNKNOWN_DATE_TYPE)


def test_resolution_is_idempotent_and_does_not_mutate_events():
    christmas = fixed("Christmas", "2024-12-25")
    shopping = relative("Shopping", 3, "days", "before", "Christmas")
    snapshot = [christmas, shopping]

    first = resolve_date(shopping, snapshot, today=TODAY)
    second = resolve_date(shopping, snapshot, today=TODAY)
    assert first == second == date(2024, 12, 22)
    assert christmas.start_date == "2024-12-25"


def test_resolve_all_preserves_snapshot_order():
    shopping = relative("Shopping", 3, "days", "before", "Christmas")
    broken = relative("Broken", 1, "days", "after", "Missing")
    christmas = fixed("Christmas", date(2024, 12, 25))

    results = resolve_all([shopping, broken, christmas], today=TODAY)

    assert [event.title for event, _ in results] == ["Shopping", "Broken", "Christmas"]
    assert results[0][1] == date(2024, 12, 22)
    assert_unresolvable(results[1][1], UnresolvableReason.REFERENCE_NOT_FOUND)
    assert results[2][1] == date(2024, 12, 25)
