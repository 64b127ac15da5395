import logging
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace

import pytest

from mentorhub.scheduling.errors import InvalidArgumentError
from mentorhub.scheduling.resolver import (
    RuleWindow,
    copy_rules_to_all_days,
    day_of_week,
    default_grid,
    drop_elapsed,
    expand_window,
    resolve,
    resolve_availability,
)

SUNDAY = date(2026, 1, 4)
MONDAY = date(2026, 1, 5)
DEFAULT_GRID = ['09:00', '10:00', '11:00', '12:00', '13:00', '14:00', '15:00', '16:00']


def rule(day, start, end, is_available=True, rule_id=None):
    return SimpleNamespace(id=rule_id, day_of_week=day, start_time=start, end_time=end, is_available=is_available)


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 9), 5),
        (date(2026, 1, 10), 6),
    ],
)
def test_day_of_week_counts_from_sunday(value: date, expected: int) -> None:
    assert day_of_week(value) == expected


@pytest.mark.parametrize(
    ('start', 'end', 'expected'),
    [
        (time(9, 0), time(11, 0), ['09:00', '10:00']),
        (time(9, 0), time(9, 30), []),
        (time(9, 0), time(10, 30), ['09:00']),
        (time(9, 30), time(12, 0), ['09:30', '10:30']),
        (time(21, 0), time(23, 59), ['21:00', '22:00']),
    ],
)
def test_expand_window_excludes_end_time(start: time, end: time, expected: list[str]) -> None:
    assert expand_window(start, end) == expected


def test_default_grid_is_hourly_business_day() -> None:
    assert default_grid() == DEFAULT_GRID


def test_default_grid_follows_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('mentorhub.core.config.DEFAULT_GRID_START', time(6, 0))
    monkeypatch.setattr('mentorhub.core.config.DEFAULT_GRID_END', time(9, 0))

    assert default_grid() == ['06:00', '07:00', '08:00']


def test_single_weekday_rule_over_a_week() -> None:
    slots = resolve_availability('mentor-1', 7, [rule(1, '09:00', '12:00')], SUNDAY)

    assert slots == {
        SUNDAY: [],
        MONDAY: ['09:00', '10:00', '11:00'],
        date(2026, 1, 6): [],
        date(2026, 1, 7): [],
        date(2026, 1, 8): [],
        date(2026, 1, 9): [],
        date(2026, 1, 10): [],
    }


def test_overlapping_rules_are_merged_without_duplicates() -> None:
    rules = [
        rule(1, time(10, 0), time(13, 0)),
        rule(1, time(9, 0), time(11, 0)),
        rule(1, time(12, 0), time(14, 0)),
    ]

    slots = resolve_availability('mentor-1', 2, rules, SUNDAY)

    assert slots[MONDAY] == ['09:00', '10:00', '11:00', '12:00', '13:00']


def test_slots_sort_by_time_of_day() -> None:
    rules = [rule(1, time(15, 0), time(17, 0)), rule(1, time(8, 0), time(9, 0))]

    slots = resolve_availability('mentor-1', 2, rules, SUNDAY)

    assert slots[MONDAY] == ['08:00', '15:00', '16:00']


def test_no_rules_offers_default_grid_on_every_date() -> None:
    slots = resolve_availability('mentor-1', 7, [], SUNDAY)

    assert len(slots) == 7
    assert all(times == DEFAULT_GRID for times in slots.values())


def test_only_inactive_rules_offers_default_grid() -> None:
    slots = resolve_availability('mentor-1', 3, [rule(1, '09:00', '12:00', is_available=False)], SUNDAY)

    assert all(times == DEFAULT_GRID for times in slots.values())


def test_inactive_rules_are_not_expanded() -> None:
    rules = [rule(1, '09:00', '10:00'), rule(1, '14:00', '16:00', is_available=False)]

    slots = resolve_availability('mentor-1', 2, rules, SUNDAY)

    assert slots[MONDAY] == ['09:00']


def test_default_grid_not_used_to_fill_days_without_rules() -> None:
    slots = resolve_availability('mentor-1', 7, [rule(3, '09:00', '17:00')], SUNDAY)

    assert slots[date(2026, 1, 7)] == DEFAULT_GRID
    assert slots[MONDAY] == []
    assert slots[SUNDAY] == []


@pytest.mark.parametrize('horizon_days', [1, 7, 30])
def test_horizon_yields_consecutive_dates(horizon_days: int) -> None:
    slots = resolve_availability('mentor-1', horizon_days, [], SUNDAY)

    assert list(slots) == [SUNDAY + timedelta(days=offset) for offset in range(horizon_days)]


@pytest.mark.parametrize(
    ('mentor_id', 'horizon_days'),
    [
        ('', 7),
        ('   ', 7),
        (None, 7),
        ('mentor-1', 0),
        ('mentor-1', -3),
        ('mentor-1', True),
    ],
)
def test_invalid_arguments_are_rejected(mentor_id, horizon_days) -> None:
    with pytest.raises(InvalidArgumentError):
        resolve_availability(mentor_id, horizon_days, [], SUNDAY)


def test_malformed_rule_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    rules = [rule(1, '12:00', '10:00', rule_id='backwards'), rule(1, '09:00', '10:00', rule_id='good')]

    with caplog.at_level(logging.WARNING, logger='mentorhub.scheduling.resolver'):
        resolution = resolve('mentor-1', 2, rules, SUNDAY)

    assert resolution.slots[MONDAY] == ['09:00']
    assert [error.rule_id for error in resolution.malformed] == ['backwards']
    assert 'backwards' in caplog.text


@pytest.mark.parametrize(
    'bad_rule',
    [
        rule(1, '10:00', '10:00', rule_id='empty'),
        rule(1, 'nine', '10:00', rule_id='unparsable'),
        rule(1, None, '10:00', rule_id='missing'),
        rule(7, '09:00', '10:00', rule_id='weekday'),
    ],
)
def test_malformed_rule_kinds_do_not_break_resolution(bad_rule) -> None:
    resolution = resolve('mentor-1', 7, [bad_rule, rule(2, '09:00', '11:00')], SUNDAY)

    assert resolution.slots[date(2026, 1, 6)] == ['09:00', '10:00']
    assert [error.rule_id for error in resolution.malformed] == [bad_rule.id]


def test_malformed_only_rules_still_count_as_custom_availability() -> None:
    slots = resolve_availability('mentor-1', 7, [rule(1, '12:00', '10:00')], SUNDAY)

    assert all(times == [] for times in slots.values())


def test_time_strings_with_seconds_are_accepted() -> None:
    slots = resolve_availability('mentor-1', 2, [rule(1, '09:00:00', '11:00:00')], SUNDAY)

    assert slots[MONDAY] == ['09:00', '10:00']


def test_copy_rules_to_all_days_mirrors_source_weekday() -> None:
    source = rule(1, time(9, 0), time(17, 0))

    copies = copy_rules_to_all_days(1, [source])

    assert copies == [RuleWindow(day, time(9, 0), time(17, 0)) for day in (0, 2, 3, 4, 5, 6)]
    assert (source.day_of_week, source.start_time, source.end_time) == (1, time(9, 0), time(17, 0))


def test_copy_rules_to_all_days_skips_existing_windows() -> None:
    rules = [
        rule(1, time(9, 0), time(12, 0)),
        rule(1, time(13, 0), time(17, 0)),
        rule(3, time(9, 0), time(12, 0)),
        rule(4, time(10, 0), time(11, 0)),
    ]

    copies = copy_rules_to_all_days(1, rules)

    assert RuleWindow(3, time(9, 0), time(12, 0)) not in copies
    assert RuleWindow(3, time(13, 0), time(17, 0)) in copies
    assert RuleWindow(4, time(9, 0), time(12, 0)) in copies
    assert len(copies) == 11


def test_copied_rules_resolve_on_every_weekday() -> None:
    source = rule(1, time(9, 0), time(11, 0))
    copies = copy_rules_to_all_days(1, [source])

    slots = resolve_availability('mentor-1', 7, [source, *copies], SUNDAY)

    assert all(times == ['09:00', '10:00'] for times in slots.values())


@pytest.mark.parametrize('source_day_of_week', [-1, 7, True])
def test_copy_rules_rejects_invalid_source_day(source_day_of_week) -> None:
    with pytest.raises(InvalidArgumentError):
        copy_rules_to_all_days(source_day_of_week, [])


def test_drop_elapsed_only_trims_the_current_date() -> None:
    slots = {MONDAY: ['09:00', '10:00', '11:00'], date(2026, 1, 6): ['09:00']}

    trimmed = drop_elapsed(slots, datetime(2026, 1, 5, 10, 0))

    assert trimmed == {MONDAY: ['11:00'], date(2026, 1, 6): ['09:00']}
    assert slots[MONDAY] == ['09:00', '10:00', '11:00']
