"""Derive concrete bookable slots from a mentor's weekly availability rules.

Rules are recurring wall-clock windows keyed by day of week (0 = Sunday).
Resolution is pure: callers fetch the rules, pass an explicit reference date
and get back ``{date: ["HH:MM", ...]}`` for every date in the horizon. Dates
without anything to offer map to an empty list.

The result is what the mentor has made *structurally* available. Whether a
slot is still free is decided when the appointment is written.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, NamedTuple

from mentorhub.core import config
from mentorhub.scheduling.errors import InvalidArgumentError, MalformedRuleError

logger = logging.getLogger(__name__)

SLOT_INTERVAL = timedelta(hours=1)
DAYS_PER_WEEK = 7


class RuleWindow(NamedTuple):
    day_of_week: int
    start_time: time
    end_time: time


def day_of_week(value: date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return value.isoweekday() % DAYS_PER_WEEK


def format_slot(value: time) -> str:
    return value.strftime('%H:%M')


def parse_wall_clock(value: Any) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if isinstance(value, str):
        return time.fromisoformat(value.strip()).replace(second=0, microsecond=0, tzinfo=None)
    raise ValueError(f'unsupported time value {value!r}')


def expand_window(start_time: time, end_time: time) -> list[str]:
    """Hourly start marks in ``[start_time, end_time)``."""
    anchor = date.min
    current = datetime.combine(anchor, start_time)
    end = datetime.combine(anchor, end_time)

    marks: list[str] = []
    while current + SLOT_INTERVAL <= end:
        marks.append(format_slot(current.time()))
        current += SLOT_INTERVAL
    return marks


def default_grid() -> list[str]:
    return expand_window(config.DEFAULT_GRID_START, config.DEFAULT_GRID_END)


def active_rules(rules: Iterable[Any]) -> list[Any]:
    return [rule for rule in rules if getattr(rule, 'is_available', True)]


def to_window(rule: Any) -> RuleWindow:
    rule_id = getattr(rule, 'id', None)
    weekday = rule.day_of_week
    if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday < DAYS_PER_WEEK:
        raise MalformedRuleError(rule_id, f'day_of_week {weekday!r} is not in 0..6')

    try:
        start_time = parse_wall_clock(rule.start_time)
        end_time = parse_wall_clock(rule.end_time)
    except (TypeError, ValueError) as exc:
        raise MalformedRuleError(rule_id, str(exc)) from exc

    if start_time >= end_time:
        raise MalformedRuleError(
            rule_id,
            f'start_time {format_slot(start_time)} is not before end_time {format_slot(end_time)}',
        )

    return RuleWindow(weekday, start_time, end_time)


def validate_rules(rules: Iterable[Any]) -> tuple[list[RuleWindow], list[MalformedRuleError]]:
    """Split active rules into expandable windows and malformed-rule records."""
    windows: list[RuleWindow] = []
    malformed: list[MalformedRuleError] = []

    for rule in active_rules(rules):
        try:
            windows.append(to_window(rule))
        except MalformedRuleError as error:
            logger.warning('Skipping availability rule: %s', error)
            malformed.append(error)

    return windows, malformed


def _validate_arguments(mentor_id: str, horizon_days: int) -> None:
    if not isinstance(mentor_id, str) or not mentor_id.strip():
        raise InvalidArgumentError('mentor_id is required.')
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days <= 0:
        raise InvalidArgumentError('horizon_days must be a positive integer.')


def horizon_dates(reference_date: date, horizon_days: int) -> list[date]:
    return [reference_date + timedelta(days=offset) for offset in range(horizon_days)]


class Resolution(NamedTuple):
    slots: dict[date, list[str]]
    malformed: list[MalformedRuleError]


def resolve_availability(
    mentor_id: str,
    horizon_days: int,
    rules: Iterable[Any],
    reference_date: date,
) -> dict[date, list[str]]:
    return resolve(mentor_id, horizon_days, rules, reference_date).slots


def resolve(
    mentor_id: str,
    horizon_days: int,
    rules: Iterable[Any],
    reference_date: date,
) -> Resolution:
    """Like :func:`resolve_availability`, also reporting the rules that were skipped."""
    _validate_arguments(mentor_id, horizon_days)

    rules = active_rules(rules)
    dates = horizon_dates(reference_date, horizon_days)

    if not rules:
        grid = default_grid()
        logger.debug('Mentor %s has no custom availability, offering default grid', mentor_id)
        return Resolution({current_day: list(grid) for current_day in dates}, [])

    windows, malformed = validate_rules(rules)

    marks_by_weekday: dict[int, set[str]] = {weekday: set() for weekday in range(DAYS_PER_WEEK)}
    for window in windows:
        marks_by_weekday[window.day_of_week].update(expand_window(window.start_time, window.end_time))

    # HH:MM strings sort chronologically.
    slots = {current_day: sorted(marks_by_weekday[day_of_week(current_day)]) for current_day in dates}
    return Resolution(slots, malformed)


def copy_rules_to_all_days(source_day_of_week: int, rules: Iterable[Any]) -> list[RuleWindow]:
    """Windows to insert so every other weekday mirrors ``source_day_of_week``.

    Windows already present on a target weekday are not repeated. The source
    weekday's own rules are left alone.
    """
    if isinstance(source_day_of_week, bool) or not isinstance(source_day_of_week, int) \
            or not 0 <= source_day_of_week < DAYS_PER_WEEK:
        raise InvalidArgumentError('source_day_of_week must be between 0 (Sunday) and 6 (Saturday).')

    windows, _ = validate_rules(rules)
    existing = set(windows)
    source_windows = sorted(
        {(window.start_time, window.end_time) for window in windows if window.day_of_week == source_day_of_week}
    )

    copies: list[RuleWindow] = []
    for target in range(DAYS_PER_WEEK):
        if target == source_day_of_week:
            continue
        for start_time, end_time in source_windows:
            window = RuleWindow(target, start_time, end_time)
            if window not in existing:
                copies.append(window)

    return copies


def drop_elapsed(slots: dict[date, list[str]], now: datetime) -> dict[date, list[str]]:
    """Remove marks on ``now``'s date that start at or before ``now``.

    ``now`` must be on the same wall clock as the rules.
    """
    cutoff = format_slot(now.time())
    return {
        slot_date: [mark for mark in times if mark > cutoff] if slot_date == now.date() else times
        for slot_date, times in slots.items()
    }
