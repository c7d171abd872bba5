"""Single-rule occurrence generator for CalendarBot Recur.

Turns one RecurrenceRule plus an anchor (DTSTART) into an ascending, lazily
produced sequence of DateValues. Work is organised in periods - one
FREQ/INTERVAL step each (a year for YEARLY, the WKST-aligned week for WEEKLY,
one hour for HOURLY and so on). Each period is expanded on demand:

1. candidate days of the period that pass every day-level BY-field
2. times of day (finer fields expand, the frequency's own field filters)
3. cross product, ascending
4. BYSETPOS selection
5. anchor / COUNT / UNTIL bookkeeping as values are pulled

Periods are addressed by index (0 is the period holding the anchor) so
advance_to() can jump straight to the period holding its target.
"""

from __future__ import annotations

import calendar
import logging
import math
from datetime import MAXYEAR, date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from .recur_config import RecurrenceConfig
from .recur_exceptions import ExhaustedError, MalformedRuleError
from .recur_iterator import RecurrenceIterator
from .recur_models import ByDay, Frequency, RecurrenceRule, Weekday
from .recur_values import FLOATING, DateOnly, DateTimeValue, DateValue

logger = logging.getLogger(__name__)

_SUB_DAILY_SECONDS = {
    Frequency.HOURLY: 3600,
    Frequency.MINUTELY: 60,
    Frequency.SECONDLY: 1,
}

# Days one period can span
_PERIOD_DAYS = {
    Frequency.YEARLY: 366,
    Frequency.MONTHLY: 31,
    Frequency.WEEKLY: 7,
    Frequency.DAILY: 1,
}

# Consecutive empty periods a sub-daily rule may visit before it is exhausted
SUB_DAILY_EMPTY_PERIODS = 100_000


class RuleIterator(RecurrenceIterator):
    """Generates the occurrences of one recurrence rule.

    Output values have the anchor's shape: a DateOnly anchor yields DateOnly
    values, a DateTimeValue anchor yields DateTimeValues in the anchor's zone.
    Candidates before the anchor are never produced and never counted.

    Raises:
        MalformedRuleError: If the rule needs a time of day but the anchor is a
            date without one (sub-daily frequency or BYHOUR/BYMINUTE/BYSECOND)
    """

    def __init__(
        self,
        rule: RecurrenceRule,
        anchor: DateValue,
        config: Optional[RecurrenceConfig] = None,
    ):
        self._rule = rule
        self._freq = rule.frequency
        self._interval = rule.interval
        self._date_only = isinstance(anchor, DateOnly)
        if self._date_only and (self._freq.is_sub_daily or rule.has_time_fields):
            raise MalformedRuleError(
                f"FREQ={self._freq.value} with time-of-day fields needs a date-time anchor"
            )

        config = config or RecurrenceConfig()
        self._search_years = config.empty_search_years

        if isinstance(anchor, DateTimeValue):
            self._zone = anchor.zone
            anchor_wall = anchor.wall_clock()
        else:
            self._zone = FLOATING
            anchor_wall = datetime(anchor.year, anchor.month, anchor.day)

        self._anchor_cmp = anchor.comparable()
        self._floor_cmp = self._anchor_cmp
        self._until_cmp = rule.until.comparable() if rule.until is not None else None
        self._remaining = rule.count
        self._done = False

        self._resolve_by_fields(anchor_wall)
        self._origin = self._period_origin(anchor_wall)
        self._period_index = -1
        self._last_productive_year = anchor_wall.year
        self._buffer: list[DateValue] = []
        self._position = 0

        if self._set_pos and min(abs(p) for p in self._set_pos) > self._max_period_candidates():
            self._finish("BYSETPOS beyond period size")

        logger.debug(
            "RuleIterator initialized: freq=%s, interval=%d, count=%s, until=%s, anchor=%s",
            self._freq.value,
            self._interval,
            rule.count,
            rule.until,
            anchor,
        )

    # ------------------------------------------------------------------
    # Rule normalisation
    # ------------------------------------------------------------------

    def _resolve_by_fields(self, anchor_wall: datetime) -> None:
        """Apply RFC 5545 defaults derived from the anchor and cache lookup sets."""
        rule = self._rule
        freq = self._freq
        by_month = rule.by_month
        by_month_day = rule.by_month_day
        by_day: tuple[ByDay, ...] = rule.by_day

        if not (rule.by_week_no or rule.by_year_day or by_month_day or by_day):
            if freq == Frequency.YEARLY:
                if not by_month:
                    by_month = (anchor_wall.month,)
                by_month_day = (anchor_wall.day,)
            elif freq == Frequency.MONTHLY:
                by_month_day = (anchor_wall.day,)
            elif freq == Frequency.WEEKLY:
                by_day = (ByDay(weekday=Weekday.from_index(anchor_wall.weekday())),)

        self._by_month = frozenset(by_month)
        self._by_month_day = frozenset(by_month_day)
        self._by_year_day = frozenset(rule.by_year_day)
        self._by_week_no = frozenset(rule.by_week_no)
        self._plain_weekdays = frozenset(d.weekday.index for d in by_day if d.ordinal is None)
        self._nth_weekdays = frozenset((d.weekday.index, d.ordinal) for d in by_day if d.ordinal is not None)
        self._has_by_day = bool(by_day)
        self._week_start = rule.week_start.index
        self._set_pos = rule.by_set_pos

        self._by_hour = frozenset(rule.by_hour)
        self._by_minute = frozenset(rule.by_minute)
        self._by_second = frozenset(rule.by_second)
        self._hours = rule.by_hour or (anchor_wall.hour,)
        self._minutes = rule.by_minute or (anchor_wall.minute,)
        self._seconds = rule.by_second or (anchor_wall.second,)

    def _period_origin(self, anchor_wall: datetime) -> datetime:
        """Start of the period that holds the anchor."""
        freq = self._freq
        if freq == Frequency.YEARLY:
            return datetime(anchor_wall.year, 1, 1)
        if freq == Frequency.MONTHLY:
            return datetime(anchor_wall.year, anchor_wall.month, 1)
        day = datetime(anchor_wall.year, anchor_wall.month, anchor_wall.day)
        if freq == Frequency.WEEKLY:
            return day - timedelta(days=(day.weekday() - self._week_start) % 7)
        if freq == Frequency.DAILY:
            return day
        if freq == Frequency.HOURLY:
            return anchor_wall.replace(minute=0, second=0)
        if freq == Frequency.MINUTELY:
            return anchor_wall.replace(second=0)
        return anchor_wall

    def _max_period_candidates(self) -> int:
        """Upper bound on the candidates a single period can hold."""
        freq = self._freq
        if freq == Frequency.SECONDLY:
            return 1
        if freq == Frequency.MINUTELY:
            return len(self._seconds)
        if freq == Frequency.HOURLY:
            return len(self._minutes) * len(self._seconds)
        times = 1 if self._date_only else len(self._hours) * len(self._minutes) * len(self._seconds)
        return _PERIOD_DAYS[freq] * times

    # ------------------------------------------------------------------
    # Period addressing
    # ------------------------------------------------------------------

    def _cursor_for(self, index: int) -> Optional[datetime]:
        """Start of period number index, or None past the supported calendar range."""
        freq = self._freq
        steps = index * self._interval
        try:
            if freq == Frequency.YEARLY:
                if self._origin.year + steps > MAXYEAR:
                    return None
                return self._origin + relativedelta(years=steps)
            if freq == Frequency.MONTHLY:
                if self._origin.year + (self._origin.month - 1 + steps) // 12 > MAXYEAR:
                    return None
                return self._origin + relativedelta(months=steps)
            if freq == Frequency.WEEKLY:
                return self._origin + timedelta(weeks=steps)
            if freq == Frequency.DAILY:
                return self._origin + timedelta(days=steps)
            return self._origin + timedelta(seconds=steps * _SUB_DAILY_SECONDS[freq])
        except OverflowError:
            return None

    def _index_for(self, wall: datetime) -> int:
        """Index of the last period starting at or before wall (may be negative)."""
        freq = self._freq
        origin = self._origin
        if freq == Frequency.YEARLY:
            elapsed = wall.year - origin.year
        elif freq == Frequency.MONTHLY:
            elapsed = (wall.year - origin.year) * 12 + wall.month - origin.month
        elif freq == Frequency.WEEKLY:
            elapsed = (wall.date() - origin.date()).days // 7
        elif freq == Frequency.DAILY:
            elapsed = (wall.date() - origin.date()).days
        else:
            seconds = int((wall - origin).total_seconds())
            return seconds // (_SUB_DAILY_SECONDS[freq] * self._interval)
        return elapsed // self._interval

    def _first_index_at_or_after(self, boundary: datetime) -> int:
        """Index of the first sub-daily period starting at or after boundary."""
        step = _SUB_DAILY_SECONDS[self._freq] * self._interval
        return math.ceil((boundary - self._origin).total_seconds() / step)

    # ------------------------------------------------------------------
    # Day and time filters
    # ------------------------------------------------------------------

    def _week1_start(self, year: int) -> date:
        """First day of week 1: the first WKST-aligned week with four days in year."""
        jan1 = date(year, 1, 1)
        offset = (jan1.weekday() - self._week_start) % 7
        if offset <= 3:
            return jan1 - timedelta(days=offset)
        return jan1 + timedelta(days=7 - offset)

    def _week_no_matches(self, day: date) -> bool:
        year = day.year
        start = self._week1_start(year)
        if day < start:
            year -= 1
            start = self._week1_start(year)
        else:
            next_start = self._week1_start(year + 1)
            if day >= next_start:
                year += 1
                start = next_start
        num_weeks = (self._week1_start(year + 1) - start).days // 7
        week_no = (day - start).days // 7 + 1
        return week_no in self._by_week_no or week_no - num_weeks - 1 in self._by_week_no

    def _weekday_matches(self, day: date) -> bool:
        weekday = day.weekday()
        if weekday in self._plain_weekdays:
            return True
        if not self._nth_weekdays:
            return False
        if self._freq == Frequency.YEARLY and not self._by_month:
            position = day.timetuple().tm_yday
            length = 366 if calendar.isleap(day.year) else 365
        else:
            position = day.day
            length = calendar.monthrange(day.year, day.month)[1]
        forward = (position - 1) // 7 + 1
        backward = -((length - position) // 7 + 1)
        return (weekday, forward) in self._nth_weekdays or (weekday, backward) in self._nth_weekdays

    def _day_matches(self, day: date) -> bool:
        if self._by_month and day.month not in self._by_month:
            return False
        if self._by_week_no and not self._week_no_matches(day):
            return False
        if self._by_year_day:
            year_day = day.timetuple().tm_yday
            year_length = 366 if calendar.isleap(day.year) else 365
            if year_day not in self._by_year_day and year_day - year_length - 1 not in self._by_year_day:
                return False
        if self._by_month_day:
            month_length = calendar.monthrange(day.year, day.month)[1]
            if day.day not in self._by_month_day and day.day - month_length - 1 not in self._by_month_day:
                return False
        if self._has_by_day and not self._weekday_matches(day):
            return False
        return True

    def _period_days(self, cursor: datetime) -> list[date]:
        freq = self._freq
        start = cursor.date()
        if freq == Frequency.YEARLY:
            months = sorted(self._by_month) if self._by_month else range(1, 13)
            spans = [(date(start.year, m, 1), calendar.monthrange(start.year, m)[1]) for m in months]
        elif freq == Frequency.MONTHLY:
            spans = [(start, calendar.monthrange(start.year, start.month)[1])]
        elif freq == Frequency.WEEKLY:
            spans = [(start, 7)]
        else:
            spans = [(start, 1)]
        days = []
        for first, length in spans:
            for offset in range(length):
                day = first + timedelta(days=offset)
                if self._day_matches(day):
                    days.append(day)
        return days

    def _period_times(self, cursor: datetime) -> list[time]:
        freq = self._freq
        if self._date_only:
            return [time()]
        if not freq.is_sub_daily:
            return [time(h, m, s) for h in self._hours for m in self._minutes for s in self._seconds]
        if self._by_hour and cursor.hour not in self._by_hour:
            return []
        if freq == Frequency.HOURLY:
            return [time(cursor.hour, m, s) for m in self._minutes for s in self._seconds]
        if self._by_minute and cursor.minute not in self._by_minute:
            return []
        if freq == Frequency.MINUTELY:
            return [time(cursor.hour, cursor.minute, s) for s in self._seconds]
        if self._by_second and cursor.second not in self._by_second:
            return []
        return [cursor.time()]

    def _sub_daily_skip(self, cursor: datetime) -> Optional[datetime]:
        """Next boundary worth visiting when a coarser filter rejects cursor, else None."""
        if not self._day_matches(cursor.date()):
            return datetime.combine(cursor.date() + timedelta(days=1), time())
        freq = self._freq
        if freq == Frequency.HOURLY:
            return None
        if self._by_hour and cursor.hour not in self._by_hour:
            return cursor.replace(minute=0, second=0) + timedelta(hours=1)
        if freq == Frequency.SECONDLY and self._by_minute and cursor.minute not in self._by_minute:
            return cursor.replace(second=0) + timedelta(minutes=1)
        return None

    # ------------------------------------------------------------------
    # Period expansion
    # ------------------------------------------------------------------

    def _expand(self, cursor: datetime) -> list[datetime]:
        days = self._period_days(cursor)
        if not days:
            return []
        times = self._period_times(cursor)
        candidates = [datetime.combine(day, t) for day in days for t in times]
        if self._set_pos and candidates:
            selected = set()
            total = len(candidates)
            for position in self._set_pos:
                index = position - 1 if position > 0 else total + position
                if 0 <= index < total:
                    selected.add(candidates[index])
            candidates = sorted(selected)
        return candidates

    def _to_value(self, wall: datetime) -> DateValue:
        if self._date_only:
            return DateOnly(wall.year, wall.month, wall.day)
        return DateTimeValue.from_naive(wall, self._zone)

    def _finish(self, reason: str) -> None:
        if not self._done:
            logger.debug("RuleIterator exhausted (%s) after period %d", reason, self._period_index)
        self._done = True
        self._buffer = []
        self._position = 0

    def _load_next_period(self) -> None:
        """Advance to the next period producing candidates, or finish."""
        index = self._period_index + 1
        visited = 0
        while True:
            cursor = self._cursor_for(index)
            if cursor is None:
                self._finish("calendar range")
                return
            if cursor.year > self._last_productive_year + self._search_years:
                self._finish("empty search horizon")
                return
            if self._freq.is_sub_daily:
                visited += 1
                if visited > SUB_DAILY_EMPTY_PERIODS:
                    self._finish("empty sub-daily period limit")
                    return
                boundary = self._sub_daily_skip(cursor)
                if boundary is not None:
                    index = max(index + 1, self._first_index_at_or_after(boundary))
                    continue
            candidates = self._expand(cursor)
            if candidates:
                self._period_index = index
                self._last_productive_year = cursor.year
                self._buffer = [self._to_value(wall) for wall in candidates]
                self._position = 0
                return
            index += 1

    def _fill(self) -> bool:
        """Make sure the buffer head is the next value to emit."""
        while not self._done:
            if self._remaining == 0:
                self._finish("count reached")
                return False
            if self._position < len(self._buffer):
                head = self._buffer[self._position].comparable()
                if self._until_cmp is not None and head > self._until_cmp:
                    self._finish("until passed")
                    return False
                if head < self._floor_cmp:
                    self._position += 1
                    continue
                return True
            self._load_next_period()
        return False

    # ------------------------------------------------------------------
    # RecurrenceIterator contract
    # ------------------------------------------------------------------

    def has_next(self) -> bool:
        return self._fill()

    def next(self) -> DateValue:
        if not self._fill():
            raise ExhaustedError("Recurrence rule has no remaining occurrences")
        value = self._buffer[self._position]
        self._position += 1
        if self._remaining is not None:
            self._remaining -= 1
        return value

    def advance_to(self, target: DateValue) -> None:
        """Skip to the first occurrence >= target.

        Rules without COUNT jump directly to the period holding target. With COUNT
        every skipped occurrence still consumes the count, so candidates are
        stepped through one by one.
        """
        target_cmp = target.comparable()
        if self._done or target_cmp <= self._floor_cmp:
            return
        if self._until_cmp is not None and target_cmp > self._until_cmp:
            self._finish("advanced past until")
            return

        if self._remaining is not None:
            while self._fill() and self._buffer[self._position].comparable() < target_cmp:
                self.next()
            return

        self._floor_cmp = target_cmp
        if self._buffer and self._buffer[-1].comparable() >= target_cmp:
            return

        target_wall = target.utc_naive() + timedelta(minutes=self._zone.offset_minutes)
        index = self._index_for(target_wall)
        if index > self._period_index:
            cursor = self._cursor_for(index)
            if cursor is None:
                self._finish("advanced past calendar range")
                return
            logger.debug("RuleIterator skipping from period %d to %d", self._period_index, index)
            self._period_index = index - 1
            self._last_productive_year = cursor.year
            self._buffer = []
            self._position = 0
