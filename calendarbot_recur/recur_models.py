"""Data models for recurrence rules - CalendarBot Recur version.

RecurrenceRule is a frozen pydantic model: every range and cross-field constraint
from RFC 5545 section 3.3.10 is checked when the rule is built, so iteration never
sees an invalid rule. Validation failures surface as MalformedRuleError.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .recur_exceptions import MalformedRuleError
from .recur_values import DateValue


class Frequency(str, Enum):
    """Recurrence frequencies, finest first."""

    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @property
    def rank(self) -> int:
        """Granularity rank; SECONDLY is 0, YEARLY is 6."""
        return _FREQUENCY_ORDER.index(self)

    @property
    def is_sub_daily(self) -> bool:
        return self.rank < Frequency.DAILY.rank


_FREQUENCY_ORDER = list(Frequency)


class Weekday(str, Enum):
    """Days of the week; index matches datetime.date.weekday()."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def index(self) -> int:
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return _WEEKDAY_ORDER[index % 7]


_WEEKDAY_ORDER = list(Weekday)


class ByDay(BaseModel):
    """A BYDAY entry: a weekday with an optional signed ordinal (e.g. -1FR)."""

    weekday: Weekday
    ordinal: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise MalformedRuleError(f"Invalid BYDAY entry: {e.errors()[0]['msg']}") from e

    @field_validator("ordinal")
    @classmethod
    def _check_ordinal(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and (value == 0 or abs(value) > 53):
            raise ValueError(f"BYDAY ordinal out of range: {value}")
        return value


def _check_values(name: str, values: tuple[int, ...], low: int, high: int, signed: bool) -> tuple[int, ...]:
    """Range-check a BY-field list and return it deduplicated and sorted."""
    for value in values:
        valid = value != 0 and low <= abs(value) <= high if signed else low <= value <= high
        if not valid:
            raise ValueError(f"{name} value out of range: {value}")
    return tuple(sorted(set(values)))


class RecurrenceRule(BaseModel):
    """An RFC 5545 recurrence rule (RRULE/EXRULE value).

    Fields mirror the rule parts: FREQ, INTERVAL, COUNT, UNTIL, WKST and the
    BY-field lists. Non-standard ``X-`` parts are kept opaquely in ``x_rules`` and
    ignored by the generator.

    Raises:
        MalformedRuleError: If any field is out of range or fields conflict
    """

    frequency: Frequency
    interval: int = Field(default=1, ge=1, description="Periods between occurrences")
    count: Optional[int] = Field(default=None, ge=1, description="Total occurrences")
    until: Optional[DateValue] = Field(default=None, description="Inclusive upper bound")
    week_start: Weekday = Weekday.MO

    by_second: tuple[int, ...] = ()
    by_minute: tuple[int, ...] = ()
    by_hour: tuple[int, ...] = ()
    by_day: tuple[ByDay, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_year_day: tuple[int, ...] = ()
    by_week_no: tuple[int, ...] = ()
    by_month: tuple[int, ...] = ()
    by_set_pos: tuple[int, ...] = ()

    x_rules: dict[str, str] = Field(default_factory=dict, description="Non-standard rule parts")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise MalformedRuleError(f"Invalid recurrence rule: {messages}") from e

    @field_validator("until", mode="before")
    @classmethod
    def _coerce_until(cls, value: Any) -> Any:
        if isinstance(value, (date, datetime)):
            return DateValue.from_python(value)
        return value

    @field_validator("by_second")
    @classmethod
    def _check_by_second(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYSECOND", value, 0, 59, signed=False)

    @field_validator("by_minute")
    @classmethod
    def _check_by_minute(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYMINUTE", value, 0, 59, signed=False)

    @field_validator("by_hour")
    @classmethod
    def _check_by_hour(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYHOUR", value, 0, 23, signed=False)

    @field_validator("by_month_day")
    @classmethod
    def _check_by_month_day(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYMONTHDAY", value, 1, 31, signed=True)

    @field_validator("by_year_day")
    @classmethod
    def _check_by_year_day(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYYEARDAY", value, 1, 366, signed=True)

    @field_validator("by_week_no")
    @classmethod
    def _check_by_week_no(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYWEEKNO", value, 1, 53, signed=True)

    @field_validator("by_month")
    @classmethod
    def _check_by_month(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYMONTH", value, 1, 12, signed=False)

    @field_validator("by_set_pos")
    @classmethod
    def _check_by_set_pos(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return _check_values("BYSETPOS", value, 1, 366, signed=True)

    @field_validator("by_day")
    @classmethod
    def _dedupe_by_day(cls, value: tuple[ByDay, ...]) -> tuple[ByDay, ...]:
        unique = {(entry.weekday.index, entry.ordinal or 0): entry for entry in value}
        return tuple(unique[key] for key in sorted(unique))

    @model_validator(mode="after")
    def _check_combinations(self) -> "RecurrenceRule":
        freq = self.frequency
        if self.count is not None and self.until is not None:
            raise ValueError("COUNT and UNTIL are mutually exclusive")
        if self.by_week_no and freq != Frequency.YEARLY:
            raise ValueError("BYWEEKNO is only valid with FREQ=YEARLY")
        if self.by_year_day and freq in (Frequency.DAILY, Frequency.WEEKLY, Frequency.MONTHLY):
            raise ValueError(f"BYYEARDAY is not valid with FREQ={freq.value}")
        if self.by_month_day and freq == Frequency.WEEKLY:
            raise ValueError("BYMONTHDAY is not valid with FREQ=WEEKLY")
        if any(entry.ordinal is not None for entry in self.by_day):
            if freq not in (Frequency.MONTHLY, Frequency.YEARLY):
                raise ValueError(f"BYDAY ordinals are not valid with FREQ={freq.value}")
            if freq == Frequency.YEARLY and self.by_week_no:
                raise ValueError("BYDAY ordinals are not valid with BYWEEKNO")
        if self.by_set_pos and not self.has_by_fields(exclude_set_pos=True):
            raise ValueError("BYSETPOS requires another BY-field")
        return self

    def has_by_fields(self, exclude_set_pos: bool = False) -> bool:
        """Whether any BY-field constraint is present."""
        fields = [
            self.by_second,
            self.by_minute,
            self.by_hour,
            self.by_day,
            self.by_month_day,
            self.by_year_day,
            self.by_week_no,
            self.by_month,
        ]
        if not exclude_set_pos:
            fields.append(self.by_set_pos)
        return any(fields)

    @property
    def has_time_fields(self) -> bool:
        return bool(self.by_hour or self.by_minute or self.by_second)
