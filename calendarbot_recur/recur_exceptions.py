"""Exception hierarchy for calendarbot_recur.

All errors raised by the recurrence engine derive from RecurrenceError so callers
can catch engine failures in one place while still distinguishing contract
violations (exhausted iterators, unsupported mutation) from bad input.
"""


class RecurrenceError(Exception):
    """Base exception for all recurrence engine errors."""


class MalformedRuleError(RecurrenceError):
    """Recurrence rule is structurally invalid.

    Raised when:
    - COUNT and UNTIL are both set
    - A BY-field value is outside its valid numeric range
    - A BY-field is not allowed for the rule's frequency
    - BYSETPOS is given without any other BY-field
    - Time-of-day fields are combined with a date-only anchor

    Always raised at construction time, never during iteration.
    """


class ExhaustedError(RecurrenceError):
    """next() was called on an iterator with no remaining values."""


class UnsupportedOperationError(RecurrenceError):
    """A mutating operation (remove, rewind) was requested on a forward-only iterator."""


class IcsAdapterError(RecurrenceError):
    """An icalendar component could not be mapped onto recurrence inputs.

    Raised when:
    - The component has no DTSTART
    - A decoded RRULE/EXRULE part has a value that cannot be interpreted
    """
