"""Punch sequence state machine.

The state of an employee within a work day is the type of their latest
punch (or ``NONE``). ``TRANSITIONS`` is the complete legality table and
``_REJECTIONS`` holds a next-step hint for every illegal pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ..core.enums import PunchType
from ..core.exceptions import PunchSequenceError
from .model import PunchEvent, order_punches


class PunchState(str, Enum):
    NONE = "NONE"
    IN = "IN"
    OUT = "OUT"
    BREAK = "BREAK"
    RESUME = "RESUME"

    @classmethod
    def after(cls, last_type: Optional[PunchType]) -> "PunchState":
        return cls.NONE if last_type is None else cls(PunchType(last_type).value)


TRANSITIONS: dict[PunchState, frozenset[PunchType]] = {
    PunchState.NONE: frozenset({PunchType.IN}),
    PunchState.IN: frozenset({PunchType.OUT, PunchType.BREAK}),
    PunchState.RESUME: frozenset({PunchType.OUT, PunchType.BREAK}),
    PunchState.OUT: frozenset({PunchType.IN}),
    PunchState.BREAK: frozenset({PunchType.RESUME}),
}

_CLOCK_IN_FIRST = "You must clock in first."
_ALREADY_IN = "Already clocked in. Clock out or start a break first."
_NO_BREAK_TO_RESUME = "You must start a break before resuming work."
_BREAK_ACTIVE = "You have an active break. Resume work before continuing."

_REJECTIONS: dict[tuple[PunchState, PunchType], str] = {
    (PunchState.NONE, PunchType.OUT): _CLOCK_IN_FIRST,
    (PunchState.NONE, PunchType.BREAK): _CLOCK_IN_FIRST,
    (PunchState.NONE, PunchType.RESUME): _CLOCK_IN_FIRST,
    (PunchState.IN, PunchType.IN): _ALREADY_IN,
    (PunchState.IN, PunchType.RESUME): _NO_BREAK_TO_RESUME,
    (PunchState.RESUME, PunchType.IN): _ALREADY_IN,
    (PunchState.RESUME, PunchType.RESUME): "Work was already resumed. Start a break before resuming again.",
    (PunchState.OUT, PunchType.OUT): "Already clocked out. Clock in first.",
    (PunchState.OUT, PunchType.BREAK): "You need an active work session to start a break.",
    (PunchState.OUT, PunchType.RESUME): _NO_BREAK_TO_RESUME,
    (PunchState.BREAK, PunchType.IN): _BREAK_ACTIVE,
    (PunchState.BREAK, PunchType.OUT): "You have an active break. Resume work before clocking out.",
    (PunchState.BREAK, PunchType.BREAK): "A break is already active. Resume work before starting another break.",
}


def has_open_break(ordered: Sequence[PunchEvent]) -> bool:
    """True when some BREAK in the sequence has no later RESUME."""
    open_break = False
    for p in ordered:
        if p.punch_type == PunchType.BREAK:
            open_break = True
        elif p.punch_type == PunchType.RESUME:
            open_break = False
    return open_break


def validate_next_punch(punches: Sequence[PunchEvent], requested: PunchType) -> PunchState:
    """Check that ``requested`` may follow the work day's punches.

    Returns the state the employee will be in once the punch is recorded.
    Raises ``PunchSequenceError`` with a next-step hint otherwise.
    """
    requested = PunchType(requested)
    ordered = order_punches(punches)
    state = PunchState.after(ordered[-1].punch_type if ordered else None)

    if requested not in TRANSITIONS[state]:
        raise PunchSequenceError(_REJECTIONS[(state, requested)])

    if requested != PunchType.RESUME and has_open_break(ordered):
        raise PunchSequenceError(_BREAK_ACTIVE)

    return PunchState(requested.value)


@dataclass(frozen=True)
class CurrentPunchState:
    """What an employee may do right now, derived from their latest punch."""

    current_state: Optional[PunchType]
    last_entry: Optional[PunchEvent]
    today_entries: list[PunchEvent] = field(default_factory=list)

    @property
    def state(self) -> PunchState:
        return PunchState.after(self.current_state)

    @property
    def can_punch_in(self) -> bool:
        return PunchType.IN in TRANSITIONS[self.state]

    @property
    def can_punch_out(self) -> bool:
        return PunchType.OUT in TRANSITIONS[self.state]

    @property
    def can_start_break(self) -> bool:
        return PunchType.BREAK in TRANSITIONS[self.state]

    @property
    def can_resume_break(self) -> bool:
        return PunchType.RESUME in TRANSITIONS[self.state]

    def to_dict(self) -> dict:
        return {
            "canPunchIn": self.can_punch_in,
            "canPunchOut": self.can_punch_out,
            "canStartBreak": self.can_start_break,
            "canResumeBreak": self.can_resume_break,
            "currentState": self.current_state.value if self.current_state else None,
        }


def project_state(punches: Sequence[PunchEvent]) -> CurrentPunchState:
    ordered = order_punches(punches)
    last = ordered[-1] if ordered else None
    return CurrentPunchState(
        current_state=last.punch_type if last else None,
        last_entry=last,
        today_entries=ordered,
    )
