"""
Volunteer/garden compatibility scoring.

A volunteer is scored against one garden on two axes:

- skills: share of the garden's required skills the volunteer has
- schedule: share of the garden's required (day, time) slots the volunteer
  is available for, compared as exact pairs

Each share is weighted (40/60 by default) and the weighted sub-scores add up
to an overall score between 0 and 100. An empty requirement contributes 0,
it never auto-passes.

Everything here is pure: no I/O, no shared state.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

SKILLS_WEIGHT = 40.0
SCHEDULE_WEIGHT = 60.0
DEFAULT_MIN_SCORE = 30.0


class InvalidInputError(ValueError):
    """Raised when a volunteer or garden record cannot be scored."""


@dataclass(frozen=True)
class TimeSlot:
    day: str
    time: str

    def to_dict(self) -> dict:
        return {"day": self.day, "time": self.time}

    def __str__(self) -> str:
        return f"{self.day} {self.time}"


@dataclass(frozen=True)
class Weights:
    skills: float = SKILLS_WEIGHT
    schedule: float = SCHEDULE_WEIGHT

    def __post_init__(self):
        if self.skills < 0 or self.schedule < 0:
            raise ValueError("weights must be non-negative")
        if not math.isclose(self.skills + self.schedule, 100.0):
            raise ValueError(
                f"weights must add up to 100, got {self.skills} + {self.schedule}"
            )


DEFAULT_WEIGHTS = Weights()


@dataclass(frozen=True)
class SkillsMatch:
    score: float
    matched: tuple[str, ...]
    missing: tuple[str, ...]
    percentage: int

    def to_dict(self) -> dict:
        return {
            "score": round(self.score, 2),
            "matched": list(self.matched),
            "missing": list(self.missing),
            "percentage": f"{self.percentage}%",
        }


@dataclass(frozen=True)
class ScheduleMatch:
    score: float
    matched: tuple[TimeSlot, ...]
    missing: tuple[TimeSlot, ...]
    volunteer_available: tuple[TimeSlot, ...]
    percentage: int

    def to_dict(self) -> dict:
        return {
            "score": round(self.score, 2),
            "matched": [s.to_dict() for s in self.matched],
            "missing": [s.to_dict() for s in self.missing],
            "volunteer_available": [s.to_dict() for s in self.volunteer_available],
            "percentage": f"{self.percentage}%",
        }


@dataclass(frozen=True)
class MatchResult:
    skills_match: SkillsMatch
    schedule_match: ScheduleMatch
    overall_score: float

    def to_dict(self) -> dict:
        return {
            "skills_match": self.skills_match.to_dict(),
            "schedule_match": self.schedule_match.to_dict(),
            "overall_score": self.overall_score,
        }


# ---- input validation ----

def _field(record, name: str):
    if isinstance(record, Mapping):
        if name not in record:
            raise InvalidInputError(f"missing field: {name}")
        return record[name]
    if not hasattr(record, name):
        raise InvalidInputError(f"missing field: {name}")
    return getattr(record, name)


def _collection(value, name: str) -> list:
    if value is None:
        raise InvalidInputError(f"{name} is missing")
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise InvalidInputError(f"{name} must be a collection, got {type(value).__name__}")
    # one-shot iterators must only be consumed here
    return list(value)


def _skills(record, name: str) -> tuple[str, ...]:
    values = _collection(_field(record, name), name)
    for v in values:
        if not isinstance(v, str):
            raise InvalidInputError(f"{name} must contain strings, got {type(v).__name__}")
    # dict keeps first-seen order while dropping duplicates
    return tuple(dict.fromkeys(values))


def to_time_slot(value) -> TimeSlot:
    if isinstance(value, TimeSlot):
        return value
    if isinstance(value, Mapping):
        day, time = value.get("day"), value.get("time")
    else:
        day, time = getattr(value, "day", None), getattr(value, "time", None)

    if day is None or time is None:
        raise InvalidInputError(f"time slot needs both day and time, got {value!r}")
    if not isinstance(day, str) or not isinstance(time, str):
        raise InvalidInputError(f"time slot day/time must be strings, got {value!r}")
    if not day.strip() or not time.strip():
        raise InvalidInputError(f"time slot day/time must not be blank, got {value!r}")
    return TimeSlot(day=day, time=time)


def _slots(record, name: str) -> tuple[TimeSlot, ...]:
    values = _collection(_field(record, name), name)
    return tuple(dict.fromkeys(to_time_slot(v) for v in values))


# ---- arithmetic ----

def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _weighted(matched: int, required: int, weight: float) -> float:
    if required == 0:
        return 0.0
    return matched / required * weight


def _percentage(matched: int, required: int) -> int:
    if required == 0:
        return 0
    return int(_round_half_up(matched / required * 100))


# ---- public API ----

def score(volunteer, garden, weights: Weights = DEFAULT_WEIGHTS) -> MatchResult:
    """
    Score one volunteer against one garden.

    volunteer needs `skills` and `availability`; garden needs `skills_needed`
    and `needs_schedule`. Both may be mappings or attribute objects.
    """
    volunteer_skills = _skills(volunteer, "skills")
    availability = _slots(volunteer, "availability")
    skills_needed = _skills(garden, "skills_needed")
    needs_schedule = _slots(garden, "needs_schedule")

    have = set(volunteer_skills)
    matched_skills = tuple(s for s in skills_needed if s in have)
    missing_skills = tuple(s for s in skills_needed if s not in have)

    available = set(availability)
    matched_slots = tuple(s for s in needs_schedule if s in available)
    missing_slots = tuple(s for s in needs_schedule if s not in available)

    skills_score = _weighted(len(matched_skills), len(skills_needed), weights.skills)
    schedule_score = _weighted(len(matched_slots), len(needs_schedule), weights.schedule)

    return MatchResult(
        skills_match=SkillsMatch(
            score=skills_score,
            matched=matched_skills,
            missing=missing_skills,
            percentage=_percentage(len(matched_skills), len(skills_needed)),
        ),
        schedule_match=ScheduleMatch(
            score=schedule_score,
            matched=matched_slots,
            missing=missing_slots,
            volunteer_available=availability,
            percentage=_percentage(len(matched_slots), len(needs_schedule)),
        ),
        overall_score=_round_half_up(skills_score + schedule_score, 2),
    )


def find_matches(
    volunteers,
    garden,
    min_score: float = DEFAULT_MIN_SCORE,
    weights: Weights = DEFAULT_WEIGHTS,
) -> list[tuple[object, MatchResult]]:
    """
    Score every volunteer against `garden` and keep those with
    overall_score >= min_score, best first. Ties keep input order.
    """
    candidates = _collection(volunteers, "volunteers")
    if isinstance(min_score, bool) or not isinstance(min_score, (int, float)):
        raise InvalidInputError(f"min_score must be a number, got {min_score!r}")
    if math.isnan(min_score) or min_score < 0:
        raise InvalidInputError(f"min_score must be >= 0, got {min_score}")

    scored = []
    for volunteer in candidates:
        result = score(volunteer, garden, weights)
        if result.overall_score >= min_score:
            scored.append((volunteer, result))

    scored.sort(key=lambda pair: pair[1].overall_score, reverse=True)
    return scored
