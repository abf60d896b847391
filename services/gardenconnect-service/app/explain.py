"""
Human-readable summaries of a MatchResult.

Time slots are grouped by day in first-seen order, the same grouping the
admin screens use when they render availability.
"""

from .scoring import MatchResult, TimeSlot, to_time_slot


def group_by_day(slots) -> dict[str, list[str]]:
    by_day: dict[str, list[str]] = {}
    for slot in slots:
        slot = to_time_slot(slot)
        by_day.setdefault(slot.day, []).append(slot.time)
    return by_day


def format_time_slots(slots) -> str:
    """Format slots as "Monday (Morning, Afternoon), Tuesday (Evening)"."""
    by_day = group_by_day(slots)
    if not by_day:
        return "None"
    return ", ".join(f"{day} ({', '.join(times)})" for day, times in by_day.items())


def _slot_list(slots: tuple[TimeSlot, ...]) -> str:
    by_day = group_by_day(slots)
    return ", ".join(
        f"{day} {time}" for day, times in by_day.items() for time in times
    )


def explain(result: MatchResult) -> list[str]:
    parts = []

    skills = result.skills_match
    if skills.matched:
        parts.append(f"Matched skills: {', '.join(skills.matched)}")
    if skills.missing:
        parts.append(f"Missing skills: {', '.join(skills.missing)}")

    schedule = result.schedule_match
    if schedule.matched:
        parts.append(f"Available for: {_slot_list(schedule.matched)}")
    if schedule.missing:
        parts.append(f"Not available for: {_slot_list(schedule.missing)}")

    return parts


def explanation_text(result: MatchResult) -> str:
    return ". ".join(explain(result))
