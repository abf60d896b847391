from typing import Literal

SKILL_OPTIONS = (
    "Gardening/Planting",
    "Weeding",
    "Harvesting",
    "Tool Maintenance",
    "Event Support",
    "Community Outreach",
)

DAY_OPTIONS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

TIME_OPTIONS = (
    "Morning",
    "Afternoon",
    "Evening",
)

EXPERIENCE_LEVELS = ("new", "some", "experienced")

MATCH_TYPES = ("auto", "manual")

MATCH_STATUSES = ("pending", "accepted", "declined", "cancelled")

Skill = Literal[
    "Gardening/Planting",
    "Weeding",
    "Harvesting",
    "Tool Maintenance",
    "Event Support",
    "Community Outreach",
]
Day = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
Time = Literal["Morning", "Afternoon", "Evening"]
ExperienceLevel = Literal["new", "some", "experienced"]
MatchType = Literal["auto", "manual"]
MatchStatus = Literal["pending", "accepted", "declined", "cancelled"]
