from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from .vocabulary import Day, ExperienceLevel, MatchStatus, MatchType, Skill, Time

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_ALLOWED_ROLES = {"admin", "coordinator"}


def _dedupe(values: list) -> list:
    out = []
    for v in values:
        if v not in out:
            out.append(v)
    return out


class TimeSlot(BaseModel):
    day: Day
    time: Time


class CreateVolunteer(BaseModel):
    name: NonBlank
    email: EmailStr
    skills: List[Skill] = Field(min_length=1)
    availability: List[TimeSlot] = Field(min_length=1)
    location: NonBlank
    experience: ExperienceLevel

    def model_post_init(self, __context):
        object.__setattr__(self, "skills", _dedupe(self.skills))
        object.__setattr__(self, "availability", _dedupe(self.availability))


class CreateGarden(BaseModel):
    garden_name: NonBlank
    location: NonBlank
    contact_email: EmailStr
    skills_needed: List[Skill] = Field(min_length=1)
    needs_schedule: List[TimeSlot] = Field(min_length=1)
    notes: Optional[str] = None

    def model_post_init(self, __context):
        object.__setattr__(self, "skills_needed", _dedupe(self.skills_needed))
        object.__setattr__(self, "needs_schedule", _dedupe(self.needs_schedule))


class VolunteerOut(BaseModel):
    id: int
    name: str
    email: str
    skills: List[str]
    availability: List[TimeSlot]
    location: str
    experience_level: str
    created_at: Optional[datetime] = None


class GardenOut(BaseModel):
    id: int
    garden_name: str
    location: str
    contact_email: str
    skills_needed: List[str]
    needs_schedule: List[TimeSlot]
    additional_notes: Optional[str] = None
    created_at: Optional[datetime] = None


class VolunteerCreated(BaseModel):
    message: str
    volunteer: VolunteerOut


class GardenCreated(BaseModel):
    message: str
    garden: GardenOut


# ---- Matching ----

class SkillsMatch(BaseModel):
    score: float
    matched: List[str]
    missing: List[str]
    percentage: str


class ScheduleMatch(BaseModel):
    score: float
    matched: List[TimeSlot]
    missing: List[TimeSlot]
    volunteer_available: List[TimeSlot] = Field(default_factory=list)
    percentage: str


class MatchDetails(BaseModel):
    skills_match: SkillsMatch
    schedule_match: ScheduleMatch
    overall_score: float


class VolunteerMatch(BaseModel):
    volunteer_id: int
    volunteer_name: str
    volunteer_email: str
    volunteer_skills: List[str]
    volunteer_availability: List[TimeSlot]
    match_details: MatchDetails
    explanation: str


class AutoMatchResponse(BaseModel):
    garden: GardenOut
    min_score: float
    matches: List[VolunteerMatch]


class CreateMatchRequest(BaseModel):
    volunteer_id: int
    garden_id: int
    match_type: MatchType = "manual"
    notes: Optional[str] = None


class UpdateMatchStatus(BaseModel):
    status: MatchStatus
    notes: Optional[str] = None


class MatchOut(BaseModel):
    id: int
    volunteer_id: int
    garden_id: int
    match_type: str
    match_score: Optional[float] = None
    match_details: Optional[MatchDetails] = None
    notes: Optional[str] = None
    status: str
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    volunteer_name: str
    volunteer_email: str
    garden_name: str
    garden_location: str
    garden_contact_email: str


class MatchCreated(BaseModel):
    message: str
    match: MatchOut


# ---- Auth ----

class Register(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    roles: List[str] = Field(default_factory=lambda: ["coordinator"])

    @field_validator("roles")
    @classmethod
    def _normalize_roles(cls, roles: List[str]) -> List[str]:
        normalized = []
        for r in roles:
            rr = (r or "").strip().lower()
            if rr not in _ALLOWED_ROLES:
                raise ValueError(f"Invalid role: {r}. Allowed: {sorted(_ALLOWED_ROLES)}")
            if rr not in normalized:
                normalized.append(rr)
        return normalized or ["coordinator"]


class Login(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class Message(BaseModel):
    message: str
