"""
Storage for volunteers, gardens, matches and admin accounts.

Route handlers only see the abstract repositories below. They receive a
`Repositories` bundle from the `get_repositories` dependency, backed either
by SQLAlchemy or by an in-memory store that lives on `app.state`.

All repositories return plain dict records, which the scoring module and
the response schemas both accept.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuthUser, Garden, Match, Volunteer


class DuplicateError(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------- interfaces ----------------

class VolunteerRepository(ABC):
    @abstractmethod
    async def create(self, data: dict) -> dict: ...

    @abstractmethod
    async def get(self, volunteer_id: int) -> dict | None: ...

    @abstractmethod
    async def list(self) -> list[dict]: ...

    @abstractmethod
    async def delete(self, volunteer_id: int) -> bool: ...


class GardenRepository(ABC):
    @abstractmethod
    async def create(self, data: dict) -> dict: ...

    @abstractmethod
    async def get(self, garden_id: int) -> dict | None: ...

    @abstractmethod
    async def list(self) -> list[dict]: ...

    @abstractmethod
    async def delete(self, garden_id: int) -> bool: ...


class MatchRepository(ABC):
    @abstractmethod
    async def create(self, data: dict) -> dict: ...

    @abstractmethod
    async def get(self, match_id: int) -> dict | None: ...

    @abstractmethod
    async def list(self) -> list[dict]: ...

    @abstractmethod
    async def list_for_volunteer(self, volunteer_id: int) -> list[dict]: ...

    @abstractmethod
    async def list_for_garden(self, garden_id: int) -> list[dict]: ...

    @abstractmethod
    async def update_status(self, match_id: int, status: str, notes: str | None = None) -> dict | None: ...

    @abstractmethod
    async def mark_email_sent(self, match_id: int) -> dict | None: ...

    @abstractmethod
    async def delete(self, match_id: int) -> bool: ...

    @abstractmethod
    async def delete_pair(self, volunteer_id: int, garden_id: int) -> bool: ...


class UserRepository(ABC):
    @abstractmethod
    async def get_by_email(self, email: str) -> dict | None: ...

    @abstractmethod
    async def create(self, email: str, password_hash: str, roles: list[str]) -> dict: ...


@dataclass
class Repositories:
    volunteers: VolunteerRepository
    gardens: GardenRepository
    matches: MatchRepository
    users: UserRepository


# ---------------- record helpers ----------------

def _volunteer_dict(v: Volunteer) -> dict:
    return {
        "id": v.id,
        "name": v.name,
        "email": v.email,
        "skills": list(v.skills or []),
        "availability": list(v.availability or []),
        "location": v.location,
        "experience_level": v.experience_level,
        "created_at": v.created_at,
    }


def _garden_dict(g: Garden) -> dict:
    return {
        "id": g.id,
        "garden_name": g.garden_name,
        "location": g.location,
        "contact_email": g.contact_email,
        "skills_needed": list(g.skills_needed or []),
        "needs_schedule": list(g.needs_schedule or []),
        "additional_notes": g.additional_notes,
        "created_at": g.created_at,
    }


def _match_dict(m, volunteer: dict, garden: dict) -> dict:
    if isinstance(m, Match):
        m = {
            "id": m.id,
            "volunteer_id": m.volunteer_id,
            "garden_id": m.garden_id,
            "match_type": m.match_type,
            "match_score": m.match_score,
            "match_details": m.match_details,
            "notes": m.notes,
            "status": m.status,
            "email_sent": m.email_sent,
            "email_sent_at": m.email_sent_at,
            "created_at": m.created_at,
            "updated_at": m.updated_at,
        }
    return {
        **m,
        "volunteer_name": volunteer["name"],
        "volunteer_email": volunteer["email"],
        "volunteer_skills": volunteer["skills"],
        "volunteer_availability": volunteer["availability"],
        "garden_name": garden["garden_name"],
        "garden_location": garden["location"],
        "garden_contact_email": garden["contact_email"],
        "garden_skills_needed": garden["skills_needed"],
        "garden_needs_schedule": garden["needs_schedule"],
    }


# ---------------- SQLAlchemy ----------------

class SqlVolunteerRepository(VolunteerRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> dict:
        result = await self.db.execute(select(Volunteer).where(Volunteer.email == data["email"]))
        if result.scalar_one_or_none():
            raise DuplicateError("A volunteer with this email already exists")

        volunteer = Volunteer(
            name=data["name"],
            email=data["email"],
            skills=data["skills"],
            availability=data["availability"],
            location=data["location"],
            experience_level=data["experience_level"],
        )
        self.db.add(volunteer)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateError("A volunteer with this email already exists")
        await self.db.refresh(volunteer)
        return _volunteer_dict(volunteer)

    async def get(self, volunteer_id: int) -> dict | None:
        volunteer = await self.db.get(Volunteer, volunteer_id)
        return _volunteer_dict(volunteer) if volunteer else None

    async def list(self) -> list[dict]:
        result = await self.db.execute(
            select(Volunteer).order_by(Volunteer.created_at.desc(), Volunteer.id.desc())
        )
        return [_volunteer_dict(v) for v in result.scalars().all()]

    async def delete(self, volunteer_id: int) -> bool:
        volunteer = await self.db.get(Volunteer, volunteer_id)
        if not volunteer:
            return False
        await self.db.execute(delete(Match).where(Match.volunteer_id == volunteer_id))
        await self.db.delete(volunteer)
        await self.db.commit()
        return True


class SqlGardenRepository(GardenRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> dict:
        garden = Garden(
            garden_name=data["garden_name"],
            location=data["location"],
            contact_email=data["contact_email"],
            skills_needed=data["skills_needed"],
            needs_schedule=data["needs_schedule"],
            additional_notes=data.get("additional_notes"),
        )
        self.db.add(garden)
        await self.db.commit()
        await self.db.refresh(garden)
        return _garden_dict(garden)

    async def get(self, garden_id: int) -> dict | None:
        garden = await self.db.get(Garden, garden_id)
        return _garden_dict(garden) if garden else None

    async def list(self) -> list[dict]:
        result = await self.db.execute(
            select(Garden).order_by(Garden.created_at.desc(), Garden.id.desc())
        )
        return [_garden_dict(g) for g in result.scalars().all()]

    async def delete(self, garden_id: int) -> bool:
        garden = await self.db.get(Garden, garden_id)
        if not garden:
            return False
        await self.db.execute(delete(Match).where(Match.garden_id == garden_id))
        await self.db.delete(garden)
        await self.db.commit()
        return True


class SqlMatchRepository(MatchRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _joined(self, *where) -> list[dict]:
        stmt = (
            select(Match, Volunteer, Garden)
            .join(Volunteer, Match.volunteer_id == Volunteer.id)
            .join(Garden, Match.garden_id == Garden.id)
            .where(*where)
            .order_by(Match.created_at.desc(), Match.id.desc())
        )
        result = await self.db.execute(stmt)
        return [
            _match_dict(m, _volunteer_dict(v), _garden_dict(g))
            for m, v, g in result.all()
        ]

    async def create(self, data: dict) -> dict:
        result = await self.db.execute(
            select(Match).where(
                Match.volunteer_id == data["volunteer_id"],
                Match.garden_id == data["garden_id"],
            )
        )
        if result.scalar_one_or_none():
            raise DuplicateError("This volunteer is already matched to this garden")

        now = _utcnow()
        match = Match(
            volunteer_id=data["volunteer_id"],
            garden_id=data["garden_id"],
            match_type=data["match_type"],
            match_score=data.get("match_score"),
            match_details=data.get("match_details"),
            notes=data.get("notes"),
            status=data.get("status") or "pending",
            email_sent=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(match)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateError("This volunteer is already matched to this garden")
        return await self.get(match.id)

    async def get(self, match_id: int) -> dict | None:
        rows = await self._joined(Match.id == match_id)
        return rows[0] if rows else None

    async def list(self) -> list[dict]:
        return await self._joined()

    async def list_for_volunteer(self, volunteer_id: int) -> list[dict]:
        return await self._joined(Match.volunteer_id == volunteer_id)

    async def list_for_garden(self, garden_id: int) -> list[dict]:
        return await self._joined(Match.garden_id == garden_id)

    async def update_status(self, match_id: int, status: str, notes: str | None = None) -> dict | None:
        match = await self.db.get(Match, match_id)
        if not match:
            return None
        match.status = status
        match.notes = notes
        match.updated_at = _utcnow()
        await self.db.commit()
        return await self.get(match_id)

    async def mark_email_sent(self, match_id: int) -> dict | None:
        match = await self.db.get(Match, match_id)
        if not match:
            return None
        now = _utcnow()
        match.email_sent = True
        match.email_sent_at = now
        match.updated_at = now
        await self.db.commit()
        return await self.get(match_id)

    async def delete(self, match_id: int) -> bool:
        result = await self.db.execute(delete(Match).where(Match.id == match_id))
        await self.db.commit()
        return result.rowcount > 0

    async def delete_pair(self, volunteer_id: int, garden_id: int) -> bool:
        result = await self.db.execute(
            delete(Match).where(
                Match.volunteer_id == volunteer_id,
                Match.garden_id == garden_id,
            )
        )
        await self.db.commit()
        return result.rowcount > 0


class SqlUserRepository(UserRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> dict | None:
        result = await self.db.execute(select(AuthUser).where(AuthUser.email == email))
        user = result.scalar_one_or_none()
        if not user:
            return None
        return {"id": user.id, "email": user.email, "password": user.password, "roles": list(user.roles)}

    async def create(self, email: str, password_hash: str, roles: list[str]) -> dict:
        if await self.get_by_email(email):
            raise DuplicateError("Email already exists")
        user = AuthUser(email=email, password=password_hash, roles=roles)
        self.db.add(user)
        await self.db.commit()
        return {"id": user.id, "email": user.email, "password": user.password, "roles": list(user.roles)}


def sql_repositories(db: AsyncSession) -> Repositories:
    return Repositories(
        volunteers=SqlVolunteerRepository(db),
        gardens=SqlGardenRepository(db),
        matches=SqlMatchRepository(db),
        users=SqlUserRepository(db),
    )


# ---------------- in-memory ----------------

@dataclass
class MemoryStore:
    volunteers: dict[int, dict] = field(default_factory=dict)
    gardens: dict[int, dict] = field(default_factory=dict)
    matches: dict[int, dict] = field(default_factory=dict)
    users: dict[str, dict] = field(default_factory=dict)
    ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self.ids)


def _newest_first(records) -> list[dict]:
    return sorted(records, key=lambda r: (r["created_at"], r["id"]), reverse=True)


def _copy(record: dict | None) -> dict | None:
    return dict(record) if record is not None else None


class InMemoryVolunteerRepository(VolunteerRepository):
    def __init__(self, store: MemoryStore):
        self.store = store

    async def create(self, data: dict) -> dict:
        if any(v["email"] == data["email"] for v in self.store.volunteers.values()):
            raise DuplicateError("A volunteer with this email already exists")
        volunteer = {
            "id": self.store.next_id(),
            "name": data["name"],
            "email": data["email"],
            "skills": list(data["skills"]),
            "availability": [dict(s) for s in data["availability"]],
            "location": data["location"],
            "experience_level": data["experience_level"],
            "created_at": _utcnow(),
        }
        self.store.volunteers[volunteer["id"]] = volunteer
        return dict(volunteer)

    async def get(self, volunteer_id: int) -> dict | None:
        return _copy(self.store.volunteers.get(volunteer_id))

    async def list(self) -> list[dict]:
        return [dict(v) for v in _newest_first(self.store.volunteers.values())]

    async def delete(self, volunteer_id: int) -> bool:
        if self.store.volunteers.pop(volunteer_id, None) is None:
            return False
        for match_id in [k for k, m in self.store.matches.items() if m["volunteer_id"] == volunteer_id]:
            del self.store.matches[match_id]
        return True


class InMemoryGardenRepository(GardenRepository):
    def __init__(self, store: MemoryStore):
        self.store = store

    async def create(self, data: dict) -> dict:
        garden = {
            "id": self.store.next_id(),
            "garden_name": data["garden_name"],
            "location": data["location"],
            "contact_email": data["contact_email"],
            "skills_needed": list(data["skills_needed"]),
            "needs_schedule": [dict(s) for s in data["needs_schedule"]],
            "additional_notes": data.get("additional_notes"),
            "created_at": _utcnow(),
        }
        self.store.gardens[garden["id"]] = garden
        return dict(garden)

    async def get(self, garden_id: int) -> dict | None:
        return _copy(self.store.gardens.get(garden_id))

    async def list(self) -> list[dict]:
        return [dict(g) for g in _newest_first(self.store.gardens.values())]

    async def delete(self, garden_id: int) -> bool:
        if self.store.gardens.pop(garden_id, None) is None:
            return False
        for match_id in [k for k, m in self.store.matches.items() if m["garden_id"] == garden_id]:
            del self.store.matches[match_id]
        return True


class InMemoryMatchRepository(MatchRepository):
    def __init__(self, store: MemoryStore):
        self.store = store

    def _joined(self, matches) -> list[dict]:
        return [
            _match_dict(
                m,
                self.store.volunteers[m["volunteer_id"]],
                self.store.gardens[m["garden_id"]],
            )
            for m in _newest_first(matches)
        ]

    def _find_pair(self, volunteer_id: int, garden_id: int) -> dict | None:
        for m in self.store.matches.values():
            if m["volunteer_id"] == volunteer_id and m["garden_id"] == garden_id:
                return m
        return None

    async def create(self, data: dict) -> dict:
        if data["volunteer_id"] not in self.store.volunteers or data["garden_id"] not in self.store.gardens:
            raise KeyError("volunteer or garden does not exist")
        if self._find_pair(data["volunteer_id"], data["garden_id"]):
            raise DuplicateError("This volunteer is already matched to this garden")

        now = _utcnow()
        match = {
            "id": self.store.next_id(),
            "volunteer_id": data["volunteer_id"],
            "garden_id": data["garden_id"],
            "match_type": data["match_type"],
            "match_score": data.get("match_score"),
            "match_details": data.get("match_details"),
            "notes": data.get("notes"),
            "status": data.get("status") or "pending",
            "email_sent": False,
            "email_sent_at": None,
            "created_at": now,
            "updated_at": now,
        }
        self.store.matches[match["id"]] = match
        return self._joined([match])[0]

    async def get(self, match_id: int) -> dict | None:
        match = self.store.matches.get(match_id)
        return self._joined([match])[0] if match else None

    async def list(self) -> list[dict]:
        return self._joined(self.store.matches.values())

    async def list_for_volunteer(self, volunteer_id: int) -> list[dict]:
        return self._joined(m for m in self.store.matches.values() if m["volunteer_id"] == volunteer_id)

    async def list_for_garden(self, garden_id: int) -> list[dict]:
        return self._joined(m for m in self.store.matches.values() if m["garden_id"] == garden_id)

    async def update_status(self, match_id: int, status: str, notes: str | None = None) -> dict | None:
        match = self.store.matches.get(match_id)
        if not match:
            return None
        match.update(status=status, notes=notes, updated_at=_utcnow())
        return await self.get(match_id)

    async def mark_email_sent(self, match_id: int) -> dict | None:
        match = self.store.matches.get(match_id)
        if not match:
            return None
        now = _utcnow()
        match.update(email_sent=True, email_sent_at=now, updated_at=now)
        return await self.get(match_id)

    async def delete(self, match_id: int) -> bool:
        return self.store.matches.pop(match_id, None) is not None

    async def delete_pair(self, volunteer_id: int, garden_id: int) -> bool:
        match = self._find_pair(volunteer_id, garden_id)
        if not match:
            return False
        del self.store.matches[match["id"]]
        return True


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: MemoryStore):
        self.store = store

    async def get_by_email(self, email: str) -> dict | None:
        return _copy(self.store.users.get(email))

    async def create(self, email: str, password_hash: str, roles: list[str]) -> dict:
        if email in self.store.users:
            raise DuplicateError("Email already exists")
        user = {"id": self.store.next_id(), "email": email, "password": password_hash, "roles": list(roles)}
        self.store.users[email] = user
        return dict(user)


def memory_repositories(store: MemoryStore | None = None) -> Repositories:
    store = store or MemoryStore()
    return Repositories(
        volunteers=InMemoryVolunteerRepository(store),
        gardens=InMemoryGardenRepository(store),
        matches=InMemoryMatchRepository(store),
        users=InMemoryUserRepository(store),
    )
