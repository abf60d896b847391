from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)
from shared.database import Base


class Volunteer(Base):
    __tablename__ = "volunteers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    skills = Column(JSON, nullable=False)
    availability = Column(JSON, nullable=False)  # [{"day": ..., "time": ...}]
    location = Column(String, nullable=False)
    experience_level = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Garden(Base):
    __tablename__ = "gardens"

    id = Column(Integer, primary_key=True)
    garden_name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    skills_needed = Column(JSON, nullable=False)
    needs_schedule = Column(JSON, nullable=False)
    additional_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (UniqueConstraint("volunteer_id", "garden_id", name="uq_matches_pair"),)

    id = Column(Integer, primary_key=True)
    volunteer_id = Column(Integer, ForeignKey("volunteers.id", ondelete="CASCADE"), nullable=False, index=True)
    garden_id = Column(Integer, ForeignKey("gardens.id", ondelete="CASCADE"), nullable=False, index=True)
    match_type = Column(String, nullable=False)  # auto/manual
    match_score = Column(Float, nullable=True)
    match_details = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, index=True)  # pending/accepted/declined/cancelled
    email_sent = Column(Boolean, nullable=False, default=False)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuthUser(Base):
    __tablename__ = "auth_users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)
    roles = Column(JSON, nullable=False)
