from fastapi import Request

from shared.database import Base, get_engine, get_session

from .config import DATABASE_URL, DATABASE_ECHO, STORAGE_BACKEND
from .repositories import sql_repositories

engine = get_engine(DATABASE_URL, echo=DATABASE_ECHO)
SessionLocal = get_session(engine)


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_repositories(request: Request):
    # The memory backend is created at startup and lives on app.state.
    if STORAGE_BACKEND == "memory":
        yield request.app.state.repositories
        return

    async with SessionLocal() as session:
        yield sql_repositories(session)
