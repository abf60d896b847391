from fastapi import FastAPI

from .auth_routes import router as auth_router
from .config import (
    AUTO_CREATE_TABLES,
    BOOTSTRAP_ADMIN_EMAIL,
    BOOTSTRAP_ADMIN_PASSWORD,
    RATE_LIMIT_PER_MINUTE,
    SERVICE_NAME,
    STORAGE_BACKEND,
)
from .db import SessionLocal, create_tables
from .middleware import RateLimitMiddleware, RequestLoggingMiddleware
from .rabbitmq import publisher
from .redis_client import redis_client
from .repositories import Repositories, memory_repositories, sql_repositories
from .routes import router
from .security import hash_password

app = FastAPI(title="GardenConnect Service")

app.add_middleware(RateLimitMiddleware, max_per_minute=RATE_LIMIT_PER_MINUTE)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(router)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "storage_backend": STORAGE_BACKEND,
        "events_enabled": publisher.enabled,
        "cache_enabled": redis_client is not None,
    }


async def bootstrap_admin(repos: Repositories):
    if not BOOTSTRAP_ADMIN_EMAIL or not BOOTSTRAP_ADMIN_PASSWORD:
        return
    if await repos.users.get_by_email(BOOTSTRAP_ADMIN_EMAIL):
        return
    await repos.users.create(BOOTSTRAP_ADMIN_EMAIL, hash_password(BOOTSTRAP_ADMIN_PASSWORD), ["admin"])
    print(f"[{SERVICE_NAME}] bootstrap admin created: {BOOTSTRAP_ADMIN_EMAIL}")


@app.on_event("startup")
async def startup():
    if STORAGE_BACKEND == "memory":
        app.state.repositories = memory_repositories()
        await bootstrap_admin(app.state.repositories)
    else:
        if AUTO_CREATE_TABLES:
            await create_tables()
        async with SessionLocal() as session:
            await bootstrap_admin(sql_repositories(session))

    print(f"[{SERVICE_NAME}] started with {STORAGE_BACKEND} storage")

    # Never crash service if RabbitMQ is temporarily unavailable
    try:
        await publisher.connect()
    except Exception as e:
        print(f"[{SERVICE_NAME}] RabbitMQ connect failed at startup; continuing without events: {e}")


@app.on_event("shutdown")
async def shutdown():
    try:
        await publisher.close()
    except Exception as e:
        print(f"[{SERVICE_NAME}] RabbitMQ close failed: {e}")
