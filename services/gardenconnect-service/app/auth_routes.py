from fastapi import APIRouter, Depends, HTTPException

from .db import get_repositories
from .rbac import admin_only
from .repositories import DuplicateError, Repositories
from .schemas import Login, Message, Register, TokenResponse
from .security import authenticate, create_access_token, hash_password

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=201, response_model=Message)
async def register(
    data: Register,
    repos: Repositories = Depends(get_repositories),
    user: dict = Depends(admin_only),
):
    try:
        await repos.users.create(data.email, hash_password(data.password), data.roles)
    except DuplicateError:
        raise HTTPException(status_code=409, detail="Email already exists")

    return {"message": "User registered"}


@router.post("/login", response_model=TokenResponse)
async def login(data: Login, repos: Repositories = Depends(get_repositories)):
    user = await authenticate(repos.users, data.email, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user["email"], user["roles"])
    return {"access_token": token, "token_type": "bearer"}
