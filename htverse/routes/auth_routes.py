# htverse/routes/auth_routes.py
from fastapi import APIRouter, Depends

from htverse.dependencies import get_current_user, get_user_service
from htverse.models import LoginRequest, User, UserCreate
from htverse.users import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(payload: UserCreate, users: UserService = Depends(get_user_service)):
    user, token = users.register(payload)
    return {
        "success": True,
        "message": "User registered successfully",
        "token": token,
        "user": user.public(),
    }


@router.post("/login")
def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    user, token = users.login(payload)
    return {
        "success": True,
        "message": "Login successful",
        "token": token,
        "user": user.public(),
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    """Profile of the bearer-token owner."""
    return {"success": True, "user": user.public(detailed=True)}
