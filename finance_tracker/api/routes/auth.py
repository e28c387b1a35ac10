"""Registration, login and the current account."""

from fastapi import APIRouter, Depends, status

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.user import LoginRequest, TokenResponse, User, UserCreate, UserPublic
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/auth", tags=["auth"])


def _session(components: AppComponents, user: User) -> dict:
    token = components.identity.create_access_token(user.id)
    return {
        "user": UserPublic.from_user(user),
        **TokenResponse(access_token=token).model_dump(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    components: AppComponents = Depends(get_components),
):
    user = await components.identity.register(data)
    return envelope("User registered successfully", _session(components, user))


@router.post("/login")
async def login(
    data: LoginRequest,
    components: AppComponents = Depends(get_components),
):
    user = await components.identity.authenticate(data.email, data.password)
    return envelope("Login successful", _session(components, user))


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return envelope("User retrieved successfully", UserPublic.from_user(user))
