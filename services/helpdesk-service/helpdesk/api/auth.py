from fastapi import APIRouter, Depends, status

from helpdesk.api.deps import get_current_user, get_user_service
from helpdesk.models.user import User
from helpdesk.schemas.user import LoginRequest, ProfileUpdate, RegisterRequest, TokenResponse, UserResponse
from helpdesk.core.security import create_access_token
from helpdesk.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: UserService = Depends(get_user_service)):
    """
    Create a new account with the ``user`` role and return a bearer token for it.
    """
    user = service.register(data)
    return TokenResponse(
        access_token=create_access_token(subject=str(user.id)),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, service: UserService = Depends(get_user_service)):
    user, token = service.authenticate(data.email, data.password)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.update_profile(user, data)
