from fastapi import APIRouter, Response

from blog.audit import audit
from blog.config import settings
from blog.dependencies import CurrentPrincipal, DbSession, OptionalPrincipal
from blog.exceptions import UnauthenticatedError
from blog.models import User
from blog.schemas import LoginRequest, RegisterRequest, UserResponse, UserUpdate
from blog.security.sessions import Principal, create_session_token, session_lifetime
from blog.services import user_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _start_session(response: Response, user: User, remember_me: bool) -> None:
    lifetime = session_lifetime(remember_me)
    token = create_session_token(Principal.from_user(user), lifetime)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", status_code=201, response_model=UserResponse)
async def register(data: RegisterRequest, response: Response, db: DbSession):
    user = await user_service.register_user(
        db, data.email, data.password, data.first_name, data.last_name
    )
    _start_session(response, user, data.remember_me)
    audit.log_user_action("REGISTER", f"New user registered: {user.email}", user.id, user.display_name)
    return user


@router.post("/login", response_model=UserResponse)
async def login(data: LoginRequest, response: Response, db: DbSession):
    user = await user_service.authenticate(db, data.email, data.password)
    if user is None:
        audit.log_user_action("LOGIN_FAILED", f"Failed login attempt for: {data.email}")
        raise UnauthenticatedError("Invalid email or password")
    _start_session(response, user, data.remember_me)
    audit.log_user_action("LOGIN", "User logged in", user.id, user.display_name)
    return user


@router.post("/logout", status_code=204)
async def logout(response: Response, principal: OptionalPrincipal):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    if principal is not None:
        audit.log_user_action("LOGOUT", "User logged out", principal.user_id, principal.name)


@router.get("/me", response_model=UserResponse)
async def me(principal: CurrentPrincipal, db: DbSession):
    return await user_service.get_user(db, principal.user_id)


@router.put("/me", response_model=UserResponse)
async def update_me(data: UserUpdate, principal: CurrentPrincipal, db: DbSession):
    user = await user_service.update_user(db, principal.user_id, data)
    audit.log_user_action("PROFILE_EDIT", "Edited own profile", principal.user_id, principal.name)
    return user
