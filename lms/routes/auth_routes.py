"""
Token issuance for the auth boundary: login sets the HTTP-only access_token cookie.
Registration and password recovery are handled outside this service.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.schemas.auth_schemas import LoginRequest, LoginResponse, LogoutResponse
from lms.schemas.user_schemas import CurrentUser
from lms.utils.auth import authenticate_user, clear_auth_cookie, get_current_user, set_auth_cookie
from lms.utils.logger import get_logger

logger = get_logger("auth")

auth_routes = APIRouter()


@auth_routes.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, response: Response, db: Session = Depends(get_db)) -> LoginResponse:
    """Authenticate user and set HTTP-only cookie with token."""
    user = authenticate_user(request.email, request.password, db)
    if user is None:
        logger.warning("login failed email=%s", request.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    set_auth_cookie(response, user)
    return LoginResponse(message="Login successful", token_set=True)


@auth_routes.post("/logout", response_model=LogoutResponse)
def logout(response: Response) -> LogoutResponse:
    """Clear the authentication cookie."""
    clear_auth_cookie(response)
    return LogoutResponse(message="Logout successful")


@auth_routes.get("/me", response_model=CurrentUser)
def me(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    return current_user
