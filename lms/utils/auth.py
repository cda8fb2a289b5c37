from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.config import get_db, settings
from lms.models.models import ROLES, User
from lms.schemas.user_schemas import CurrentUser
from lms.utils.jwt import create_access_token, get_password_hash, verify_password, verify_token
from lms.utils.errors import PermissionDeniedError
from lms.utils.logger import get_logger

logger = get_logger("auth")


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> CurrentUser:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )

    payload = verify_token(access_token)
    user = get_user_by_email(payload.sub, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    return CurrentUser(id=user.id, email=user.email, role=user.role, full_name=user.full_name)


def require_instructor(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_instructor:
        logger.warning("instructor route denied user_id=%s", current_user.id)
        raise PermissionDeniedError("Instructor role required")
    return current_user


def set_auth_cookie(response: Response, user: User) -> None:
    token = create_access_token(user.email)
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=False,
        samesite="lax"
    )


def get_user_by_email(email: str, db: Session) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(email: str, password: str, db: Session, role: str = "student", full_name: str | None = None) -> User:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    user = User(
        email=email.strip().lower(),
        hashed_password=get_password_hash(password),
        role=role,
        full_name=full_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user created id=%s role=%s", user.id, role)
    return user


def authenticate_user(email: str, password: str, db: Session) -> User | None:
    user = get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
