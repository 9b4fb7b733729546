from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from jose import JWTError, jwt

from ..core.config import settings
from ..database import get_db
from ..models.user import User, UserType
from ..models.provider_profile import ProviderProfile

# Tokens are issued by the identity service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    request: Request = None,
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    jwt_token = token or (request.cookies.get("access_token") if request else None)
    if not jwt_token:
        raise credentials_exception
    try:
        payload = jwt.decode(jwt_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: Optional[str] = payload.get("sub")
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = (
        db.query(User)
        .options(joinedload(User.provider_profile))
        .filter(func.lower(User.email) == email.strip().lower())
        .first()
    )
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    # Any active user can act as a customer
    return current_user


def get_current_provider(current_user: User = Depends(get_current_active_user)) -> User:
    """Ensure the current user is an active provider with a profile."""
    if current_user.user_type != UserType.PROVIDER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a service provider.",
        )
    if not current_user.provider_profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Provider profile does not exist. Please create one.",
        )
    return current_user


def get_current_provider_profile(current_user: User = Depends(get_current_provider)) -> ProviderProfile:
    return current_user.provider_profile


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    request: Request = None,
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get ``None``.

    An expired or unreadable token is treated as anonymous too.
    """
    has_cookie = bool(request and request.cookies.get("access_token"))
    if not token and not has_cookie:
        return None
    try:
        return get_current_user(token=token, db=db, request=request)
    except HTTPException:
        return None
