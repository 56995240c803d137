from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.security import decode_token
from plantcare.db.session import get_db
from plantcare.models.user import User
from plantcare.services.notifications import NotificationDispatcher
from plantcare.tasks.notification_scheduler import NotificationScheduler

# Tokens are minted by the account service; this URL is only for the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise credentials_exc
        user_id: str = payload.get("sub")
        if not user_id:
            raise credentials_exc
    except JWTError:
        raise credentials_exc

    user = await db.scalar(select(User).where(User.id == int(user_id)))
    if not user or not user.is_active:
        raise credentials_exc
    return user


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def get_notification_scheduler(request: Request) -> NotificationScheduler:
    scheduler = getattr(request.app.state, "notification_scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification scheduler is not enabled",
        )
    return scheduler


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    dispatcher = getattr(request.app.state, "notification_dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured",
        )
    return dispatcher


CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
Scheduler = Annotated[NotificationScheduler, Depends(get_notification_scheduler)]
Dispatcher = Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)]
