import os
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.user import User
from app.services.actor import Actor
from app.services.errors import NotAuthorized

ALGORITHM = "HS256"

bearer_scheme_required = HTTPBearer(auto_error=True)


def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)):
    try:
        payload = jwt.decode(
            token.credentials,
            os.getenv("JWT_SECRET"),
            algorithms=[ALGORITHM],
        )
        return payload
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_db_user(session: Session, current_user):
    user = session.exec(
        select(User).where(User.public_id == current_user["sub"])
    ).first()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return user


def get_actor(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
) -> Actor:
    # Role comes from the users table, not from the token payload
    return Actor.from_user(get_db_user(session, current_user))


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise NotAuthorized("Admin access required")
    return actor
