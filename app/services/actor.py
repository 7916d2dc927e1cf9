from dataclasses import dataclass

from app.models.user import User


ROLES = ("user", "admin")


@dataclass(frozen=True)
class Actor:
    """Who is calling a claim operation.

    Built from the users table on every request; the role is never taken from
    the token or the request body.
    """

    user_id: int
    role: str = "user"
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        # Unknown roles fall back to the least privileged one
        role = user.role if user.role in ROLES else "user"
        return cls(user_id=user.id, role=role, name=user.name, email=user.email)
