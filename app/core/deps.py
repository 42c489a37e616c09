"""
FastAPI dependencies for authentication and authorization.

Endpoints never reach for ambient user state: they declare an AuthContext
dependency (profile id + role) and, where needed, a role gate built with
require_roles().
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import decode_token
from app.models.profile import Profile, UserRole, STAFF_ROLES

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer()

DASHBOARDS = {
    UserRole.CANDIDATE: "candidate",
    UserRole.MANAGER: "manager",
    UserRole.HR: "hr",
    UserRole.DIRECTOR: "director",
    UserRole.ADMIN: "admin",
}


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, passed explicitly to whatever needs it."""
    user_id: str
    role: Optional[UserRole]

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_candidate(self) -> bool:
        return self.role == UserRole.CANDIDATE


def parse_role(value: Optional[str]) -> Optional[UserRole]:
    try:
        return UserRole((value or "").strip().lower())
    except ValueError:
        return None


def select_dashboard(role: Optional[UserRole]) -> str:
    """
    Dashboard view for a role.

    Unknown roles fall back to the candidate dashboard, the least privileged
    view.
    """
    return DASHBOARDS.get(role, DASHBOARDS[UserRole.CANDIDATE])


def resolve_auth_context(token: str, db: Session) -> AuthContext:
    """
    Validate a bearer token and load the caller's role from their profile.

    Raises:
        HTTPException 401: If token is invalid or the profile does not exist
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    profile = db.query(Profile).filter(Profile.id == str(user_id)).first()
    if profile is None:
        raise credentials_exception

    return AuthContext(user_id=profile.id, role=parse_role(profile.role))


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> AuthContext:
    """Extract the caller's AuthContext from the Authorization header."""
    return resolve_auth_context(credentials.credentials, db)


def require_roles(*roles: UserRole):
    """
    Build a dependency that only admits the given roles.

    Usage:
        @router.get("/candidates")
        def list_candidates(auth: AuthContext = Depends(require_roles(*STAFF_ROLES))):
            ...

    Raises:
        HTTPException 403: If the caller's role is not allowed
    """
    allowed = frozenset(roles)

    async def dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if auth.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to this resource"
            )
        return auth

    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_candidate = require_roles(UserRole.CANDIDATE)
require_admin = require_roles(UserRole.ADMIN)
