"""
API Dependencies
Provides authentication and authorization dependencies using ATAMS factory pattern
"""
from fastapi import Depends

from atams.sso import create_atlas_client, create_auth_dependencies
from timeclock.core.config import settings
from timeclock.core.exceptions import AuthorizationError
from timeclock.schemas.actor import Actor

# Initialize Atlas SSO client using factory
atlas_client = create_atlas_client(settings)

# Create auth dependencies using factory
get_current_user, require_auth, require_min_role_level, require_role_level = create_auth_dependencies(atlas_client)


def actor_from_user(current_user: dict) -> Actor:
    """Map an Atlas user to the acting member"""
    code = str(current_user.get("username") or "")
    is_admin = (current_user.get("role_level") or 0) >= settings.ADMIN_MIN_ROLE_LEVEL
    return Actor(
        code=code,
        is_admin=is_admin,
        is_root=is_admin and code == settings.ROOT_MEMBER_CODE
    )


def get_actor(current_user: dict = Depends(require_auth)) -> Actor:
    return actor_from_user(current_user)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise AuthorizationError("Administrator access required")
    return actor


# Export for use in endpoints
__all__ = [
    "atlas_client",
    "get_current_user",
    "require_auth",
    "require_min_role_level",
    "require_role_level",
    "get_actor",
    "require_admin",
]
