from fastapi import Depends, HTTPException, status

from .security import get_current_user


def require_role(payload: dict, allowed_roles: list[str]):
    token_roles = payload.get("roles")

    if not isinstance(token_roles, list) or not token_roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Roles missing in token",
        )

    allowed = {r.lower() for r in allowed_roles}
    roles = {str(r).lower() for r in token_roles}

    if roles.isdisjoint(allowed):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access forbidden for this role",
        )


def roles_required(*allowed_roles: str):
    """Dependency factory: `user=Depends(roles_required("admin"))`."""

    def dependency(user: dict = Depends(get_current_user)) -> dict:
        require_role(user, list(allowed_roles))
        return user

    return dependency


admin_only = roles_required("admin")
staff_only = roles_required("admin", "coordinator")
