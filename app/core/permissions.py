"""
Ownership checks for folders, documents, tests and attempts.

Every stored resource carries the ``owner_id`` of the user that created it.
Callers get access when they own the resource or hold the ``admin`` role.
A denial never says whether the resource belongs to somebody else.
"""
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Type

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class UserContext:
    """Identity of the caller, taken from the bearer token claims."""

    user_id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def can_access(owner_id: Optional[str], user: UserContext) -> bool:
    """Check ownership without raising."""
    return user.is_admin or (owner_id is not None and owner_id == user.user_id)


def ensure_owner(owner_id: Optional[str], user: UserContext) -> None:
    """
    Require the caller to own a resource.

    Raises:
        HTTPException 403: Caller is neither the owner nor an admin
    """
    if not can_access(owner_id, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )


def get_owned_or_404(db: Session, model: Type[Any], resource_id: int, user: UserContext, label: str) -> Any:
    """
    Load a row by primary key and check the caller owns it.

    Args:
        db: Database session
        model: Mapped class with ``id`` and ``owner_id`` columns
        resource_id: Primary key
        user: Caller
        label: Human readable resource name for the 404 message

    Returns:
        The loaded row

    Raises:
        HTTPException 404: No such row
        HTTPException 403: Caller does not own the row
    """
    row = db.query(model).filter(model.id == resource_id).first()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} with ID {resource_id} not found",
        )
    ensure_owner(row.owner_id, user)
    return row
