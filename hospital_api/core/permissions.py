"""
Core permissions utilities for role-based access control.

Authorization is a plain set-membership test. The role hierarchy is kept
separate: callers that want administrators to pass a check expand the
allowed set first with ``expand_roles``.
"""
from typing import Dict, FrozenSet, Iterable, Optional

from ..auth.exceptions import ForbiddenException, UnauthenticatedException
from ..auth.models import UserRole

_STAFF_ROLES = frozenset({
    UserRole.ADMIN,
    UserRole.DOCTOR,
    UserRole.NURSE,
    UserRole.LAB_TECHNICIAN,
    UserRole.PHARMACIST,
    UserRole.RECEPTIONIST,
    UserRole.ACCOUNTANT,
})

# Roles each role may act as or over
ROLE_HIERARCHY: Dict[UserRole, FrozenSet[UserRole]] = {
    UserRole.SUPER_ADMIN: frozenset(UserRole),
    UserRole.ADMIN: _STAFF_ROLES,
    UserRole.DOCTOR: frozenset({UserRole.DOCTOR}),
    UserRole.NURSE: frozenset({UserRole.NURSE}),
    UserRole.LAB_TECHNICIAN: frozenset({UserRole.LAB_TECHNICIAN}),
    UserRole.PHARMACIST: frozenset({UserRole.PHARMACIST}),
    UserRole.RECEPTIONIST: frozenset({UserRole.RECEPTIONIST}),
    UserRole.ACCOUNTANT: frozenset({UserRole.ACCOUNTANT}),
    UserRole.PATIENT: frozenset({UserRole.PATIENT}),
}

if set(ROLE_HIERARCHY) != set(UserRole):
    raise RuntimeError("ROLE_HIERARCHY must define every UserRole")

ADMIN_OR_ABOVE: FrozenSet[UserRole] = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})

MEDICAL_STAFF: FrozenSet[UserRole] = frozenset({
    UserRole.DOCTOR,
    UserRole.NURSE,
    UserRole.LAB_TECHNICIAN,
    UserRole.PHARMACIST,
})


def roles_governed_by(role: UserRole) -> FrozenSet[UserRole]:
    """
    Get the roles a role may act as or over.

    Args:
        role: User role

    Returns:
        FrozenSet[UserRole]: Roles covered by the hierarchy entry
    """
    return ROLE_HIERARCHY[UserRole(role)]


def can_manage(actor_role: UserRole, target_role: UserRole) -> bool:
    """
    Check whether an actor's hierarchy covers a target role.

    Args:
        actor_role: Role of the caller
        target_role: Role of the account being acted on

    Returns:
        bool: True if target_role is in the actor's hierarchy set
    """
    return UserRole(target_role) in roles_governed_by(actor_role)


def expand_roles(allowed_roles: Iterable[UserRole]) -> FrozenSet[UserRole]:
    """
    Expand an allowed-role set with every role whose hierarchy covers it.

    ``expand_roles({DOCTOR})`` is ``{DOCTOR, ADMIN, SUPER_ADMIN}``.

    Args:
        allowed_roles: Roles allowed without hierarchy

    Returns:
        FrozenSet[UserRole]: Roles allowed with hierarchy
    """
    allowed = frozenset(UserRole(role) for role in allowed_roles)
    return frozenset(
        role for role, governed in ROLE_HIERARCHY.items() if governed & allowed
    )


def is_authorized(caller_role: Optional[UserRole], allowed_roles: Iterable[UserRole]) -> bool:
    """
    Check if a role is in an allowed-role set.

    Args:
        caller_role: Role of the caller, None when unauthenticated
        allowed_roles: Roles allowed access

    Returns:
        bool: True if the caller's role is allowed
    """
    if caller_role is None:
        return False
    return UserRole(caller_role) in frozenset(allowed_roles)


def authorize(caller_role: Optional[UserRole], allowed_roles: Iterable[UserRole]) -> None:
    """
    Require the caller's role to be one of the allowed roles.

    No hierarchy expansion happens here.

    Raises:
        UnauthenticatedException: If there is no caller role
        ForbiddenException: If the role is not allowed
    """
    if caller_role is None:
        raise UnauthenticatedException()
    if not is_authorized(caller_role, allowed_roles):
        raise ForbiddenException(
            f"User role {UserRole(caller_role).value} is not authorized for this resource"
        )


def authorize_all(caller_role: Optional[UserRole], required_roles: Iterable[UserRole]) -> None:
    """
    Require the caller to hold every required role.

    An account holds exactly one role, so this only passes when the
    required set is exactly the caller's role.

    Raises:
        UnauthenticatedException: If there is no caller role
        ForbiddenException: If the caller does not hold all required roles
    """
    if caller_role is None:
        raise UnauthenticatedException()
    required = frozenset(UserRole(role) for role in required_roles)
    if required != {UserRole(caller_role)}:
        raise ForbiddenException("User does not have all required roles")
