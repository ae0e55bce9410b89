"""
Role hierarchy, permission resolution and composable authorization rules
"""
from typing import Optional, Union

from sqlalchemy.orm import Session

from app.models.user import Role, UserProfile


# Larger rank = more authority. Only ever compared with >=.
ROLE_RANKS = {
    Role.SUPER_ADMIN: 5,
    Role.ADMIN: 4,
    Role.MANAGER: 3,
    Role.SUPERVISOR: 2,
    Role.USER: 1,
}

# A caller without a profile row (or with an unrecognised stored role) is
# treated as the least privileged role rather than rejected outright.
DEFAULT_ROLE_ON_MISSING_PROFILE = Role.USER

RoleLike = Union[Role, str]


def parse_role(value: Optional[RoleLike]) -> Optional[Role]:
    """Return the Role for value, or None when it is not one of the five roles"""
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def role_rank(role: Optional[RoleLike]) -> int:
    """Integer rank of a role; unknown values rank 0"""
    parsed = parse_role(role)
    return ROLE_RANKS[parsed] if parsed is not None else 0


def role_satisfies(role: Optional[RoleLike], required: RoleLike) -> bool:
    """True if role is at or above required in the hierarchy"""
    return role_rank(role) >= role_rank(required)


def resolve_role(db: Session, uid: str) -> Role:
    """
    Read the caller's current role from the user profile store.

    Never cached: a role can change between two calls.
    """
    stored = db.query(UserProfile.role).filter(UserProfile.uid == uid).scalar()
    return parse_role(stored) or DEFAULT_ROLE_ON_MISSING_PROFILE


def check_permission(db: Session, uid: str, required: RoleLike) -> bool:
    """True if the user's stored role satisfies the required role"""
    return role_satisfies(resolve_role(db, uid), required)


class Requirement:
    """
    Authorization rule evaluated against an operation context.

    Rules compose with ``|`` (either) and ``&`` (both).
    """

    def allows(self, ctx) -> bool:
        raise NotImplementedError

    def __or__(self, other: "Requirement") -> "Requirement":
        return AnyOf(self, other)

    def __and__(self, other: "Requirement") -> "Requirement":
        return AllOf(self, other)


class AnyOf(Requirement):
    def __init__(self, *rules: Requirement):
        self.rules = rules

    def allows(self, ctx) -> bool:
        return any(rule.allows(ctx) for rule in self.rules)

    def __repr__(self) -> str:
        return " | ".join(repr(rule) for rule in self.rules)


class AllOf(Requirement):
    def __init__(self, *rules: Requirement):
        self.rules = rules

    def allows(self, ctx) -> bool:
        return all(rule.allows(ctx) for rule in self.rules)

    def __repr__(self) -> str:
        return " & ".join(repr(rule) for rule in self.rules)


class RoleAtLeast(Requirement):
    def __init__(self, role: Role):
        self.role = role

    def allows(self, ctx) -> bool:
        return role_satisfies(ctx.role, self.role)

    def __repr__(self) -> str:
        return f"RoleAtLeast({self.role.value})"


class IsSelf(Requirement):
    """The payload targets the caller, either explicitly or by omitting the target field."""

    def __init__(self, field: str = "target_user_id"):
        self.field = field

    def allows(self, ctx) -> bool:
        target = getattr(ctx.params, self.field, None)
        return target is None or target == ctx.caller.uid

    def __repr__(self) -> str:
        return f"IsSelf({self.field})"


class IsOwner(Requirement):
    """The loaded resource belongs to the caller."""

    def __init__(self, attr: str = "reported_by"):
        self.attr = attr

    def allows(self, ctx) -> bool:
        if ctx.resource is None:
            return False
        return getattr(ctx.resource, self.attr, None) == ctx.caller.uid

    def __repr__(self) -> str:
        return f"IsOwner({self.attr})"


class Authenticated(Requirement):
    """Any authenticated caller; authentication itself is checked before rules run."""

    def allows(self, ctx) -> bool:
        return True

    def __repr__(self) -> str:
        return "Authenticated()"


ANY_AUTHENTICATED = Authenticated()
SUPERVISOR_OR_ABOVE = RoleAtLeast(Role.SUPERVISOR)
ADMIN_OR_ABOVE = RoleAtLeast(Role.ADMIN)
