"""
Tests for the role hierarchy and authorization rules
"""
from types import SimpleNamespace

import pytest

from app.core.permissions import (
    ADMIN_OR_ABOVE,
    SUPERVISOR_OR_ABOVE,
    IsOwner,
    IsSelf,
    RoleAtLeast,
    check_permission,
    parse_role,
    resolve_role,
    role_satisfies,
)
from app.models.user import Role, UserProfile
from app.tests.helpers import make_user

ORDER = [Role.USER, Role.SUPERVISOR, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN]


@pytest.mark.parametrize("held", ORDER)
@pytest.mark.parametrize("required", ORDER)
def test_role_satisfies_matrix(held, required):
    assert role_satisfies(held, required) == (ORDER.index(held) >= ORDER.index(required))


def test_role_satisfies_accepts_strings():
    assert role_satisfies("admin", "supervisor")
    assert not role_satisfies("supervisor", "admin")


def test_unknown_role_satisfies_nothing():
    assert parse_role("owner") is None
    assert not role_satisfies("owner", Role.USER)


def test_missing_profile_resolves_to_user(db):
    assert resolve_role(db, "no-such-uid") == Role.USER
    assert check_permission(db, "no-such-uid", Role.USER)
    assert not check_permission(db, "no-such-uid", Role.SUPERVISOR)


def test_resolve_role_reads_stored_role(db, identity):
    account = make_user(identity, "mgr@example.com", Role.MANAGER)
    assert resolve_role(db, account.uid) == Role.MANAGER
    assert check_permission(db, account.uid, Role.SUPERVISOR)
    assert not check_permission(db, account.uid, Role.ADMIN)


def test_unrecognized_stored_role_resolves_to_user(db, identity):
    account = make_user(identity, "legacy@example.com")
    profile = db.query(UserProfile).filter(UserProfile.uid == account.uid).one()
    profile.role = "owner"
    db.commit()

    assert resolve_role(db, account.uid) == Role.USER
    assert check_permission(db, account.uid, Role.USER)
    assert not check_permission(db, account.uid, Role.SUPERVISOR)


def _ctx(uid="u1", role=Role.USER, params=None, resource=None):
    return SimpleNamespace(
        caller=SimpleNamespace(uid=uid),
        role=role,
        params=params,
        resource=resource,
    )


def test_role_at_least():
    assert RoleAtLeast(Role.SUPERVISOR).allows(_ctx(role=Role.MANAGER))
    assert not RoleAtLeast(Role.SUPERVISOR).allows(_ctx(role=Role.USER))


def test_is_self_with_explicit_and_missing_target():
    assert IsSelf().allows(_ctx(params=SimpleNamespace(target_user_id="u1")))
    assert IsSelf().allows(_ctx(params=SimpleNamespace(target_user_id=None)))
    assert not IsSelf().allows(_ctx(params=SimpleNamespace(target_user_id="u2")))


def test_is_owner_requires_loaded_resource():
    assert IsOwner().allows(_ctx(resource=SimpleNamespace(reported_by="u1")))
    assert not IsOwner().allows(_ctx(resource=SimpleNamespace(reported_by="u2")))
    assert not IsOwner().allows(_ctx(resource=None))


def test_rules_compose_with_or():
    rule = SUPERVISOR_OR_ABOVE | IsOwner("reported_by")
    other = SimpleNamespace(reported_by="u2")

    assert rule.allows(_ctx(role=Role.SUPERVISOR, resource=other))
    assert rule.allows(_ctx(role=Role.USER, resource=SimpleNamespace(reported_by="u1")))
    assert not rule.allows(_ctx(role=Role.USER, resource=other))


def test_rules_compose_with_and():
    rule = ADMIN_OR_ABOVE & IsSelf()
    params = SimpleNamespace(target_user_id="u1")

    assert rule.allows(_ctx(role=Role.ADMIN, params=params))
    assert not rule.allows(_ctx(role=Role.MANAGER, params=params))
    assert not rule.allows(_ctx(role=Role.ADMIN, params=SimpleNamespace(target_user_id="u2")))
