"""Unit tests for the access policy table and the scope check."""

import uuid

import pytest
from fastapi import HTTPException

from civicconnect.middleware.authorization import check_scope, require_permission
from civicconnect.policy import ALL_ROLES, POLICY, lookup, scope_allows


def _actor(role="user", **extra):
    return {"user_id": uuid.uuid4(), "role": role, **extra}


def test_missing_entry_is_deny():
    assert lookup("user", "tender", "manage") is None
    assert lookup("user", "bid", "review") is None
    assert lookup("tender", "issue", "close") is None


def test_every_scope_is_known():
    assert set(POLICY.values()) <= {"any", "own", "department", "area"}


def test_only_contractors_bid():
    bidders = [r for r in ALL_ROLES if lookup(r, "bid", "create")]
    assert bidders == ["tender"]


def test_department_admin_reviews_within_department():
    assert lookup("department_admin", "bid", "review") == "department"
    assert lookup("department_admin", "work_progress", "review") == "department"
    assert lookup("admin", "bid", "review") == "any"


def test_everyone_reads_issues_and_tenders():
    for role in ALL_ROLES:
        assert lookup(role, "issue", "read") == "any"
        assert lookup(role, "tender", "read") == "any"


def test_own_scope_matches_owner():
    actor = _actor()
    assert scope_allows("own", actor, owner_id=actor["user_id"])
    assert not scope_allows("own", actor, owner_id=uuid.uuid4())
    assert not scope_allows("own", actor)


def test_department_scope_compares_as_strings():
    dept = uuid.uuid4()
    actor = _actor("department_admin", department_id=str(dept))
    assert scope_allows("department", actor, department_id=dept)
    assert not scope_allows("department", actor, department_id=uuid.uuid4())
    assert not scope_allows("department", actor, department_id=None)


def test_area_scope():
    area = uuid.uuid4()
    actor = _actor("area_super_admin", area_id=str(area))
    assert scope_allows("area", actor, area_id=area)
    assert not scope_allows("area", _actor("area_super_admin"), area_id=area)


def test_check_scope_raises_403():
    actor = _actor("department_admin", department_id=str(uuid.uuid4()))
    with pytest.raises(HTTPException) as exc_info:
        check_scope(actor, "department", department_id=uuid.uuid4())
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.asyncio
async def test_require_permission_returns_scope():
    dependency = require_permission("tender", "manage")
    assert await dependency(current_user=_actor("department_admin")) == "department"


@pytest.mark.asyncio
async def test_require_permission_denies_unlisted_role():
    dependency = require_permission("tender", "manage")
    with pytest.raises(HTTPException) as exc_info:
        await dependency(current_user=_actor("tender"))
    assert exc_info.value.status_code == 403
