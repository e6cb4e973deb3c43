"""Tests for the event visibility policy.

Covers every tier for owners, plain users, admins and superusers, the
allow-list for restricted events (including corrupt stored allow-lists)
and the tier-independent modify rule.
"""

from __future__ import annotations

import json
import logging

import pytest

from eventchat.models.user import UserRole
from eventchat.policies.event_visibility import (
    VisibilityPolicy,
    parse_allowed_user_ids,
    serialize_allowed_user_ids,
)

pytestmark = pytest.mark.unit

OWNER = "owner-1"
LISTED = "listed-1"
STRANGER = "stranger-1"

ALL_ROLES = [UserRole.USER, UserRole.ADMIN, UserRole.SUPERUSER]


def _event(visibility: str, allowed=None) -> dict:
    return {
        "_id": "e1",
        "title": "Standup",
        "visibility": visibility,
        "created_by": OWNER,
        "allowed_user_ids": allowed,
    }


@pytest.fixture
def policy() -> VisibilityPolicy:
    return VisibilityPolicy()


# ---------------------------------------------------------------------------
# can_view
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("role", ALL_ROLES)
def test_private_event_visible_only_to_owner(policy, role):
    event = _event("private")
    assert policy.can_view(event, OWNER, role) is True
    assert policy.can_view(event, STRANGER, role) is False
    assert policy.can_view(event, LISTED, role) is False


def test_private_event_ignores_allow_list(policy):
    event = _event("private", json.dumps([LISTED]))
    assert policy.can_view(event, LISTED, UserRole.USER) is False


@pytest.mark.parametrize("role", ALL_ROLES)
@pytest.mark.parametrize("actor_id", [OWNER, LISTED, STRANGER])
def test_public_event_visible_to_everyone(policy, role, actor_id):
    assert policy.can_view(_event("public"), actor_id, role) is True


def test_restricted_event_owner_always_passes(policy):
    assert policy.can_view(_event("restricted"), OWNER, UserRole.USER) is True


@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.SUPERUSER, "admin", "superuser"])
def test_restricted_event_elevated_roles_pass(policy, role):
    assert policy.can_view(_event("restricted"), STRANGER, role) is True


def test_restricted_event_listed_user_passes(policy):
    event = _event("restricted", json.dumps([LISTED, "someone-else"]))
    assert policy.can_view(event, LISTED, UserRole.USER) is True


def test_restricted_event_unlisted_user_fails(policy):
    event = _event("restricted", json.dumps([LISTED]))
    assert policy.can_view(event, STRANGER, UserRole.USER) is False


def test_restricted_event_without_allow_list_denies_plain_user(policy):
    assert policy.can_view(_event("restricted", None), STRANGER, UserRole.USER) is False
    assert policy.can_view(_event("restricted", ""), STRANGER, UserRole.USER) is False


@pytest.mark.parametrize(
    "corrupt",
    ["not json", "[\"unterminated", "{\"ids\": [\"listed-1\"]}", "42", "null", "\"listed-1\""],
)
def test_corrupt_allow_list_never_blocks_owner_or_elevated(policy, corrupt):
    event = _event("restricted", corrupt)
    assert policy.can_view(event, OWNER, UserRole.USER) is True
    assert policy.can_view(event, STRANGER, UserRole.ADMIN) is True
    assert policy.can_view(event, STRANGER, UserRole.SUPERUSER) is True
    assert policy.can_view(event, LISTED, UserRole.USER) is False


def test_corrupt_allow_list_is_logged(policy, caplog):
    with caplog.at_level(logging.WARNING, logger="eventchat.policies.event_visibility"):
        policy.can_view(_event("restricted", "{oops"), STRANGER, UserRole.USER)
    assert "unparseable allow-list" in caplog.text


@pytest.mark.parametrize("visibility", ["secret", "", None, "PUBLIC"])
def test_unknown_tier_fails_closed(policy, visibility):
    event = _event(visibility)
    assert policy.can_view(event, OWNER, UserRole.SUPERUSER) is False
    assert policy.can_view(event, STRANGER, UserRole.USER) is False


def test_unknown_role_treated_as_plain_user(policy):
    event = _event("restricted", json.dumps([LISTED]))
    assert policy.can_view(event, STRANGER, "moderator") is False


# ---------------------------------------------------------------------------
# can_modify
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("visibility", ["private", "public", "restricted"])
def test_owner_can_modify_any_tier(policy, visibility):
    assert policy.can_modify(_event(visibility), OWNER, UserRole.USER) is True


@pytest.mark.parametrize("visibility", ["private", "public", "restricted"])
@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.SUPERUSER])
def test_elevated_can_modify_any_tier(policy, visibility, role):
    assert policy.can_modify(_event(visibility), STRANGER, role) is True


@pytest.mark.parametrize("visibility", ["private", "public", "restricted"])
def test_plain_non_owner_cannot_modify(policy, visibility):
    event = _event(visibility, json.dumps([LISTED]))
    assert policy.can_modify(event, STRANGER, UserRole.USER) is False
    # being on the allow-list grants viewing, not editing
    assert policy.can_modify(event, LISTED, UserRole.USER) is False


# ---------------------------------------------------------------------------
# allow-list codec
# ---------------------------------------------------------------------------


def test_serialize_drops_duplicates_and_empties():
    assert serialize_allowed_user_ids([]) is None
    assert serialize_allowed_user_ids(None) is None
    assert json.loads(serialize_allowed_user_ids(["a", "b", "a"])) == ["a", "b"]


def test_parse_ignores_non_scalar_entries():
    assert parse_allowed_user_ids(json.dumps(["a", {"id": "b"}, ["c"]])) == frozenset({"a"})
