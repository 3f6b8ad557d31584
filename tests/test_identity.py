"""
Tests for sign-up, login, tokens and capability checks
"""

from datetime import timedelta

import jwt
import pytest

from app.core.config import settings
from app.core.errors import Forbidden, Unauthenticated, ValidationError
from app.services.identity_service import IdentityService, create_access_token, decode_access_token
from app.services.policy import check_capability, require_role
from app.utils.timeutils import utcnow


def test_sign_up_lowercases_email_and_defaults_role(repo):
    user = IdentityService.sign_up(repo, "Dana@Campus.EDU", "secret", "Dana")

    assert user["email"] == "dana@campus.edu"
    assert user["role"] == "student"
    assert "password_hash" not in user
    assert repo.get_user_by_email("dana@campus.edu")["password_hash"] != "secret"


def test_duplicate_email_differing_in_case_is_rejected(repo):
    IdentityService.sign_up(repo, "dana@campus.edu", "secret", "Dana")
    with pytest.raises(ValidationError):
        IdentityService.sign_up(repo, "DANA@campus.edu", "other", "Dana Two")


def test_unknown_role_is_rejected(repo):
    with pytest.raises(ValidationError):
        IdentityService.sign_up(repo, "x@campus.edu", "secret", "X", role="dean")


@pytest.mark.parametrize("password", ["é" * 40, "x" * 73])
def test_password_over_72_bytes_is_rejected(repo, password):
    with pytest.raises(ValidationError):
        IdentityService.sign_up(repo, "x@campus.edu", password, "X")
    assert repo.get_user_by_email("x@campus.edu") is None


def test_password_of_exactly_72_bytes_is_accepted(repo):
    IdentityService.sign_up(repo, "x@campus.edu", "é" * 36, "X")
    assert IdentityService.login(repo, "x@campus.edu", "é" * 36)["user"]["email"] == "x@campus.edu"


def test_login_is_case_insensitive_on_email(repo):
    IdentityService.sign_up(repo, "dana@campus.edu", "secret", "Dana", role="organizer")

    result = IdentityService.login(repo, "DaNa@Campus.edu", "secret")

    assert result["user"]["role"] == "organizer"
    assert IdentityService.verify_identity(repo, result["token"])["email"] == "dana@campus.edu"


@pytest.mark.parametrize("email,password", [
    ("dana@campus.edu", "wrong"),
    ("nobody@campus.edu", "secret"),
])
def test_bad_credentials(repo, email, password):
    IdentityService.sign_up(repo, "dana@campus.edu", "secret", "Dana")
    with pytest.raises(Unauthenticated):
        IdentityService.login(repo, email, password)


def test_token_expires_after_a_day(repo, students):
    user_id = students[0]["id"]
    fresh = create_access_token(user_id, now=utcnow() - timedelta(hours=23))
    stale = create_access_token(user_id, now=utcnow() - timedelta(hours=25))

    assert decode_access_token(fresh) == user_id
    with pytest.raises(Unauthenticated):
        decode_access_token(stale)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_missing_or_malformed_token(repo, token):
    with pytest.raises(Unauthenticated):
        IdentityService.verify_identity(repo, token)


def test_token_signed_with_other_key(repo, students):
    forged = jwt.encode({"sub": students[0]["id"]}, "x" * 32 + "other", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(Unauthenticated):
        IdentityService.verify_identity(repo, forged)


def test_token_for_deleted_user(repo):
    with pytest.raises(Unauthenticated):
        IdentityService.verify_identity(repo, create_access_token("gone"))


def test_capability_policy(organizer, other_organizer, admin, students):
    check_capability(organizer, organizer["id"])
    check_capability(admin, organizer["id"])
    check_capability(organizer)

    with pytest.raises(Forbidden):
        check_capability(other_organizer, organizer["id"])
    with pytest.raises(Forbidden):
        check_capability(students[0])
    with pytest.raises(Forbidden):
        require_role(students[0])
