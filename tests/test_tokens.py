import pytest
from jose import jwt

from taskmanager_app import crud, errors, models, tokens
from taskmanager_app.settings import settings


def _make_user(db, email="tok@example.com") -> models.User:
    return crud.create_user(db, name="Tok", email=email, password_hash="hash-not-used")


def test_issue_then_validate(db):
    u = _make_user(db)
    token = tokens.issue_token(u)
    assert tokens.validate_token(token) == u.id

    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == str(u.id)
    assert claims["exp"] - claims["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_token(db):
    u = _make_user(db)
    token = tokens.issue_token(u, expires_minutes=-1)
    with pytest.raises(errors.ExpiredToken):
        tokens.validate_token(token)
    with pytest.raises(errors.ExpiredToken):
        tokens.refresh_token(token)


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_malformed_tokens(token):
    with pytest.raises(errors.InvalidToken) as exc_info:
        tokens.validate_token(token)
    assert not isinstance(exc_info.value, errors.ExpiredToken)


def test_wrong_signature(db):
    u = _make_user(db)
    forged = jwt.encode({"sub": str(u.id)}, "another-secret", algorithm="HS256")
    with pytest.raises(errors.InvalidToken):
        tokens.validate_token(forged)


def test_subject_must_be_a_user_id():
    token = jwt.encode({"sub": "alice@example.com"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(errors.InvalidToken):
        tokens.validate_token(token)


def test_refresh_renews_expiry(db):
    u = _make_user(db)
    short = tokens.issue_token(u, expires_minutes=1)
    renewed = tokens.refresh_token(short)
    assert tokens.validate_token(renewed) == u.id
    assert jwt.get_unverified_claims(renewed)["exp"] > jwt.get_unverified_claims(short)["exp"]
    # stateless: the old token is untouched
    assert tokens.validate_token(short) == u.id


def test_resolve_current_user(db):
    u = _make_user(db)
    token = tokens.issue_token(u)
    assert tokens.resolve_current_user(db, token).id == u.id

    db.delete(u)
    db.commit()
    with pytest.raises(errors.UserNotFound):
        tokens.resolve_current_user(db, token)


def test_auth_errors_share_public_message():
    for exc in (errors.InvalidToken(), errors.ExpiredToken(), errors.UserNotFound()):
        assert exc.status_code == 401
        assert exc.public_message == "Unauthenticated."
    assert errors.InvalidCredentials().public_message == "Invalid credentials"


def test_subject_beyond_integer_range_is_user_not_found(db):
    token = jwt.encode({"sub": str(10**30)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(errors.UserNotFound):
        tokens.resolve_current_user(db, token)
