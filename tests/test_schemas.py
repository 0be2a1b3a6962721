import pytest
from marshmallow import ValidationError

from models.schemas.user import LoginUserSchema, RefreshSchema, RegisterUserSchema, UserPublicSchema


def test_register_normalizes_username():
    data = RegisterUserSchema().load({"username": "  Alice1 ", "password": "secret12", "email": "a@x.com"})
    assert data["username"] == "alice1"


@pytest.mark.parametrize("username", ["abc", "a" * 21, "alice_1", "alice 1", "álice1", ""])
def test_register_rejects_bad_usernames(username):
    with pytest.raises(ValidationError) as exc:
        RegisterUserSchema().load({"username": username, "password": "secret12", "email": "a@x.com"})
    assert "username" in exc.value.messages


def test_register_reports_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        RegisterUserSchema().load({})
    assert {"username", "password", "email"} <= set(exc.value.messages)


@pytest.mark.parametrize(
    "extra, field",
    [
        ({"email": "not-an-email"}, "email"),
        ({"password": "1234"}, "password"),
        ({"password": "x" * 21}, "password"),
        ({"name": ""}, "name"),
        ({"name": "n" * 31}, "name"),
        ({"biography": "b" * 251}, "biography"),
    ],
)
def test_register_field_rules(extra, field):
    payload = {"username": "alice1", "password": "secret12", "email": "a@x.com"}
    payload.update(extra)
    with pytest.raises(ValidationError) as exc:
        RegisterUserSchema().load(payload)
    assert field in exc.value.messages


def test_register_ignores_unknown_fields():
    data = RegisterUserSchema().load(
        {"username": "alice1", "password": "secret12", "email": "a@x.com", "profile": "http://evil"}
    )
    assert "profile" not in data


def test_login_schema_normalizes_username():
    assert LoginUserSchema().load({"username": "ALICE1", "password": "secret12"})["username"] == "alice1"


def test_refresh_schema_requires_token():
    with pytest.raises(ValidationError):
        RefreshSchema().load({"refreshToken": ""})
    assert RefreshSchema().load({"refreshToken": "abc"}) == {"refresh_token": "abc"}


def test_public_projection_never_has_password():
    dumped = UserPublicSchema().dump(
        {"username": "alice1", "email": "a@x.com", "password": "secret12", "password_hash": "h"}
    )
    assert "password" not in dumped
    assert "password_hash" not in dumped


def test_username_pattern_message_lists_lowercase_only():
    with pytest.raises(ValidationError) as exc:
        RegisterUserSchema().load({"username": "alice_1", "password": "secret12", "email": "a@x.com"})
    assert exc.value.messages["username"] == ["username can contain => a-z, 0-9"]
