from marshmallow import EXCLUDE, Schema, fields, pre_load, validate

USERNAME_PATTERN = r"^[a-z0-9]+$"


def normalize_username(v):
    return v.strip().lower() if isinstance(v, str) else v


def _username_field():
    return fields.String(
        required=True,
        validate=[
            validate.Length(min=5, max=20),
            validate.Regexp(USERNAME_PATTERN, error="username can contain => a-z, 0-9"),
        ],
    )


def _password_field():
    return fields.String(required=True, load_only=True, validate=validate.Length(min=5, max=20))


class _CredentialsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data = dict(data)
            data["username"] = normalize_username(data["username"])
        return data


class RegisterUserSchema(_CredentialsSchema):
    username = _username_field()
    password = _password_field()
    email = fields.Email(required=True)
    name = fields.String(allow_none=True, validate=validate.Length(min=1, max=30))
    biography = fields.String(allow_none=True, validate=validate.Length(min=1, max=250))


class LoginUserSchema(_CredentialsSchema):
    username = _username_field()
    password = _password_field()


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, data_key="refreshToken", validate=validate.Length(min=1))


class UserPublicSchema(Schema):
    """Public projection of a user; the password hash is never part of it."""
    username = fields.String()
    name = fields.String(allow_none=True)
    email = fields.String()
    profile = fields.String(allow_none=True)


class TokenPairSchema(Schema):
    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")
    expires_in = fields.Integer(data_key="expiresIn")
