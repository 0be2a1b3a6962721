"""
Authentication blueprint:
- POST /auth/register   (multipart form with optional profile_image, or JSON)
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all

The routes only validate input and shape responses; the work happens in
AuthService (services.auth_service).
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app, url_for

from api.uploads import PROFILE_IMAGE_FIELD, remove_profile_image, save_profile_image
from models.schemas.user import LoginUserSchema, RefreshSchema, RegisterUserSchema
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterUserSchema()
login_schema = LoginUserSchema()
refresh_schema = RefreshSchema()


def get_auth_service():
    return current_app.extensions["auth_service"]


def _request_payload() -> dict:
    if request.mimetype in ("multipart/form-data", "application/x-www-form-urlencoded"):
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
      - application/json
    parameters:
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: name, type: string }
      - { in: formData, name: biography, type: string }
      - { in: formData, name: profile_image, type: file }
    responses:
      201:
        description: Created; returns username, name, email, profile
      409:
        description: Username already taken
      413:
        description: Upload too large
      422:
        description: Validation error
    """
    data = register_schema.load(_request_payload())

    upload_folder = current_app.config["UPLOAD_FOLDER"]
    filename = save_profile_image(
        request.files.get(PROFILE_IMAGE_FIELD),
        upload_folder,
        current_app.config["MAX_PROFILE_IMAGE_SIZE"],
    )
    profile = url_for("profile_image", filename=filename, _external=True) if filename else None

    try:
        user = get_auth_service().register(data, profile)
    except Exception:
        remove_profile_image(upload_folder, filename)
        raise

    return jsonify(user), 201


@bp.post("/login")
def login():
    """
    Login: return accessToken and refreshToken
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns accessToken, refreshToken, expiresIn)
      401:
        description: Invalid username or password
      422:
        description: Validation error
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_service().login(data["username"], data["password"])
    return jsonify(tokens), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new token pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns accessToken, refreshToken, expiresIn)
      401:
        description: Refresh token not found, invalid or expired
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    token = data["refresh_token"]

    # expiry is checked by the service against the stored record so an
    # expired record is purged rather than left behind
    claims = current_app.extensions["token_issuer"].decode_refresh(token, verify_exp=False)
    tokens = get_auth_service().refresh(claims["sub"], claims["username"], token, claims["jti"])
    return jsonify(tokens), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes every refresh token of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    return jsonify(get_auth_service().logout(g.current_user_id)), 200


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Logout from all devices
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out everywhere
      401:
        description: Unauthorized
    """
    return jsonify(get_auth_service().logout_all_devices(g.current_user_id)), 200
