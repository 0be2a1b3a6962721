"""
Auth service: registration, login, refresh-token rotation and logout.

Collaborators (storage, hasher, token issuer) are passed in explicitly so the
service can run against any DBStorage and any signing configuration.

Refresh tokens are stored only as hashes, keyed by the jti embedded in the
token itself; a user may hold one live refresh token per logged-in device.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError

from models.base_model import as_utc, utcnow
from models.refresh_token import RefreshToken
from models.schemas.user import TokenPairSchema, UserPublicSchema, normalize_username
from models.user import User
from utils.errors import (
    DuplicateUsername,
    InvalidCredentials,
    TokenExpired,
    TokenInvalid,
    TokenNotFound,
    UserNotFound,
)
from utils.security import generate_jti

logger = logging.getLogger(__name__)

LOGOUT_MESSAGE = "Successfully logged out"

user_public_schema = UserPublicSchema()
token_pair_schema = TokenPairSchema()


class AuthService:

    def __init__(self, storage, hasher, issuer):
        self.storage = storage
        self.hasher = hasher
        self.issuer = issuer
        # compared against when a username does not exist, so a miss costs
        # the same as a wrong password
        self._dummy_hash = hasher.hash(generate_jti())

    def register(self, data: Dict[str, Any], profile: str | None = None) -> Dict[str, Any]:
        """
        Create a user from validated registration data and return its public
        projection. Raises DuplicateUsername if the username is taken, including
        when a concurrent registration wins the unique constraint.
        """
        username = normalize_username(data["username"])
        session = self.storage.get_session()
        if session.query(User).filter(User.username == username).first():
            raise DuplicateUsername()

        user = User(
            username=username,
            password_hash=self.hasher.hash(data["password"]),
            email=data["email"],
            name=data.get("name"),
            biography=data.get("biography"),
            profile=profile,
        )
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError:
            # DBStorage.save already rolled back
            raise DuplicateUsername()

        logger.info("Registered user %s (%s)", user.username, user.id)
        return user_public_schema.dump(user)

    def login(self, username: str, password: str) -> Dict[str, Any]:
        username = normalize_username(username)
        session = self.storage.get_session()
        user = session.query(User).filter(User.username == username).first()
        if user is None:
            self.hasher.compare(password, self._dummy_hash)
            logger.warning("Login rejected: unknown username %s", username)
            raise UserNotFound()
        if not self.hasher.compare(password, user.password_hash):
            logger.warning("Login rejected: wrong password for %s", user.id)
            raise InvalidCredentials()

        tokens = self._issue_tokens(user.id, user.username)
        logger.info("User %s logged in", user.id)
        return tokens

    def refresh(self, user_id: str, username: str, incoming_token: str, token_id: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new token pair.

        The stored record is looked up by the token's jti and owner. It is
        consumed with a conditional delete that is committed before the
        replacement is issued; if another request consumed it first the delete
        affects no rows and this call fails with TokenNotFound.
        """
        session = self.storage.get_session()
        record = (
            session.query(RefreshToken)
            .filter(RefreshToken.id == token_id, RefreshToken.user_id == str(user_id))
            .first()
        )
        if record is None:
            logger.warning("Refresh rejected for %s: token not found", user_id)
            raise TokenNotFound()

        if not self.hasher.compare(incoming_token, record.token_hash):
            logger.warning("Refresh rejected for %s: token mismatch", user_id)
            raise TokenInvalid()

        if as_utc(record.expires_at) <= utcnow():
            self._consume(record.id)
            logger.warning("Refresh rejected for %s: token expired", user_id)
            raise TokenExpired("Refresh token has expired")

        if not self._consume(record.id):
            logger.warning("Refresh rejected for %s: token already consumed", user_id)
            raise TokenNotFound()

        tokens = self._issue_tokens(user_id, username)
        logger.info("Rotated refresh token for %s", user_id)
        return tokens

    def logout(self, user_id: str) -> Dict[str, str]:
        """Delete every refresh token of the user; all devices are signed out."""
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == str(user_id))
            .delete(synchronize_session=False)
        )
        self.storage.save()
        logger.info("User %s logged out (%d refresh tokens removed)", user_id, deleted)
        return {"message": LOGOUT_MESSAGE}

    def logout_all_devices(self, user_id: str) -> Dict[str, str]:
        return self.logout(user_id)

    def _consume(self, record_id: str) -> bool:
        """Delete one refresh record and commit. False if it was already gone."""
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.id == record_id)
            .delete(synchronize_session=False)
        )
        if deleted != 1:
            self.storage.rollback()
            return False
        self.storage.save()
        return True

    def _issue_tokens(self, user_id, username: str) -> Dict[str, Any]:
        jti = generate_jti()
        expires_at = self.issuer.refresh_expiry()
        access_token = self.issuer.issue_access(user_id, username)
        refresh_token = self.issuer.issue_refresh(user_id, username, jti=jti, expires_at=expires_at)

        self.storage.new(
            RefreshToken(
                id=jti,
                user_id=str(user_id),
                token_hash=self.hasher.hash(refresh_token),
                expires_at=expires_at,
            )
        )
        self.storage.save()

        return token_pair_schema.dump(
            {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_in": self.issuer.access_expires_in,
            }
        )
