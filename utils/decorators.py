from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app


def jwt_required():
    """
    Require a valid Bearer access token. The token's subject is exposed as
    g.current_user_id.
    Bad or expired tokens raise TokenInvalid/TokenExpired (rendered as 401).
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            decoded = current_app.extensions["token_issuer"].decode_access(token)

            g.current_user_id = decoded["sub"]
            return fn(*args, **kwargs)

        return wrapper

    return decorator
