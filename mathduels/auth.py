"""Bearer token identity for API calls and hosted sessions.

Tokens are itsdangerous-signed payloads carrying the user id. Flask-Login
resolves them through a request loader, so views can rely on
``current_user`` exactly as they would with cookie sessions.
"""

from functools import wraps
from typing import Optional

from flask import current_app, g, jsonify, request
from flask_login import current_user
from itsdangerous import BadSignature, URLSafeSerializer

from mathduels import db
from mathduels.models import User


def _serializer() -> URLSafeSerializer:
    return URLSafeSerializer(
        current_app.config['SECRET_KEY'],
        salt=current_app.config.get('AUTH_TOKEN_SALT', 'mathduels-auth'),
    )


def issue_token(user: User) -> str:
    return _serializer().dumps({'user_id': user.id})


def bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    parts = header.split(' ')
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def user_from_token(token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    try:
        data = _serializer().loads(token)
    except BadSignature:
        return None
    user_id = data.get('user_id') if isinstance(data, dict) else None
    if not isinstance(user_id, int):
        return None
    return db.session.get(User, user_id)


def load_user_from_request(req) -> Optional[User]:
    return user_from_token(bearer_token(req.headers.get('Authorization')))


def token_required(view):
    """Reject with 401 when no bearer is sent and 403 when it does not verify."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        if not bearer_token(request.headers.get('Authorization')):
            return jsonify({'error': 'Access token required'}), 401
        if not current_user.is_authenticated:
            return jsonify({'error': 'Invalid token'}), 403
        return view(*args, **kwargs)

    return wrapped


def reset_request_identity() -> None:
    # Identity comes from each request's bearer; never reuse a cached user
    g.pop('_login_user', None)
