from functools import wraps

from flask_jwt_extended import get_jwt_identity

from crumbsy.extensions import bcrypt, db
from crumbsy.models.user import User
from crumbsy.utils.response_formatter import error_response

def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode("utf-8")

def check_password(password, hashed_password):
    return bcrypt.check_password_hash(hashed_password, password)

def current_user():
    uid = get_jwt_identity()
    return db.session.get(User, uid) if uid else None

def role_required(*roles):
    """Reject the request unless the JWT user has one of ``roles``.

    Must be stacked under ``@jwt_required()``. The resolved user is passed
    to the view as the ``user`` keyword argument.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_user()
            if not user:
                return error_response("UNAUTHORIZED", "User not found", status=401)
            if roles and user.role not in roles:
                return error_response(
                    "FORBIDDEN",
                    f"Only {' or '.join(roles)} accounts can do this",
                    status=403
                )
            return fn(*args, user=user, **kwargs)
        return wrapper
    return decorator
