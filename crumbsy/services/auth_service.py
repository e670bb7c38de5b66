import logging

from crumbsy.extensions import db
from crumbsy.models.user import User, DEFAULT_CANCELATION_DAYS
from crumbsy.models.order import Order
from crumbsy.models.quote import Quote
from crumbsy.utils.auth_utils import hash_password, check_password
from crumbsy.utils.exceptions import ServiceError
from flask_jwt_extended import create_access_token, create_refresh_token
from datetime import timedelta
from flask import current_app

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "name",
    "profile_picture",
    "location",
    "zip_code",
    "phone",
    "address",
    "cancelation_days",
)

def register_user(email, username, password, name, role="buyer", **profile):
    if User.query.filter_by(email=email).first():
        raise ServiceError(
            code="USER_EXISTS",
            message="An account with this email already exists",
            details={"field": "email"}
        )
    if User.query.filter_by(username=username).first():
        raise ServiceError(
            code="USERNAME_TAKEN",
            message="This username is already taken",
            details={"field": "username"}
        )

    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        name=name,
        role=role,
    )
    for k in PROFILE_FIELDS:
        if profile.get(k) is not None:
            setattr(user, k, profile[k])

    if role == "baker" and user.cancelation_days is None:
        user.cancelation_days = DEFAULT_CANCELATION_DAYS

    db.session.add(user)
    db.session.commit()
    logger.info("Registered %s %s", role, user.id)
    return user

def authenticate_user(identifier, password):
    user = User.query.filter(
        db.or_(User.email == identifier, User.username == identifier)
    ).first()
    if not user or not check_password(password, user.password_hash):
        raise ServiceError(code="AUTH_FAILED", message="Invalid credentials")
    return user

def generate_tokens_for_user(user):
    access = create_access_token(identity=user.id, expires_delta=timedelta(seconds=current_app.config.get("ACCESS_EXPIRES", 86400)))
    refresh = create_refresh_token(identity=user.id, expires_delta=timedelta(seconds=current_app.config.get("REFRESH_EXPIRES", 86400)))
    return access, refresh

def update_user(user, **updates):
    for k, v in updates.items():
        if k in PROFILE_FIELDS:
            setattr(user, k, v)
    db.session.commit()
    return user

ADMIN_EDITABLE_FIELDS = (
    "name",
    "email",
    "username",
    "role",
    "location",
    "zip_code",
)

def admin_update_user(user_id, **updates):
    user = db.session.get(User, user_id)
    if not user:
        raise ServiceError(code="NOT_FOUND", message="User not found")

    email = updates.get("email")
    if email and email != user.email and User.query.filter_by(email=email).first():
        raise ServiceError(
            code="USER_EXISTS",
            message="An account with this email already exists",
            details={"field": "email"}
        )
    username = updates.get("username")
    if username and username != user.username and User.query.filter_by(username=username).first():
        raise ServiceError(
            code="USERNAME_TAKEN",
            message="This username is already taken",
            details={"field": "username"}
        )

    for k, v in updates.items():
        if k in ADMIN_EDITABLE_FIELDS:
            setattr(user, k, v)
    if user.role == "baker" and user.cancelation_days is None:
        user.cancelation_days = DEFAULT_CANCELATION_DAYS

    db.session.commit()
    logger.info("Admin updated user %s", user_id)
    return user

def list_users(role=None, search=None):
    q = User.query
    if role:
        q = q.filter(User.role == role)
    if search:
        term = f"%{search}%"
        q = q.filter(
            db.or_(
                User.name.ilike(term),
                User.email.ilike(term),
                User.username.ilike(term),
            )
        )
    return q.order_by(User.joined_at.desc())

def delete_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise ServiceError(code="NOT_FOUND", message="User not found")
    if user.role == "admin":
        raise ServiceError(code="INVALID_OPERATION", message="Admin accounts cannot be deleted")

    has_orders = Order.query.filter(
        db.or_(Order.buyer_id == user_id, Order.baker_id == user_id)
    ).first()
    has_quotes = Quote.query.filter_by(baker_id=user_id).first()
    if has_orders or has_quotes:
        raise ServiceError(
            code="INVALID_OPERATION",
            message="User has orders or quotes on record and cannot be deleted",
        )

    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)
