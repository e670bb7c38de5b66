from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from crumbsy.schemas.user_schema import RegisterSchema, LoginSchema, ProfileUpdateSchema
from crumbsy.services.auth_service import (
    register_user,
    authenticate_user,
    generate_tokens_for_user,
    update_user,
)
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.route("/register", methods=["POST"])
def register():
    data = RegisterSchema().load(request.get_json(silent=True) or {})

    user = register_user(
        data.pop("email"),
        data.pop("username"),
        data.pop("password"),
        data.pop("name"),
        role=data.pop("role"),
        **data,
    )
    access, refresh = generate_tokens_for_user(user)
    return success_response({
        "user": user.to_dict(),
        "access_token": access,
        "refresh_token": refresh
    }, status=201)


@bp.route("/login", methods=["POST"])
def login():
    data = LoginSchema().load(request.get_json(silent=True) or {})

    user = authenticate_user(data["identifier"], data["password"])
    access, refresh = generate_tokens_for_user(user)
    return success_response({
        "user": user.to_dict(),
        "access_token": access,
        "refresh_token": refresh
    })


@bp.route("/me", methods=["GET"])
@jwt_required()
@role_required()
def me(user):
    return success_response({"user": user.to_dict()})


@bp.route("/me", methods=["PATCH"])
@jwt_required()
@role_required()
def update_me(user):
    data = ProfileUpdateSchema().load(request.get_json(silent=True) or {})
    if user.role != "baker":
        data.pop("cancelation_days", None)

    user = update_user(user, **data)
    return success_response({"user": user.to_dict()})
