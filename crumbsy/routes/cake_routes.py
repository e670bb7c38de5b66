from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from crumbsy.schemas.cake_schema import CakeDesignSchema
from crumbsy.services.cake_service import (
    get_user_designs,
    save_design,
    delete_design,
)
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response, error_response

bp = Blueprint("designs", __name__, url_prefix="/api/v1/designs")


@bp.route("", methods=["GET"])
@jwt_required()
@role_required()
def list_designs(user):
    designs = get_user_designs(user.id)
    return success_response({"designs": [d.serialize() for d in designs]})


@bp.route("", methods=["POST"])
@jwt_required()
@role_required()
def create_design(user):
    data = CakeDesignSchema().load(request.get_json(silent=True) or {})
    design = save_design(user.id, data)
    return success_response(design.serialize(), status=201)


@bp.route("/<design_id>", methods=["PUT"])
@jwt_required()
@role_required()
def replace_design(design_id, user):
    data = CakeDesignSchema().load(request.get_json(silent=True) or {})
    design = save_design(user.id, data, design_id=design_id)
    return success_response(design.serialize())


@bp.route("/<design_id>", methods=["DELETE"])
@jwt_required()
@role_required()
def remove_design(design_id, user):
    if not delete_design(design_id, user.id):
        return error_response("NOT_FOUND", "Design not found", status=404)
    return success_response({"message": "Design deleted"})
