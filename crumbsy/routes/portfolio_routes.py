from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from crumbsy.extensions import db
from crumbsy.models.user import User
from crumbsy.schemas.portfolio_schema import PortfolioItemSchema, PortfolioItemUpdateSchema
from crumbsy.services.portfolio_service import (
    get_baker_portfolio,
    add_portfolio_item,
    update_portfolio_item,
    delete_portfolio_item,
)
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response, error_response

bp = Blueprint("portfolio", __name__, url_prefix="/api/v1")


@bp.route("/bakers/<baker_id>/portfolio", methods=["GET"])
@jwt_required()
def baker_portfolio(baker_id):
    baker = db.session.get(User, baker_id)
    if not baker or baker.role != "baker":
        return error_response("NOT_FOUND", "Baker not found", status=404)

    items = get_baker_portfolio(baker_id)
    return success_response({
        "baker": baker.public_profile(),
        "cancelationDays": baker.cancelation_days,
        "items": [i.serialize() for i in items],
    })


@bp.route("/portfolio", methods=["POST"])
@jwt_required()
@role_required("baker")
def create_item(user):
    data = PortfolioItemSchema().load(request.get_json(silent=True) or {})
    item = add_portfolio_item(user.id, data["image"], data.get("caption"))
    return success_response(item.serialize(), status=201)


@bp.route("/portfolio/<item_id>", methods=["PUT"])
@jwt_required()
@role_required("baker")
def update_item(item_id, user):
    data = PortfolioItemUpdateSchema().load(request.get_json(silent=True) or {})
    item = update_portfolio_item(item_id, user.id, **data)
    return success_response(item.serialize())


@bp.route("/portfolio/<item_id>", methods=["DELETE"])
@jwt_required()
@role_required("baker")
def delete_item(item_id, user):
    if not delete_portfolio_item(item_id, user.id):
        return error_response("NOT_FOUND", "Portfolio item not found", status=404)
    return success_response({"message": "Portfolio item deleted"})
