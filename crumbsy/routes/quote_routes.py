from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from crumbsy.models.order import POSTED
from crumbsy.schemas.quote_schema import QuoteSchema
from crumbsy.services.order_service import get_order_service, active_quote_count
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response, error_response

bp = Blueprint("quotes", __name__, url_prefix="/api/v1/orders/<order_id>/quotes")


# ------------------------------------------------------------
#  GET /orders/<order_id>/quotes — Buyer sees all quotes, a baker their own
# ------------------------------------------------------------
@bp.route("", methods=["GET"])
@jwt_required()
@role_required("buyer", "baker")
def list_quotes(order_id, user):
    order = get_order_service().get_order(order_id)

    if user.role == "buyer":
        if order.buyer_id != user.id:
            return error_response("NOT_FOUND", "Order not found", status=404)
        quotes = order.quotes
        if request.args.get("active") == "true":
            quotes = order.active_quotes()
    else:
        quotes = [q for q in order.quotes if q.baker_id == user.id]

    return success_response({
        "quotes": [q.serialize() for q in quotes],
        "activeCount": active_quote_count(order),
    })


# ------------------------------------------------------------
#  POST /orders/<order_id>/quotes — Baker submits or replaces a quote
# ------------------------------------------------------------
@bp.route("", methods=["POST"])
@jwt_required()
@role_required("baker")
def send_quote(order_id, user):
    data = QuoteSchema().load(request.get_json(silent=True) or {})

    service = get_order_service()
    order = service.get_order(order_id)
    if order.status != POSTED:
        return error_response(
            "INVALID_OPERATION",
            "This order is no longer open for quotes",
            {"status": order.status},
            status=409
        )

    quote = service.send_quote(
        order_id,
        user.id,
        data["price"],
        data.get("modification_requests", ""),
        data["message"].strip(),
    )
    return success_response(quote.serialize(), status=201)


# ------------------------------------------------------------
#  DELETE /orders/<order_id>/quotes — Baker withdraws their quote
# ------------------------------------------------------------
@bp.route("", methods=["DELETE"])
@jwt_required()
@role_required("baker")
def revoke_quote(order_id, user):
    withdrawn = get_order_service().revoke_quote(order_id, user.id)
    return success_response({
        "orderId": order_id,
        "withdrawn": withdrawn,
        "message": "Quote withdrawn" if withdrawn else "No active quote to withdraw",
    })
