from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from crumbsy.routes.order_routes import is_participant, can_view
from crumbsy.schemas.chat_schema import MessageSchema
from crumbsy.services.order_service import get_order_service
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response, error_response

bp = Blueprint("messages", __name__, url_prefix="/api/v1/orders/<order_id>/messages")


@bp.route("", methods=["GET"])
@jwt_required()
@role_required()
def list_messages(order_id, user):
    order = get_order_service().get_order(order_id)
    if not is_participant(order, user):
        return error_response("NOT_FOUND", "Order not found", status=404)

    return success_response({"messages": [m.serialize() for m in order.messages]})


@bp.route("", methods=["POST"])
@jwt_required()
@role_required("buyer", "baker")
def post_message(order_id, user):
    service = get_order_service()
    order = service.get_order(order_id)

    # a baker can open the conversation on any posted order
    if not can_view(order, user):
        return error_response("NOT_FOUND", "Order not found", status=404)

    data = MessageSchema().load(request.get_json(silent=True) or {})
    msg = service.add_message(
        order_id,
        sender_id=user.id,
        sender_type=user.role,
        message=data["message"].strip(),
        image=data.get("image"),
    )
    return success_response(msg.serialize(), status=201)
