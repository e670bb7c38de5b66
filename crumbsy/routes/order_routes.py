from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from crumbsy.extensions import db
from crumbsy.models.order import (
    POSTED,
    IN_PROGRESS,
    OUT_FOR_DELIVERY,
)
from crumbsy.models.user import User
from crumbsy.schemas.order_schema import (
    OrderCreateSchema,
    OrderUpdateSchema,
    AssignBakerSchema,
    OrderStatusSchema,
    ConfirmDeliverySchema,
)
from crumbsy.services.cake_service import get_user_design
from crumbsy.services.order_service import get_order_service, has_active_baker_quote
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.response_formatter import success_response, error_response

bp = Blueprint("orders", __name__, url_prefix="/api/v1/orders")

# Statuses the assigned baker may set directly; delivery needs the code
BAKER_STATUS_UPDATES = (IN_PROGRESS, OUT_FOR_DELIVERY)


def is_participant(order, user):
    """Buyer, assigned baker, bakers who quoted or wrote in the chat, admins."""
    if user.role == "admin" or order.buyer_id == user.id or order.baker_id == user.id:
        return True
    if user.role != "baker":
        return False
    return (
        any(q.baker_id == user.id for q in order.quotes)
        or any(m.sender_id == user.id for m in order.messages)
    )


def can_view(order, user):
    if is_participant(order, user):
        return True
    # open orders are visible to every baker
    return user.role == "baker" and order.status == POSTED


def load_visible_order(order_id, user):
    order = get_order_service().get_order(order_id)
    if not can_view(order, user):
        return None
    return order


# ------------------------------------------------------------
#  POST /orders — Buyer posts an order for a cake design
# ------------------------------------------------------------
@bp.route("", methods=["POST"])
@jwt_required()
@role_required("buyer")
def create_order(user):
    data = OrderCreateSchema().load(request.get_json(silent=True) or {})

    if data.get("design_id"):
        design = get_user_design(data["design_id"], user.id)
    else:
        design = dict(data["cake_design"], id=None)

    order = get_order_service().create_order(
        buyer_id=user.id,
        cake_design=design,
        delivery_zip_code=data["delivery_zip_code"],
        expected_delivery_date=data["expected_delivery_date"],
        delivery_address=data.get("delivery_address"),
    )
    return success_response(order.serialize(viewer=user), status=201)


# ------------------------------------------------------------
#  GET /orders — Buyers: own orders. Bakers: ?scope=available|quoted|assigned
# ------------------------------------------------------------
@bp.route("", methods=["GET"])
@jwt_required()
@role_required("buyer", "baker")
def list_orders(user):
    service = get_order_service()

    if user.role == "buyer":
        orders = service.get_buyer_orders(user.id)
    else:
        scope = request.args.get("scope", "available")
        if scope == "available":
            orders = service.get_available_orders()
        elif scope == "quoted":
            orders = service.get_quoted_orders(user.id)
        elif scope == "assigned":
            orders = service.get_baker_orders(user.id)
        else:
            return error_response(
                "VALIDATION_ERROR",
                "Invalid scope (use 'available', 'quoted' or 'assigned')",
                {"field": "scope"},
                status=422
            )

    status = request.args.get("status")
    if status:
        orders = [o for o in orders if o.status == status]

    return success_response({"orders": [o.serialize(viewer=user) for o in orders]})


# ------------------------------------------------------------
#  GET /orders/<order_id>
# ------------------------------------------------------------
@bp.route("/<order_id>", methods=["GET"])
@jwt_required()
@role_required()
def get_order(order_id, user):
    order = load_visible_order(order_id, user)
    if not order:
        return error_response("NOT_FOUND", "Order not found", status=404)

    service = get_order_service()
    payload = order.serialize(viewer=user, include_messages=is_participant(order, user))
    payload["canCancel"] = service.can_cancel(order, user.id, user.role)
    payload["canDecline"] = service.can_decline(order, user.id)
    if user.role == "baker":
        payload["hasActiveQuote"] = has_active_baker_quote(order, user.id)
    return success_response(payload)


# ------------------------------------------------------------
#  PATCH /orders/<order_id> — Buyer edits delivery details while posted
# ------------------------------------------------------------
@bp.route("/<order_id>", methods=["PATCH"])
@jwt_required()
@role_required("buyer")
def update_order(order_id, user):
    service = get_order_service()
    order = service.get_order(order_id)
    if order.buyer_id != user.id:
        return error_response("NOT_FOUND", "Order not found", status=404)
    if order.status != POSTED:
        return error_response(
            "INVALID_OPERATION",
            "Only posted orders can be edited",
            status=409
        )

    data = OrderUpdateSchema().load(request.get_json(silent=True) or {})
    order = service.update_order(order_id, **data)
    return success_response(order.serialize(viewer=user))


# ------------------------------------------------------------
#  POST /orders/<order_id>/assign — Buyer accepts a baker
# ------------------------------------------------------------
@bp.route("/<order_id>/assign", methods=["POST"])
@jwt_required()
@role_required("buyer")
def assign_baker(order_id, user):
    service = get_order_service()
    order = service.get_order(order_id)
    if order.buyer_id != user.id:
        return error_response("NOT_FOUND", "Order not found", status=404)

    data = AssignBakerSchema().load(request.get_json(silent=True) or {})
    baker = db.session.get(User, data["baker_id"])
    if not baker or baker.role != "baker":
        return error_response(
            "VALIDATION_ERROR",
            "Baker not found",
            {"field": "bakerId"},
            status=422
        )

    order = service.assign_baker(order_id, baker.id)
    current_app.logger.info("Buyer %s assigned baker %s to %s", user.id, baker.id, order.id)
    return success_response(order.serialize(viewer=user))


# ------------------------------------------------------------
#  POST /orders/<order_id>/cancel — Buyer cancels
#  - always while posted
#  - within 24h of assignment and more than 3 days before delivery
# ------------------------------------------------------------
@bp.route("/<order_id>/cancel", methods=["POST"])
@jwt_required()
@role_required("buyer")
def cancel_order(order_id, user):
    service = get_order_service()
    order = service.get_order(order_id)
    if order.buyer_id != user.id:
        return error_response("NOT_FOUND", "Order not found", status=404)

    if not service.cancel_order(order_id, user.id):
        window = current_app.config["CANCEL_WINDOW_HOURS"]
        lead = current_app.config["CANCEL_MIN_LEAD_DAYS"]
        return error_response(
            "INVALID_OPERATION",
            f"Assigned orders can only be cancelled within {window} hours of "
            f"assignment and more than {lead} days before delivery",
            {"status": service.get_order(order_id).status},
            status=409
        )

    order = service.get_order(order_id)
    return success_response({
        "orderId": order.id,
        "status": order.status,
        "message": "Order cancelled successfully",
    })


# ------------------------------------------------------------
#  POST /orders/<order_id>/decline — Assigned baker hands the order back
# ------------------------------------------------------------
@bp.route("/<order_id>/decline", methods=["POST"])
@jwt_required()
@role_required("baker")
def decline_order(order_id, user):
    service = get_order_service()

    if not service.decline_order(order_id, user.id):
        window = current_app.config["DECLINE_WINDOW_HOURS"]
        return error_response(
            "INVALID_OPERATION",
            f"Orders can only be declined by the assigned baker within {window} hours of assignment",
            {"status": service.get_order(order_id).status},
            status=409
        )

    order = service.get_order(order_id)
    return success_response({
        "orderId": order.id,
        "status": order.status,
        "message": "Order declined and reopened for quotes",
    })


# ------------------------------------------------------------
#  PUT /orders/<order_id>/status — Assigned baker advances fulfilment
# ------------------------------------------------------------
@bp.route("/<order_id>/status", methods=["PUT"])
@jwt_required()
@role_required("baker")
def update_status(order_id, user):
    service = get_order_service()
    order = service.get_order(order_id)
    if order.baker_id != user.id:
        return error_response(
            "FORBIDDEN",
            "Only the assigned baker can update this order",
            status=403
        )

    data = OrderStatusSchema().load(request.get_json(silent=True) or {})
    if data["status"] not in BAKER_STATUS_UPDATES:
        return error_response(
            "VALIDATION_ERROR",
            f"Bakers can only move orders to {', '.join(BAKER_STATUS_UPDATES)}",
            {"field": "status"},
            status=422
        )

    order = service.update_order_status(order_id, data["status"])
    return success_response(order.serialize(viewer=user))


# ------------------------------------------------------------
#  POST /orders/<order_id>/confirm-delivery — Baker enters the buyer's code
# ------------------------------------------------------------
@bp.route("/<order_id>/confirm-delivery", methods=["POST"])
@jwt_required()
@role_required("baker")
def confirm_delivery(order_id, user):
    data = ConfirmDeliverySchema().load(request.get_json(silent=True) or {})
    service = get_order_service()

    if not service.confirm_delivery(order_id, user.id, data["otp_code"]):
        return error_response(
            "INVALID_OPERATION",
            "Delivery code does not match or order is not out for delivery",
            status=409
        )

    order = service.get_order(order_id)
    return success_response({
        "orderId": order.id,
        "status": order.status,
        "message": "Delivery confirmed",
    })
