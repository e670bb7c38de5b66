from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required

from crumbsy.models.order import Order
from crumbsy.schemas.order_schema import OrderStatusSchema
from crumbsy.schemas.user_schema import AdminUserUpdateSchema
from crumbsy.services.auth_service import list_users, admin_update_user, delete_user
from crumbsy.services.order_service import get_order_service
from crumbsy.utils.auth_utils import role_required
from crumbsy.utils.pagination import paginate_query
from crumbsy.utils.response_formatter import success_response

bp = Blueprint("admin", __name__, url_prefix="/api/v1/admin")


# ---- List users ----
@bp.route("/users", methods=["GET"])
@jwt_required()
@role_required("admin")
def admin_list_users(user):
    q = list_users(
        role=request.args.get("type"),
        search=request.args.get("search", "").strip() or None,
    )
    items, pagination = paginate_query(q, request.args.get("page"), request.args.get("limit"))
    return success_response({
        "users": [u.to_dict() for u in items],
        "pagination": pagination,
    })


# ---- Edit a user ----
@bp.route("/users/<user_id>", methods=["PUT"])
@jwt_required()
@role_required("admin")
def admin_edit_user(user_id, user):
    data = AdminUserUpdateSchema().load(request.get_json(silent=True) or {})
    edited = admin_update_user(user_id, **data)
    current_app.logger.info("Admin %s edited user %s", user.id, user_id)
    return success_response({"user": edited.to_dict()})


# ---- Delete a user ----
@bp.route("/users/<user_id>", methods=["DELETE"])
@jwt_required()
@role_required("admin")
def admin_delete_user(user_id, user):
    delete_user(user_id)
    current_app.logger.info("Admin %s deleted user %s", user.id, user_id)
    return success_response({"id": user_id, "message": "User deleted"})


# ---- List orders ----
@bp.route("/orders", methods=["GET"])
@jwt_required()
@role_required("admin")
def admin_list_orders(user):
    q = Order.query
    status = request.args.get("status")
    if status:
        q = q.filter(Order.status == status)

    items, pagination = paginate_query(
        q.order_by(Order.created_at.desc()),
        request.args.get("page"),
        request.args.get("limit"),
    )
    return success_response({
        "orders": [o.serialize(viewer=user) for o in items],
        "pagination": pagination,
    })


# ---- Force an order status ----
@bp.route("/orders/<order_id>/status", methods=["PUT"])
@jwt_required()
@role_required("admin")
def admin_update_order_status(order_id, user):
    data = OrderStatusSchema().load(request.get_json(silent=True) or {})
    order = get_order_service().update_order_status(
        order_id,
        data["status"],
        otp_code=data.get("otp_code"),
    )
    current_app.logger.info("Admin %s set order %s to %s", user.id, order.id, order.status)
    return success_response(order.serialize(viewer=user))
