import copy
import logging
import math
from decimal import Decimal

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from crumbsy.extensions import db
from crumbsy.models.order import (
    Order,
    ORDER_STATUSES,
    POSTED,
    BAKER_ASSIGNED,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
)
from crumbsy.models.quote import Quote
from crumbsy.models.message import ChatMessage
from crumbsy.utils.dates import utcnow, as_utc, parse_datetime
from crumbsy.utils.exceptions import ServiceError, OrderNotFound, InvalidStatus
from crumbsy.utils.otp import generate_otp, verify_otp

logger = logging.getLogger(__name__)

CANCEL_WINDOW_HOURS = 24
CANCEL_MIN_LEAD_DAYS = 3
DECLINE_WINDOW_HOURS = 24

WITHDRAWAL_MESSAGE = "Quote has been withdrawn."

# Fields a buyer may rewrite through update_order
EDITABLE_FIELDS = (
    "delivery_zip_code",
    "delivery_address",
    "expected_delivery_date",
    "modification_requests",
)


def hours_since(moment, now):
    return (now - as_utc(moment)).total_seconds() / 3600


def days_until(moment, now):
    return math.ceil((as_utc(moment) - now).total_seconds() / 86400)


# ------------------------------------------------------------
# Eligibility predicates
# ------------------------------------------------------------
def can_cancel_order(
    order,
    user_id,
    user_type,
    now=None,
    window_hours=CANCEL_WINDOW_HOURS,
    min_lead_days=CANCEL_MIN_LEAD_DAYS,
):
    """Whether ``user_id`` may cancel ``order`` right now.

    Only the order's buyer can cancel. A posted order can always be
    cancelled. Once a baker is assigned the buyer has ``window_hours`` after
    the assignment to undo it, and only while delivery is still more than
    ``min_lead_days`` away.
    """
    if user_type != "buyer" or order.buyer_id != user_id:
        return False

    if order.status == POSTED:
        return True

    if order.status == BAKER_ASSIGNED and order.assigned_at:
        now = now or utcnow()
        return (
            hours_since(order.assigned_at, now) <= window_hours
            and days_until(order.expected_delivery_date, now) > min_lead_days
        )

    return False


def can_decline_order(order, baker_id, now=None, window_hours=DECLINE_WINDOW_HOURS):
    """Whether the assigned baker may hand ``order`` back.

    Unlike buyer cancellation there is no delivery lead-time condition.
    """
    if (
        order.status == BAKER_ASSIGNED
        and order.baker_id == baker_id
        and order.assigned_at
    ):
        now = now or utcnow()
        return hours_since(order.assigned_at, now) <= window_hours
    return False


def get_baker_quote(order, baker_id):
    for quote in order.quotes:
        if quote.baker_id == baker_id and quote.is_active:
            return quote
    return None


def has_active_baker_quote(order, baker_id):
    return get_baker_quote(order, baker_id) is not None


def active_quote_count(order):
    return len(order.active_quotes())


def design_snapshot(cake_design):
    if hasattr(cake_design, "snapshot"):
        return cake_design.snapshot()
    return copy.deepcopy(dict(cake_design))


# ------------------------------------------------------------
# Lifecycle engine
# ------------------------------------------------------------
class OrderService:
    """Order lifecycle operations over one SQLAlchemy session.

    Each mutating call locks the order row, applies its change and commits
    once. Guarded operations (cancel, decline, confirm delivery) return
    ``False`` and change nothing when the rules say no.
    """

    def __init__(
        self,
        session,
        clock=utcnow,
        cancel_window_hours=CANCEL_WINDOW_HOURS,
        cancel_min_lead_days=CANCEL_MIN_LEAD_DAYS,
        decline_window_hours=DECLINE_WINDOW_HOURS,
    ):
        self.session = session
        self.clock = clock
        self.cancel_window_hours = cancel_window_hours
        self.cancel_min_lead_days = cancel_min_lead_days
        self.decline_window_hours = decline_window_hours

    @classmethod
    def from_config(cls, session, config, clock=utcnow):
        return cls(
            session,
            clock=clock,
            cancel_window_hours=config.get("CANCEL_WINDOW_HOURS", CANCEL_WINDOW_HOURS),
            cancel_min_lead_days=config.get("CANCEL_MIN_LEAD_DAYS", CANCEL_MIN_LEAD_DAYS),
            decline_window_hours=config.get("DECLINE_WINDOW_HOURS", DECLINE_WINDOW_HOURS),
        )

    # ---- internals ----

    def _lock(self, order_id):
        order = (
            self.session.query(Order)
            .filter_by(id=order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not order:
            raise OrderNotFound(order_id)
        return order

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Order transaction failed")
            raise

    def _release(self):
        # nothing changed; end the transaction so the row lock is dropped
        self.session.rollback()

    def _append_message(self, order, sender_id, sender_type, message, now,
                        image=None, price=None, is_quote=False):
        msg = ChatMessage(
            sender_id=sender_id,
            sender_type=sender_type,
            message=message,
            image=image,
            price=Decimal(str(price)) if price is not None else None,
            is_quote=is_quote,
            created_at=now,
        )
        order.messages.append(msg)
        return msg

    # ---- queries ----

    def get_order(self, order_id):
        order = self.session.get(Order, order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def get_buyer_orders(self, buyer_id):
        return (
            self.session.query(Order)
            .filter_by(buyer_id=buyer_id)
            .order_by(Order.created_at)
            .all()
        )

    def get_baker_orders(self, baker_id):
        return (
            self.session.query(Order)
            .filter_by(baker_id=baker_id)
            .order_by(Order.created_at)
            .all()
        )

    def get_quoted_orders(self, baker_id):
        return (
            self.session.query(Order)
            .join(Quote, Quote.order_id == Order.id)
            .filter(Quote.baker_id == baker_id, Quote.is_active.is_(True))
            .order_by(Order.created_at)
            .all()
        )

    def get_available_orders(self):
        return (
            self.session.query(Order)
            .filter_by(status=POSTED)
            .order_by(Order.created_at)
            .all()
        )

    def can_cancel(self, order, user_id, user_type):
        return can_cancel_order(
            order,
            user_id,
            user_type,
            now=self.clock(),
            window_hours=self.cancel_window_hours,
            min_lead_days=self.cancel_min_lead_days,
        )

    def can_decline(self, order, baker_id):
        return can_decline_order(
            order,
            baker_id,
            now=self.clock(),
            window_hours=self.decline_window_hours,
        )

    # ---- mutations ----

    def create_order(self, buyer_id, cake_design, delivery_zip_code,
                     expected_delivery_date, delivery_address=None):
        now = self.clock()
        order = Order(
            buyer_id=buyer_id,
            cake_design=design_snapshot(cake_design),
            delivery_zip_code=delivery_zip_code,
            delivery_address=delivery_address,
            expected_delivery_date=parse_datetime(expected_delivery_date),
            status=POSTED,
            created_at=now,
            updated_at=now,
        )
        self.session.add(order)
        self._commit()
        logger.info("Order %s posted by buyer %s", order.id, buyer_id)
        return order

    def update_order(self, order_id, **fields):
        unknown = [k for k in fields if k not in EDITABLE_FIELDS]
        if unknown:
            raise ServiceError(
                code="VALIDATION_ERROR",
                message="These fields cannot be updated",
                details={"fields": unknown},
            )

        order = self._lock(order_id)
        for key, value in fields.items():
            if key == "expected_delivery_date" and value is not None:
                value = parse_datetime(value)
            setattr(order, key, value)
        order.updated_at = self.clock()
        self._commit()
        return order

    def add_message(self, order_id, sender_id, sender_type, message,
                    image=None, price=None, is_quote=False):
        order = self._lock(order_id)
        now = self.clock()
        msg = self._append_message(
            order, sender_id, sender_type, message, now,
            image=image, price=price, is_quote=is_quote,
        )
        order.updated_at = now
        self._commit()
        return msg

    def send_quote(self, order_id, baker_id, price, modification_requests, message):
        """Submit or replace ``baker_id``'s quote; the latest submission wins."""
        order = self._lock(order_id)
        now = self.clock()
        price = Decimal(str(price))

        quote = next((q for q in order.quotes if q.baker_id == baker_id), None)
        if quote is None:
            quote = Quote(baker_id=baker_id)
            order.quotes.append(quote)

        quote.price = price
        quote.modification_requests = modification_requests or ""
        quote.message = message
        quote.is_active = True
        quote.submitted_at = now

        self._append_message(
            order, baker_id, "baker", message, now,
            price=price, is_quote=True,
        )
        order.updated_at = now
        self._commit()
        logger.info("Baker %s quoted %s on order %s", baker_id, price, order.id)
        return quote

    def revoke_quote(self, order_id, baker_id):
        order = self._lock(order_id)
        quote = get_baker_quote(order, baker_id)
        if quote is None:
            self._release()
            logger.info("Baker %s has no active quote on order %s", baker_id, order_id)
            return False

        now = self.clock()
        quote.is_active = False
        self._append_message(order, baker_id, "baker", WITHDRAWAL_MESSAGE, now)
        order.updated_at = now
        self._commit()
        logger.info("Baker %s withdrew quote on order %s", baker_id, order_id)
        return True

    def assign_baker(self, order_id, baker_id):
        """Assign ``baker_id`` whatever the current status is."""
        order = self._lock(order_id)
        now = self.clock()
        previous = order.status

        quote = get_baker_quote(order, baker_id)
        order.price = quote.price if quote is not None else None
        order.quoted_modifications = quote.modification_requests if quote is not None else None

        order.baker_id = baker_id
        order.status = BAKER_ASSIGNED
        order.assigned_at = now
        order.updated_at = now
        self._commit()
        logger.info(
            "Order %s: %s -> %s, baker %s assigned",
            order.id, previous, BAKER_ASSIGNED, baker_id,
        )
        return order

    def cancel_order(self, order_id, buyer_id):
        order = self._lock(order_id)
        if not self.can_cancel(order, buyer_id, "buyer"):
            logger.info(
                "Cancel denied for order %s (status %s, buyer %s)",
                order.id, order.status, buyer_id,
            )
            self._release()
            return False

        previous = order.status
        order.status = CANCELLED
        order.updated_at = self.clock()
        self._commit()
        logger.info("Order %s: %s -> %s by buyer %s", order.id, previous, CANCELLED, buyer_id)
        return True

    def decline_order(self, order_id, baker_id):
        order = self._lock(order_id)
        if not self.can_decline(order, baker_id):
            logger.info(
                "Decline denied for order %s (status %s, baker %s)",
                order.id, order.status, baker_id,
            )
            self._release()
            return False

        order.status = POSTED
        order.baker_id = None
        order.assigned_at = None
        order.price = None
        order.quoted_modifications = None
        order.updated_at = self.clock()
        self._commit()
        logger.info("Order %s: %s -> %s, baker %s declined", order.id, BAKER_ASSIGNED, POSTED, baker_id)
        return True

    def update_order_status(self, order_id, status, otp_code=None):
        """Write ``status`` with no transition check.

        Moving to out-for-delivery without a code generates one.
        """
        if status not in ORDER_STATUSES:
            raise InvalidStatus(status)

        order = self._lock(order_id)
        previous = order.status

        if status == OUT_FOR_DELIVERY and not otp_code:
            otp_code = generate_otp()

        order.status = status
        if otp_code:
            order.otp_code = otp_code
        order.updated_at = self.clock()
        self._commit()
        logger.info("Order %s: %s -> %s", order.id, previous, status)
        return order

    def confirm_delivery(self, order_id, baker_id, otp_code):
        order = self._lock(order_id)
        if (
            order.status != OUT_FOR_DELIVERY
            or order.baker_id != baker_id
            or not verify_otp(otp_code, order.otp_code)
        ):
            logger.info("Delivery confirmation rejected for order %s", order.id)
            self._release()
            return False

        order.status = DELIVERED
        order.updated_at = self.clock()
        self._commit()
        logger.info("Order %s: %s -> %s", order.id, OUT_FOR_DELIVERY, DELIVERED)
        return True


def get_order_service():
    """Engine bound to the current request's session."""
    if "order_service" not in g:
        g.order_service = OrderService.from_config(db.session, current_app.config)
    return g.order_service
