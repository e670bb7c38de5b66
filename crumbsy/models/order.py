from crumbsy.extensions import db
from crumbsy.utils.dates import isoformat
import uuid

def gen_order_id():
    return f"ORD-{str(uuid.uuid4())[:8]}"

POSTED = "posted"
BAKER_ASSIGNED = "baker-assigned"
IN_PROGRESS = "in-progress"
OUT_FOR_DELIVERY = "out-for-delivery"
DELIVERED = "delivered"
CANCELLED = "cancelled"

ORDER_STATUSES = (
    POSTED,
    BAKER_ASSIGNED,
    IN_PROGRESS,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
)
TERMINAL_STATUSES = (DELIVERED, CANCELLED)

class Order(db.Model):
    __tablename__ = "orders"

    __table_args__ = (
        db.Index("idx_orders_status", "status"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_order_id)

    buyer_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    baker_id = db.Column(
        db.String(50),
        db.ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    # Copied from the buyer's design when the order is posted
    cake_design = db.Column(db.JSON, nullable=False)

    delivery_zip_code = db.Column(db.String(10), nullable=False)
    delivery_address = db.Column(db.String(255))
    expected_delivery_date = db.Column(db.DateTime(timezone=True), nullable=False)

    status = db.Column(db.String(30), nullable=False, default=POSTED)

    price = db.Column(db.Numeric(10, 2), nullable=True)
    modification_requests = db.Column(db.Text)
    # Terms of the accepted quote; the buyer's own text stays above
    quoted_modifications = db.Column(db.Text)
    otp_code = db.Column(db.String(6))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Relationships
    buyer = db.relationship(
        "User",
        foreign_keys=[buyer_id],
        backref="buyer_orders",
        lazy=True
    )

    baker = db.relationship(
        "User",
        foreign_keys=[baker_id],
        backref="baker_orders",
        lazy=True
    )

    quotes = db.relationship(
        "Quote",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Quote.submitted_at",
    )

    messages = db.relationship(
        "ChatMessage",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def active_quotes(self):
        return [q for q in self.quotes if q.is_active]

    def serialize(self, viewer=None, include_messages=False):
        """Order as shown to ``viewer``.

        The delivery code is only shown to the buyer (who reads it out on
        delivery) and to admins.
        """
        data = {
            "id": self.id,
            "buyerId": self.buyer_id,
            "bakerId": self.baker_id,
            "cakeDesign": self.cake_design,
            "deliveryZipCode": self.delivery_zip_code,
            "deliveryAddress": self.delivery_address,
            "expectedDeliveryDate": isoformat(self.expected_delivery_date),
            "status": self.status,
            "price": float(self.price) if self.price is not None else None,
            "modificationRequests": self.modification_requests,
            "quotedModifications": self.quoted_modifications,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
            "assignedAt": isoformat(self.assigned_at),
            "quoteCount": len(self.active_quotes()),
        }

        if viewer is None or viewer.role == "admin" or viewer.id == self.buyer_id:
            data["otpCode"] = self.otp_code
            data["quotes"] = [q.serialize() for q in self.quotes]
        else:
            data["quotes"] = [q.serialize() for q in self.quotes if q.baker_id == viewer.id]

        if include_messages:
            data["messages"] = [m.serialize() for m in self.messages]

        return data
