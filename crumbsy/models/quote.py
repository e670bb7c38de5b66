from crumbsy.extensions import db
from crumbsy.utils.dates import isoformat
import uuid

def gen_quote_id():
    return f"QTE-{str(uuid.uuid4())[:8]}"

class Quote(db.Model):
    __tablename__ = "quotes"

    __table_args__ = (
        db.UniqueConstraint("order_id", "baker_id", name="uq_quote_order_baker"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_quote_id)
    order_id = db.Column(db.String(50), db.ForeignKey("orders.id"), nullable=False, index=True)
    baker_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False, index=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    modification_requests = db.Column(db.Text, default="")
    message = db.Column(db.Text, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False)

    baker = db.relationship("User", lazy=True)

    def serialize(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "bakerId": self.baker_id,
            "price": float(self.price),
            "modificationRequests": self.modification_requests,
            "message": self.message,
            "isActive": self.is_active,
            "timestamp": isoformat(self.submitted_at),
        }
