from crumbsy.extensions import db
from crumbsy.utils.dates import isoformat

SENDER_TYPES = ("buyer", "baker")

class ChatMessage(db.Model):
    __tablename__ = "order_messages"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(50), db.ForeignKey("orders.id"), nullable=False, index=True)
    sender_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)
    sender_type = db.Column(db.String(10), nullable=False)
    message = db.Column(db.Text, nullable=False)
    image = db.Column(db.String(1024))
    price = db.Column(db.Numeric(10, 2))
    # Marks the chat entry that carries a formal quote
    is_quote = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    sender = db.relationship("User", lazy=True)

    def serialize(self):
        data = {
            "id": self.id,
            "senderId": self.sender_id,
            "senderType": self.sender_type,
            "message": self.message,
            "timestamp": isoformat(self.created_at),
        }
        if self.image:
            data["image"] = self.image
        if self.price is not None:
            data["price"] = float(self.price)
        if self.is_quote:
            data["isQuote"] = True
        return data
