from crumbsy.extensions import db
from crumbsy.utils.dates import utcnow, isoformat
import copy
import uuid

def gen_design_id():
    return f"CAKE-{str(uuid.uuid4())[:8]}"

CAKE_SHAPES = ("round", "square")

class CakeDesign(db.Model):
    __tablename__ = "cake_designs"

    id = db.Column(db.String(50), primary_key=True, default=gen_design_id)
    user_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    shape = db.Column(db.String(20), nullable=False, default="round")
    # [{flavor, color, topDesign?, frosting?, frostingColor?}, ...]
    layers = db.Column(db.JSON, nullable=False, default=list)
    # {flavor, color}
    buttercream = db.Column(db.JSON, nullable=True)
    toppings = db.Column(db.JSON, nullable=False, default=list)
    top_text = db.Column(db.String(255), default="")
    preview = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = db.relationship(
        "User",
        backref=db.backref("cake_designs", lazy=True, cascade="all, delete-orphan"),
    )

    def snapshot(self):
        """Value copy stored on an order; detached from this row."""
        return copy.deepcopy({
            "id": self.id,
            "name": self.name,
            "shape": self.shape,
            "layers": self.layers or [],
            "buttercream": self.buttercream,
            "toppings": self.toppings or [],
            "topText": self.top_text or "",
        })

    def serialize(self):
        data = self.snapshot()
        data.update({
            "userId": self.user_id,
            "preview": self.preview,
            "updatedAt": isoformat(self.updated_at),
        })
        return data
