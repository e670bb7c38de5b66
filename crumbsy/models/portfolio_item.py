from crumbsy.extensions import db
from crumbsy.utils.dates import utcnow, isoformat
import uuid

def gen_portfolio_id():
    return f"PF-{str(uuid.uuid4())[:8]}"

class PortfolioItem(db.Model):
    __tablename__ = "portfolio_items"

    id = db.Column(db.String(50), primary_key=True, default=gen_portfolio_id)
    baker_id = db.Column(db.String(50), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    image = db.Column(db.String(1024), nullable=False)
    caption = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    baker = db.relationship(
        "User",
        backref=db.backref("portfolio_items", lazy=True, cascade="all, delete-orphan"),
    )

    def serialize(self):
        return {
            "id": self.id,
            "bakerId": self.baker_id,
            "image": self.image,
            "caption": self.caption,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
