from crumbsy.extensions import db
from crumbsy.utils.dates import utcnow, isoformat
import uuid

def gen_uuid(prefix=None):
    uid = str(uuid.uuid4())
    return f"{prefix}-{uid}" if prefix else uid

USER_ROLES = ("buyer", "baker", "admin")
DEFAULT_CANCELATION_DAYS = 3

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(50), primary_key=True, default=lambda: gen_uuid("usr"))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False)
    profile_picture = db.Column(db.String(1024), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    zip_code = db.Column(db.String(10), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    # Bakers only: notice they ask for on cancellations. Shown on the
    # profile; the order cancel window does not read it.
    cancelation_days = db.Column(db.Integer, nullable=True)
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        data = {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "name": self.name,
            "type": self.role,
            "profilePicture": self.profile_picture,
            "location": self.location,
            "zipCode": self.zip_code,
            "phone": self.phone,
            "address": self.address,
            "joinedAt": isoformat(self.joined_at),
        }
        if self.role == "baker":
            data["cancelationDays"] = self.cancelation_days
        return data

    def public_profile(self):
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "type": self.role,
            "profilePicture": self.profile_picture,
            "location": self.location,
        }
