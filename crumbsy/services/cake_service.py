from crumbsy.extensions import db
from crumbsy.models.cake_design import CakeDesign
from crumbsy.utils.exceptions import ServiceError

DESIGN_FIELDS = {
    "name": "name",
    "shape": "shape",
    "layers": "layers",
    "buttercream": "buttercream",
    "toppings": "toppings",
    "topText": "top_text",
    "preview": "preview",
}


def get_user_designs(user_id):
    return (
        CakeDesign.query
        .filter_by(user_id=user_id)
        .order_by(CakeDesign.updated_at.desc())
        .all()
    )


def get_user_design(design_id, user_id):
    design = CakeDesign.query.filter_by(id=design_id, user_id=user_id).first()
    if not design:
        raise ServiceError(code="NOT_FOUND", message="Design not found")
    return design


def save_design(user_id, data, design_id=None):
    """Create a design, or overwrite the user's existing one in place."""
    design = get_user_design(design_id, user_id) if design_id else CakeDesign(user_id=user_id)

    for key, attr in DESIGN_FIELDS.items():
        if key in data:
            setattr(design, attr, data[key])

    db.session.add(design)
    db.session.commit()
    return design


def delete_design(design_id, user_id):
    deleted = CakeDesign.query.filter_by(id=design_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0
