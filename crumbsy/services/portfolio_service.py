from crumbsy.extensions import db
from crumbsy.models.portfolio_item import PortfolioItem
from crumbsy.utils.exceptions import ServiceError


def get_baker_portfolio(baker_id):
    return (
        PortfolioItem.query
        .filter_by(baker_id=baker_id)
        .order_by(PortfolioItem.created_at.desc())
        .all()
    )


def add_portfolio_item(baker_id, image, caption=""):
    item = PortfolioItem(baker_id=baker_id, image=image, caption=caption or "")
    db.session.add(item)
    db.session.commit()
    return item


def update_portfolio_item(item_id, baker_id, **updates):
    item = PortfolioItem.query.filter_by(id=item_id, baker_id=baker_id).first()
    if not item:
        raise ServiceError(code="NOT_FOUND", message="Portfolio item not found")

    for k in ("image", "caption"):
        if k in updates and updates[k] is not None:
            setattr(item, k, updates[k])
    db.session.commit()
    return item


def delete_portfolio_item(item_id, baker_id):
    deleted = PortfolioItem.query.filter_by(id=item_id, baker_id=baker_id).delete()
    db.session.commit()
    return deleted > 0
