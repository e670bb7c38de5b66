from marshmallow import fields, validate
from crumbsy.schemas.base_schema import BaseSchema


class PortfolioItemSchema(BaseSchema):
    image = fields.String(required=True, validate=validate.Length(min=1))
    caption = fields.String(load_default="")


class PortfolioItemUpdateSchema(BaseSchema):
    image = fields.String(validate=validate.Length(min=1))
    caption = fields.String()
