from marshmallow import fields, validate
from crumbsy.schemas.base_schema import BaseSchema


class QuoteSchema(BaseSchema):
    price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0, min_inclusive=False))
    modification_requests = fields.String(data_key="modificationRequests", load_default="")
    message = fields.String(required=True, validate=validate.Regexp(r"[\s\S]*\S", error="Message cannot be empty"))
