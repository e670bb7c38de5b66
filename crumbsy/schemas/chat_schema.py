from marshmallow import fields, validate
from crumbsy.schemas.base_schema import BaseSchema


class MessageSchema(BaseSchema):
    message = fields.String(required=True, validate=validate.Regexp(r"[\s\S]*\S", error="Message cannot be empty"))
    image = fields.String(allow_none=True)
