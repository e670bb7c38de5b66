from marshmallow import fields, validate
from crumbsy.schemas.base_schema import BaseSchema


class RegisterSchema(BaseSchema):
    email = fields.Email(required=True)
    username = fields.String(required=True, validate=validate.Length(min=3, max=100))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=6))
    name = fields.String(required=True, validate=validate.Length(min=1))
    role = fields.String(data_key="type", load_default="buyer", validate=validate.OneOf(["buyer", "baker"]))
    location = fields.String()
    zip_code = fields.String(data_key="zipCode")
    phone = fields.String()
    address = fields.String()
    profile_picture = fields.String(data_key="profilePicture")
    cancelation_days = fields.Integer(data_key="cancelationDays", validate=validate.Range(min=0))


class LoginSchema(BaseSchema):
    identifier = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class ProfileUpdateSchema(BaseSchema):
    name = fields.String(validate=validate.Length(min=1))
    location = fields.String(allow_none=True)
    zip_code = fields.String(data_key="zipCode", allow_none=True)
    phone = fields.String(allow_none=True)
    address = fields.String(allow_none=True)
    profile_picture = fields.String(data_key="profilePicture", allow_none=True)
    cancelation_days = fields.Integer(data_key="cancelationDays", allow_none=True, validate=validate.Range(min=0))


class AdminUserUpdateSchema(BaseSchema):
    name = fields.String(validate=validate.Length(min=1))
    email = fields.Email()
    username = fields.String(validate=validate.Length(min=3, max=100))
    role = fields.String(data_key="type", validate=validate.OneOf(["buyer", "baker", "admin"]))
    location = fields.String(allow_none=True)
    zip_code = fields.String(data_key="zipCode", allow_none=True)
