from datetime import timezone
from marshmallow import fields, validate, validates_schema, ValidationError
from crumbsy.schemas.base_schema import BaseSchema
from crumbsy.models.order import ORDER_STATUSES
from crumbsy.schemas.cake_schema import CakeDesignSchema


class OrderCreateSchema(BaseSchema):
    design_id = fields.String(data_key="designId")
    cake_design = fields.Nested(CakeDesignSchema, data_key="cakeDesign")
    delivery_zip_code = fields.String(data_key="deliveryZipCode", required=True, validate=validate.Length(min=3, max=10))
    delivery_address = fields.String(data_key="deliveryAddress", allow_none=True)
    expected_delivery_date = fields.AwareDateTime(data_key="expectedDeliveryDate", required=True, default_timezone=timezone.utc)

    @validates_schema
    def validate_design(self, data, **kwargs):
        if not data.get("design_id") and not data.get("cake_design"):
            raise ValidationError("Provide designId or cakeDesign", "designId")


class OrderUpdateSchema(BaseSchema):
    delivery_zip_code = fields.String(data_key="deliveryZipCode", validate=validate.Length(min=3, max=10))
    delivery_address = fields.String(data_key="deliveryAddress", allow_none=True)
    expected_delivery_date = fields.AwareDateTime(data_key="expectedDeliveryDate", default_timezone=timezone.utc)
    modification_requests = fields.String(data_key="modificationRequests", allow_none=True)


class AssignBakerSchema(BaseSchema):
    baker_id = fields.String(data_key="bakerId", required=True)


class OrderStatusSchema(BaseSchema):
    status = fields.String(required=True, validate=validate.OneOf(ORDER_STATUSES))
    otp_code = fields.String(data_key="otpCode", validate=validate.Regexp(r"^\d{6}$"))


class ConfirmDeliverySchema(BaseSchema):
    otp_code = fields.String(data_key="otpCode", required=True)
