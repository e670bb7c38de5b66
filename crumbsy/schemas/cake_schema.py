from marshmallow import fields, validate
from crumbsy.schemas.base_schema import BaseSchema
from crumbsy.models.cake_design import CAKE_SHAPES


class LayerSchema(BaseSchema):
    flavor = fields.String(required=True)
    color = fields.String(required=True)
    topDesign = fields.String()
    frosting = fields.String()
    frostingColor = fields.String()


class ButtercreamSchema(BaseSchema):
    flavor = fields.String(required=True)
    color = fields.String(required=True)


class CakeDesignSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    shape = fields.String(load_default="round", validate=validate.OneOf(CAKE_SHAPES))
    layers = fields.List(fields.Nested(LayerSchema), load_default=list)
    buttercream = fields.Nested(ButtercreamSchema, allow_none=True)
    toppings = fields.List(fields.String(), load_default=list)
    topText = fields.String(load_default="")
    preview = fields.String(allow_none=True)
