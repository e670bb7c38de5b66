from marshmallow import EXCLUDE
from crumbsy.extensions import ma


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE
