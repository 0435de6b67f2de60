"""Schema for the Tag model."""

from marshmallow import Schema, fields


# pylint: disable=missing-docstring

class TagSchema(Schema):
    id = fields.Int(dump_only=True)
    name = fields.Str()
