"""Schema for the Block model."""

from marshmallow import Schema, fields

from .tag import TagSchema


# pylint: disable=missing-docstring

class BlockSchema(Schema):
    id = fields.Int(dump_only=True)
    start = fields.DateTime()
    end = fields.DateTime()
    running = fields.Bool()
    tag = fields.Nested(TagSchema, allow_none=True)
    duration = fields.Method('get_duration', dump_only=True)

    def get_duration(self, block):
        """The duration in whole seconds, never negative."""
        return max(int(block.duration.total_seconds()), 0)


class DayBlockSchema(Schema):
    day = fields.Date()
    total = fields.Method('get_total', dump_only=True)
    blocks = fields.Nested(BlockSchema, many=True)

    def get_total(self, day_block):
        return max(int(day_block.total.total_seconds()), 0)
