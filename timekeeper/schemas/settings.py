"""Schema for the user settings."""

from datetime import timedelta

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from timekeeper.settings import Settings, Weekday


# pylint: disable=missing-docstring

class Seconds(fields.Field):
    """A timedelta stored as a whole number of seconds."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return int(value.total_seconds())

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return timedelta(seconds=int(value))
        except (TypeError, ValueError) as err:
            raise ValidationError('Expected a whole number of seconds.') from err


class SettingsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    date_format = fields.Str(validate=validate.Length(min=1))
    time_format = fields.Str(validate=validate.Length(min=1))
    start_of_week = fields.Enum(Weekday)
    daily_goal = Seconds()
    weekly_goal = Seconds()

    @post_load
    def make_settings(self, data, **kwargs):
        return Settings(**data)
