"""Forms for the event blueprint."""

import datetime

from flask_wtf import FlaskForm  # type: ignore
from wtforms import DateTimeField, FloatField, IntegerField, SelectField, StringField
from wtforms.validators import (
    InputRequired,
    Length,
    NumberRange,
    Optional,
    ValidationError,
)

from nextdink.core.constants import (
    JOIN_TYPE_INVITE_ONLY,
    JOIN_TYPE_OPEN,
    MAX_EVENT_NAME_LENGTH,
    MAX_TEAM_SIZE,
    VISIBILITY_CODE,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)

ISO_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
]


def as_utc(value):
    """Treat naive datetimes from the client as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=datetime.timezone.utc)


class EventForm(FlaskForm):
    """Form for editing an event. Every field is optional."""

    name = StringField(
        "Event Name", validators=[Optional(), Length(max=MAX_EVENT_NAME_LENGTH)]
    )
    description = StringField("Description", validators=[Optional()])
    date = DateTimeField("Start", format=ISO_FORMATS, validators=[Optional()])
    endTime = DateTimeField("End", format=ISO_FORMATS, validators=[Optional()])
    teamSize = IntegerField(
        "Team Size", validators=[Optional(), NumberRange(min=1, max=MAX_TEAM_SIZE)]
    )
    maxTeams = IntegerField("Capacity", validators=[Optional(), NumberRange(min=1)])
    visibility = SelectField(
        "Visibility",
        choices=[
            (VISIBILITY_PUBLIC, "Public"),
            (VISIBILITY_CODE, "Anyone with the code"),
            (VISIBILITY_PRIVATE, "Private - Invite only"),
        ],
        validators=[Optional()],
    )
    joinType = SelectField(
        "Who can join",
        choices=[(JOIN_TYPE_OPEN, "Anyone"), (JOIN_TYPE_INVITE_ONLY, "Invite only")],
        validators=[Optional()],
    )
    venueName = StringField("Venue", validators=[Optional(), Length(max=200)])
    formattedAddress = StringField("Address", validators=[Optional(), Length(max=300)])
    latitude = FloatField(
        "Latitude", validators=[Optional(), NumberRange(min=-90, max=90)]
    )
    longitude = FloatField(
        "Longitude", validators=[Optional(), NumberRange(min=-180, max=180)]
    )
    placeId = StringField("Place ID", validators=[Optional()])

    def validate_endTime(self, field):
        """Ensure the event ends after it starts."""
        start, end = as_utc(self.date.data), as_utc(field.data)
        if start and end and end <= start:
            raise ValidationError("The event must end after it starts.")

    def submitted_data(self, keys):
        """Return the cleaned values of the fields named in ``keys``."""
        data = {}
        for field in self:
            if field.name not in keys:
                continue
            value = field.data
            if isinstance(value, datetime.datetime):
                value = as_utc(value)
            data[field.name] = value
        return data


class CreateEventForm(EventForm):
    """Form for creating an event."""

    name = StringField(
        "Event Name",
        validators=[InputRequired(), Length(min=1, max=MAX_EVENT_NAME_LENGTH)],
    )
    date = DateTimeField("Start", format=ISO_FORMATS, validators=[InputRequired()])
    endTime = DateTimeField("End", format=ISO_FORMATS, validators=[InputRequired()])
