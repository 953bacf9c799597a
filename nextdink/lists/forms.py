"""Forms for the lists blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import StringField
from wtforms.validators import DataRequired, Length

from nextdink.core.constants import MAX_LIST_NAME_LENGTH


class ListForm(FlaskForm):
    """Form for creating or renaming a list."""

    name = StringField(
        "List Name",
        validators=[DataRequired(), Length(min=1, max=MAX_LIST_NAME_LENGTH)],
    )
