"""Forms for the user blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import StringField
from wtforms.validators import URL, Length, Optional


class UpdateProfileForm(FlaskForm):
    """Form for updating a user's display name and photo."""

    displayName = StringField("Display Name", validators=[Optional(), Length(max=50)])
    photoUrl = StringField("Photo URL", validators=[Optional(), URL()])
