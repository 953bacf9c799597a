"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    kind = "app_error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    kind = "validation_error"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class WrongTeamSizeError(ValidationError):
    """Raised when a team does not have exactly teamSize slots."""

    kind = "wrong_team_size"

    def __init__(self, team_size):
        """Initialize the error."""
        noun = "member" if team_size == 1 else "members"
        super().__init__(f"Team must have exactly {team_size} {noun}.")
        self.team_size = team_size


class InvalidSlotError(ValidationError):
    """Raised when a slot index is out of range or not editable."""

    kind = "invalid_slot"

    def __init__(self, message="Invalid slot position."):
        """Initialize the error."""
        super().__init__(message)


class InvalidMemberError(ValidationError):
    """Raised when a supplied team slot is malformed."""

    kind = "invalid_member"


class ConflictError(AppError):
    """Raised when a request conflicts with the current state of a resource."""

    kind = "conflict"

    def __init__(self, message="Request conflicts with the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class AlreadyRegisteredError(ConflictError):
    """Raised when a user already holds a slot in the event."""

    kind = "already_registered"

    def __init__(self, message="You are already registered for this event."):
        """Initialize the error."""
        super().__init__(message)


class SlotNotClaimableError(ConflictError):
    """Raised when claiming a slot that is not open or guest."""

    kind = "slot_not_claimable"

    def __init__(self, message="This slot cannot be claimed."):
        """Initialize the error."""
        super().__init__(message)


class NotCaptainError(ConflictError):
    """Raised when someone other than the captain edits a team."""

    kind = "not_captain"

    def __init__(self, message="Only the team captain can edit team members."):
        """Initialize the error."""
        super().__init__(message)


class EventNotActiveError(ConflictError):
    """Raised when joining an event that has been canceled."""

    kind = "event_not_active"

    def __init__(self, message="This event has been canceled."):
        """Initialize the error."""
        super().__init__(message)


class InviteRequiredError(ConflictError):
    """Raised when joining an invite-only event without an invitation."""

    kind = "invite_required"

    def __init__(self, message="This event is invite only."):
        """Initialize the error."""
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    kind = "not_found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class EventNotFoundError(NotFoundError):
    """Raised when an event does not exist."""

    kind = "event_not_found"

    def __init__(self, message="Event not found. It may have been deleted."):
        """Initialize the error."""
        super().__init__(message)


class TeamNotFoundError(NotFoundError):
    """Raised when a team registration does not exist."""

    kind = "team_not_found"

    def __init__(self, message="Team not found. It may have been removed."):
        """Initialize the error."""
        super().__init__(message)


class NotRegisteredError(NotFoundError):
    """Raised when a user holds no slot in the event."""

    kind = "not_registered"

    def __init__(self, message="You are not registered for this event."):
        """Initialize the error."""
        super().__init__(message)


class ListNotFoundError(NotFoundError):
    """Raised when a saved list does not exist."""

    kind = "list_not_found"

    def __init__(self, message="List not found."):
        """Initialize the error."""
        super().__init__(message)


class PermissionDeniedError(AppError):
    """Raised when the acting user may not perform an action."""

    kind = "permission_denied"

    def __init__(self, message="You do not have permission to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class ConcurrencyError(AppError):
    """Raised when a transaction keeps losing to concurrent writers."""

    kind = "concurrent_modification"

    def __init__(self, message="The event was changed by someone else. Try again."):
        """Initialize the error."""
        super().__init__(message, 409)


class ExhaustionError(AppError):
    """Raised when a bounded retry loop runs out of attempts."""

    kind = "exhausted"

    def __init__(self, message="Failed to generate unique event code."):
        """Initialize the error."""
        super().__init__(message, 503)


class StoreUnavailableError(AppError):
    """Raised when the backing store cannot be reached."""

    kind = "store_unavailable"

    def __init__(self, message="The database is unavailable. Try again later."):
        """Initialize the error."""
        super().__init__(message, 503)
