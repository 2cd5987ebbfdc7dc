class SchedulingError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "scheduling_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    code = "not_found"


class ValidationError(SchedulingError):
    """Raised when a request is malformed. Nothing has been mutated."""

    code = "validation_error"


class AuthorizationError(SchedulingError):
    """Raised when the caller does not own the referenced slot or booking."""

    code = "forbidden"


class ConflictError(SchedulingError):
    """Raised when a well-formed request is forbidden by the current state."""

    code = "conflict"


class EmployerNotFoundError(NotFoundError):
    code = "employer_not_found"


class SlotNotFoundError(NotFoundError):
    code = "slot_not_found"


class BookingNotFoundError(NotFoundError):
    code = "booking_not_found"


class InvitationNotFoundError(NotFoundError):
    code = "invalid_invitation"


class JobNotFoundError(NotFoundError):
    code = "job_not_found"


class CandidateNotFoundError(NotFoundError):
    code = "candidate_not_found"


class InvalidStatusError(ValidationError):
    code = "invalid_status"


class UnauthorizedTransitionError(AuthorizationError):
    code = "unauthorized_transition"


class SlotNotOpenError(ConflictError):
    code = "slot_not_open"

    def __init__(self, message: str = "This time is no longer available, please choose another.") -> None:
        super().__init__(message)


class TransitionNotAllowedError(ConflictError):
    code = "transition_not_allowed"


class NoticeWindowError(ConflictError):
    code = "notice_window"


class InvitationExpiredError(ConflictError):
    code = "invitation_expired"


class InvitationConsumedError(ConflictError):
    code = "invitation_consumed"


class SlotConflictError(ConflictError):
    code = "slot_conflict"


class SlotInUseError(ConflictError):
    code = "slot_in_use"


class DuplicateBookingError(ConflictError):
    code = "duplicate_booking"
