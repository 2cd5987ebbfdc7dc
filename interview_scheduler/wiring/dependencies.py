from fastapi import Header, HTTPException, Request

from interview_scheduler.application.dto.caller import ROLES, Caller
from interview_scheduler.application.use_cases.availability import AvailabilityQueryUseCase
from interview_scheduler.application.use_cases.bookings import BookingUseCase
from interview_scheduler.application.use_cases.invitations import InvitationUseCase
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher, ReminderUseCase
from interview_scheduler.application.use_cases.slots import SlotManagementUseCase
from interview_scheduler.wiring.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_caller(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Caller:
    # identity is established upstream; these headers are trusted
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    role = x_user_role.strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=403, detail=f"Unknown role: {x_user_role}")
    return Caller(user_id=x_user_id.strip(), role=role)


def get_optional_caller(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Caller | None:
    if not x_user_id and not x_user_role:
        return None
    return get_caller(x_user_id, x_user_role)


def get_slot_use_case(request: Request) -> SlotManagementUseCase:
    return get_container(request).slots


def get_availability_use_case(request: Request) -> AvailabilityQueryUseCase:
    return get_container(request).availability


def get_booking_use_case(request: Request) -> BookingUseCase:
    return get_container(request).bookings


def get_invitation_use_case(request: Request) -> InvitationUseCase:
    return get_container(request).invitations


def get_reminder_use_case(request: Request) -> ReminderUseCase:
    return get_container(request).reminders


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return get_container(request).dispatcher
