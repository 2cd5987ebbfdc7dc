from fastapi import APIRouter, BackgroundTasks, Depends, Query

from interview_scheduler.api.v1.schemas import (
    BookingCreateSchema,
    BookingListSchema,
    BookingSchema,
    BookingStatsSchema,
    CancelSchema,
    NotesSchema,
    RescheduleSchema,
    StatusChangeSchema,
)
from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import BookingRequest, FeedbackInput
from interview_scheduler.application.use_cases.bookings import BookingResult, BookingUseCase
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher
from interview_scheduler.wiring.dependencies import get_booking_use_case, get_caller, get_dispatcher

router = APIRouter(prefix="/bookings")


def _respond(result: BookingResult, background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher):
    if result.events:
        background_tasks.add_task(dispatcher.dispatch, result.events)
    return BookingSchema.from_domain(result.booking)


@router.post("", response_model=BookingSchema, status_code=201)
def create_booking(
    req: BookingCreateSchema,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = uc.create_booking(
        caller,
        BookingRequest(
            slot_id=req.slot_id,
            job_id=req.job_id,
            candidate_id=req.candidate_id,
            interview_type=req.interview_type,
            candidate_notes=req.candidate_notes,
            recruitment_partner_id=req.recruitment_partner_id,
            application_id=req.application_id,
        ),
    )
    return _respond(result, background_tasks, dispatcher)


@router.get("", response_model=BookingListSchema)
def list_bookings(
    status: str | None = Query(None),
    upcoming: bool = Query(False),
    past: bool = Query(False),
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    bookings = uc.list_bookings(caller, status=status, upcoming=upcoming, past=past)
    return BookingListSchema(bookings=[BookingSchema.from_domain(b) for b in bookings], count=len(bookings))


@router.get("/stats", response_model=BookingStatsSchema)
def booking_stats(
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    return BookingStatsSchema.from_domain(uc.stats(caller))


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: str,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    return BookingSchema.from_domain(uc.get_booking(caller, booking_id))


@router.post("/{booking_id}/status", response_model=BookingSchema)
def change_status(
    booking_id: str,
    req: StatusChangeSchema,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    feedback = None
    if req.feedback is not None:
        feedback = FeedbackInput(
            rating=req.feedback.rating,
            comments=req.feedback.comments,
            recommendation=req.feedback.recommendation,
            strengths=tuple(req.feedback.strengths),
            improvements=tuple(req.feedback.improvements),
            next_steps=req.feedback.next_steps,
        )
    result = uc.transition(caller, booking_id, req.status, reason=req.reason, feedback=feedback)
    return _respond(result, background_tasks, dispatcher)


@router.post("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: str,
    req: CancelSchema,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = uc.cancel(caller, booking_id, reason=req.reason)
    return _respond(result, background_tasks, dispatcher)


@router.post("/{booking_id}/reschedule", response_model=BookingSchema)
def reschedule_booking(
    booking_id: str,
    req: RescheduleSchema,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = uc.reschedule(caller, booking_id, req.new_slot_id, reason=req.reason)
    return _respond(result, background_tasks, dispatcher)


@router.patch("/{booking_id}/notes", response_model=BookingSchema)
def update_notes(
    booking_id: str,
    req: NotesSchema,
    caller: Caller = Depends(get_caller),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    return BookingSchema.from_domain(uc.update_notes(caller, booking_id, req.notes, audience=req.audience))
