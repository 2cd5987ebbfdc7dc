from fastapi import APIRouter, BackgroundTasks, Depends

from interview_scheduler.api.v1.schemas import (
    ApplicationStatusSchema,
    BookingSchema,
    InvitationContextSchema,
    InvitationSchema,
    ScheduleSchema,
)
from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import ApplicationStatusChange
from interview_scheduler.application.use_cases.invitations import InvitationUseCase
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher
from interview_scheduler.wiring.dependencies import get_caller, get_dispatcher, get_invitation_use_case

router = APIRouter(prefix="/invitations")


@router.post("", response_model=InvitationSchema)
def application_status_changed(
    req: ApplicationStatusSchema,
    background_tasks: BackgroundTasks,
    caller: Caller = Depends(get_caller),
    uc: InvitationUseCase = Depends(get_invitation_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = uc.handle_application_status(
        caller,
        ApplicationStatusChange(
            application_id=req.application_id,
            candidate_id=req.candidate_id,
            job_id=req.job_id,
            new_status=req.new_status,
            recruitment_partner_id=req.recruitment_partner_id,
        ),
    )
    if result is None:
        return InvitationSchema.from_result(None)
    background_tasks.add_task(dispatcher.dispatch, result.events)
    return InvitationSchema.from_result(result, link=dispatcher.scheduling_link(result.invitation.token))


# token routes are public: the token itself is the credential
@router.get("/{token}", response_model=InvitationContextSchema)
def resolve_invitation(
    token: str,
    uc: InvitationUseCase = Depends(get_invitation_use_case),
):
    return InvitationContextSchema.from_context(uc.resolve(token))


@router.post("/{token}/schedule", response_model=BookingSchema)
def schedule_from_invitation(
    token: str,
    req: ScheduleSchema,
    background_tasks: BackgroundTasks,
    uc: InvitationUseCase = Depends(get_invitation_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = uc.schedule(token, req.slot_id, candidate_notes=req.candidate_notes)
    background_tasks.add_task(dispatcher.dispatch, result.events)
    return BookingSchema.from_domain(result.booking)
