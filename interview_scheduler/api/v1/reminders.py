from fastapi import APIRouter, BackgroundTasks, Depends

from interview_scheduler.api.v1.schemas import ReminderRunSchema
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher, ReminderUseCase
from interview_scheduler.wiring.dependencies import get_dispatcher, get_reminder_use_case

router = APIRouter()


@router.post("/reminders/run", response_model=ReminderRunSchema)
def run_reminders(
    background_tasks: BackgroundTasks,
    uc: ReminderUseCase = Depends(get_reminder_use_case),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    events = uc.run()
    if events:
        background_tasks.add_task(dispatcher.dispatch, events)
    return ReminderRunSchema(reminders=len(events), booking_ids=[e.booking.id for e in events])
