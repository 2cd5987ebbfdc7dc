from fastapi import APIRouter, Depends, Response

from interview_scheduler.api.v1.schemas import SlotCreateSchema, SlotListSchema, SlotSchema, SlotUpdateSchema
from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import Recurrence, SlotChanges, SlotSpec
from interview_scheduler.application.use_cases.slots import SlotManagementUseCase
from interview_scheduler.wiring.dependencies import get_caller, get_slot_use_case

router = APIRouter(prefix="/slots")


@router.post("", response_model=SlotListSchema, status_code=201)
def create_slot(
    req: SlotCreateSchema,
    caller: Caller = Depends(get_caller),
    uc: SlotManagementUseCase = Depends(get_slot_use_case),
):
    recurrence = None
    if req.recurrence is not None:
        recurrence = Recurrence(
            frequency=req.recurrence.frequency,
            until=req.recurrence.until,
            days_of_week=tuple(req.recurrence.days_of_week),
        )
    slots = uc.create_slot(
        caller,
        SlotSpec(
            date=req.date,
            start_time=req.start_time,
            end_time=req.end_time,
            title=req.title,
            duration_minutes=req.duration_minutes,
            timezone=req.timezone,
            max_bookings=req.max_bookings,
            meeting_type=req.meeting_type,
            meeting_details=req.meeting_details.to_domain(),
            buffer_before=req.buffer_before,
            buffer_after=req.buffer_after,
            recurrence=recurrence,
        ),
    )
    return SlotListSchema(slots=[SlotSchema.from_domain(s) for s in slots])


@router.patch("/{slot_id}", response_model=SlotSchema)
def update_slot(
    slot_id: str,
    req: SlotUpdateSchema,
    caller: Caller = Depends(get_caller),
    uc: SlotManagementUseCase = Depends(get_slot_use_case),
):
    changes = SlotChanges(
        date=req.date,
        start_time=req.start_time,
        end_time=req.end_time,
        title=req.title,
        timezone=req.timezone,
        max_bookings=req.max_bookings,
        is_available=req.is_available,
        meeting_type=req.meeting_type,
        meeting_details=req.meeting_details.to_domain() if req.meeting_details else None,
        buffer_before=req.buffer_before,
        buffer_after=req.buffer_after,
    )
    return SlotSchema.from_domain(uc.update_slot(caller, slot_id, changes))


@router.delete("/{slot_id}", status_code=204)
def delete_slot(
    slot_id: str,
    caller: Caller = Depends(get_caller),
    uc: SlotManagementUseCase = Depends(get_slot_use_case),
):
    uc.delete_slot(caller, slot_id)
    return Response(status_code=204)


@router.post("/{slot_id}/toggle", response_model=SlotSchema)
def toggle_slot(
    slot_id: str,
    caller: Caller = Depends(get_caller),
    uc: SlotManagementUseCase = Depends(get_slot_use_case),
):
    return SlotSchema.from_domain(uc.toggle_slot(caller, slot_id))
