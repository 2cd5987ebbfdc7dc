from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from interview_scheduler.api.v1.schemas import AvailabilitySchema
from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.use_cases.availability import AvailabilityQueryUseCase
from interview_scheduler.wiring.dependencies import get_availability_use_case, get_optional_caller

router = APIRouter()


@router.get("/availability", response_model=AvailabilitySchema)
def get_availability(
    employer_id: str = Query(...),
    month: str | None = Query(None, description="YYYY-MM, defaults to the current month"),
    start: date | None = Query(None),
    end: date | None = Query(None),
    view: str = Query("candidate"),
    caller: Caller | None = Depends(get_optional_caller),
    uc: AvailabilityQueryUseCase = Depends(get_availability_use_case),
):
    if view == "employer" and caller is None:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    result = uc.execute(employer_id=employer_id, month=month, start=start, end=end, view=view, caller=caller)
    return AvailabilitySchema.from_result(result)
