# medsafe/api/routes_schedule.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from medsafe.api.deps import get_interaction_sources
from medsafe.schemas.models import (
    DailySchedule,
    ScheduleFromRecordsRequest,
    ScheduleRequest,
    ScheduleWithInteractionsResponse,
)
from medsafe.services.interaction_sources import InteractionSource, check_all
from medsafe.services.scheduling import (
    attach_interaction_warnings,
    convert_medications_to_timing,
    generate_optimal_schedule,
)

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.post("", response_model=DailySchedule)
def create_schedule(req: ScheduleRequest):
    return generate_optimal_schedule(req.medications, req.date)


@router.post("/from-records", response_model=DailySchedule)
def schedule_from_records(req: ScheduleFromRecordsRequest):
    try:
        meds = convert_medications_to_timing(req.records)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return generate_optimal_schedule(meds, req.date)


@router.post("/with-interactions", response_model=ScheduleWithInteractionsResponse)
async def schedule_with_interactions(
    req: ScheduleRequest,
    sources: List[InteractionSource] = Depends(get_interaction_sources),
):
    schedule = generate_optimal_schedule(req.medications, req.date)
    result = await check_all([m.name for m in req.medications], sources)
    return ScheduleWithInteractionsResponse(
        schedule=attach_interaction_warnings(schedule, result),
        interactions=result,
    )
