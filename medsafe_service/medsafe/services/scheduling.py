"""
Daily schedule generation.

Medications are enriched from the timing knowledge base, sorted into timing
buckets, and each bucket is pinned to fixed anchor times around a
07:30 / 12:30 / 18:30 meal day.
"""
import logging
from datetime import date as Date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from medsafe.schemas.models import (
    DailySchedule,
    InteractionCheckResult,
    MealPlan,
    MedicationTiming,
    ScheduledMedication,
    ScheduleSlot,
)
from medsafe.services import timing_kb
from medsafe.utils.time_conflict import hhmm_to_minutes, merge_coinciding_slots, minutes_to_hhmm

logger = logging.getLogger(__name__)

GENERAL_INSTRUCTIONS = [
    "Take medications at the same time each day for best results",
    "Keep a medication diary to track effectiveness and side effects",
    "Never stop medications abruptly without consulting your doctor",
]

INTERACTION_DATA_UNAVAILABLE = (
    "Drug interaction data is currently unavailable. This schedule has not been "
    "checked for drug-drug interactions; ask your pharmacist before combining these medications."
)

THYROID_NAMES = ("levothyroxine", "synthroid")

# Priority order: a medication lands in the first bucket whose rule matches
BUCKETS = [
    "morning_empty",
    "morning_with_food",
    "afternoon",
    "evening",
    "bedtime",
    "with_meals",
    "between_meals",
]

MEAL_ANCHORS = {
    "breakfast": "07:45",
    "lunch": "12:45",
    "dinner": "18:45",
}

MedicationInput = Union[MedicationTiming, Mapping[str, Any]]


def _as_timing(med: MedicationInput) -> MedicationTiming:
    if isinstance(med, MedicationTiming):
        return med
    return MedicationTiming.model_validate(dict(med))


def enrich_medication(med: MedicationTiming) -> MedicationTiming:
    """
    Layer knowledge-base defaults under the caller's record.
    Fields the caller set explicitly are never overwritten.
    """
    known = timing_kb.lookup(med.name)
    if not known:
        return med
    supplied = med.model_dump(include=set(med.model_fields_set))
    return MedicationTiming(**{**known, **supplied})


def _is_thyroid(med: MedicationTiming) -> bool:
    name = med.name.lower()
    return any(k in name for k in THYROID_NAMES)


def _bucket_for(med: MedicationTiming) -> str:
    if med.time_of_day == "morning" and med.with_food is False:
        return "morning_empty"
    if med.time_of_day == "morning" and med.with_food is True:
        return "morning_with_food"
    if med.time_of_day == "afternoon":
        return "afternoon"
    if med.time_of_day == "evening":
        return "evening"
    if med.time_of_day == "bedtime":
        return "bedtime"
    # with_food decides over a conflicting after-meal offset
    if med.with_food is True or (med.with_food is not False and med.after_meal_minutes):
        return "with_meals"
    return "between_meals"


def group_medications_by_timing(medications: Iterable[MedicationTiming]) -> Dict[str, List[MedicationTiming]]:
    groups: Dict[str, List[MedicationTiming]] = {b: [] for b in BUCKETS}
    for med in medications:
        groups[_bucket_for(med)].append(med)
    return groups


def get_frequency_count(frequency: str) -> int:
    freq = (frequency or "").lower()
    if "three" in freq or "tid" in freq:
        return 3
    if "twice" in freq or "bid" in freq:
        return 2
    if "four" in freq or "qid" in freq:
        return 4
    return 1


def _draft(time: str, meds: List[MedicationTiming], meal_timing: Optional[str], instructions: List[str]) -> Dict[str, Any]:
    return {"time": time, "meds": meds, "meal_timing": meal_timing, "instructions": instructions}


def _schedule_group(bucket: str, meds: List[MedicationTiming]) -> List[Dict[str, Any]]:
    if bucket == "morning_empty":
        return [_draft("06:30", meds, "before", ["Take on empty stomach", "Wait 1 hour before eating"])]

    if bucket == "morning_with_food":
        return [_draft("07:45", meds, "with", ["Take with breakfast", "Ensure adequate food intake"])]

    if bucket == "afternoon":
        return [_draft("14:00", meds, "between", [])]

    if bucket == "evening":
        return [_draft("19:00", meds, "after", ["Take after dinner", "Allow 2 hours before bedtime"])]

    if bucket == "bedtime":
        return [_draft("21:30", meds, "between", ["Take before bed", "Ensure you can sleep for 7-8 hours"])]

    if bucket == "with_meals":
        # Dose count comes from the first medication only, and only that one
        # is repeated at lunch/dinner. The rest get the breakfast dose alone.
        doses = get_frequency_count(meds[0].frequency)
        first = [meds[0]]
        drafts = [_draft(MEAL_ANCHORS["breakfast"], meds, "with", ["Take with breakfast"])]
        if doses >= 3:
            drafts.append(_draft(MEAL_ANCHORS["lunch"], first, "with", ["Take with lunch"]))
        if doses >= 2:
            drafts.append(_draft(MEAL_ANCHORS["dinner"], first, "with", ["Take with dinner"]))
        return drafts

    return [_draft("10:00", meds, "between", ["Take between meals", "Maintain consistent timing"])]


def _slot_separation_warning(meds: List[MedicationTiming]) -> Optional[str]:
    for i in range(len(meds)):
        for j in range(i + 1, len(meds)):
            a, b = meds[i], meds[j]
            for m in (a, b):
                if m.separation_required_minutes and m.separation_required_minutes > 30:
                    return f"Separate {a.name} and {b.name} by {m.separation_required_minutes} minutes"
    return None


def medication_warnings(med: MedicationTiming) -> List[str]:
    warnings: List[str] = []

    if med.drowsiness:
        warnings.append("May cause drowsiness")

    if med.avoid_foods:
        warnings.append(f"Avoid: {', '.join(med.avoid_foods)}")

    if med.with_food is False:
        warnings.append("Take on empty stomach")

    if med.before_meal_minutes and med.with_food is not True:
        warnings.append(f"Take {med.before_meal_minutes} minutes before meals")

    if med.after_meal_minutes and med.with_food is not False:
        warnings.append(f"Take {med.after_meal_minutes} minutes after meals")

    return warnings


def _build_slot(draft: Dict[str, Any]) -> ScheduleSlot:
    meds: List[MedicationTiming] = draft["meds"]
    warnings: List[str] = []
    if len(meds) > 1:
        w = _slot_separation_warning(meds)
        if w:
            warnings.append(w)

    return ScheduleSlot(
        time=draft["time"],
        medications=[
            ScheduledMedication(
                name=m.name,
                dosage=m.dosage,
                notes=m.notes,
                warnings=medication_warnings(m),
            )
            for m in meds
        ],
        meal_timing=draft["meal_timing"],
        instructions=draft["instructions"],
        warnings=warnings,
    )


def _names(meds: List[MedicationTiming]) -> str:
    return ", ".join(dict.fromkeys(m.name for m in meds))


def cross_medication_warnings(medications: List[MedicationTiming]) -> List[str]:
    warnings: List[str] = []

    thyroid = [m for m in medications if _is_thyroid(m)]
    calcium = [m for m in medications if "calcium" in m.name.lower()]
    if thyroid and calcium:
        warnings.append("Separate thyroid medication and calcium by at least 4 hours")

    alcohol = [m for m in medications if m.alcohol_interaction]
    if alcohol:
        warnings.append(f"Avoid alcohol while taking: {_names(alcohol)}")

    sun = [m for m in medications if m.photosensitivity]
    if sun:
        warnings.append(f"Use sunscreen and limit sun exposure while taking: {_names(sun)}")

    return warnings


def food_instructions(medications: List[MedicationTiming]) -> List[str]:
    avoid: Dict[str, None] = {}
    require: Dict[str, None] = {}
    for m in medications:
        for food in m.avoid_foods or []:
            avoid.setdefault(food, None)
        for food in m.require_foods or []:
            require.setdefault(food, None)

    out: List[str] = []
    if avoid:
        out.append(f"Foods to limit or avoid: {', '.join(avoid)}")
    if require:
        out.append(f"Include in your diet: {', '.join(require)}")
    return out


def build_meal_plan(medications: List[MedicationTiming]) -> MealPlan:
    has_thyroid = any(_is_thyroid(m) for m in medications)
    has_iron = any("iron" in m.name.lower() for m in medications)
    has_fat_soluble = any(m.fat_soluble for m in medications)

    if has_thyroid:
        breakfast = "Light breakfast (avoid coffee for 1 hour after thyroid medication)"
    elif has_fat_soluble:
        breakfast = "Include healthy fats (avocado, nuts, olive oil)"
    else:
        breakfast = "Balanced breakfast with protein and complex carbs"

    if has_iron:
        lunch = "Include vitamin C rich foods (citrus, bell peppers, strawberries)"
    else:
        lunch = "Balanced meal with lean protein and vegetables"

    return MealPlan(
        breakfast=breakfast,
        lunch=lunch,
        dinner="Light dinner if taking evening medications, avoid heavy meals 2 hours before bedtime",
        snacks=[
            "Avoid grapefruit if taking statins or blood pressure medications",
            "Stay hydrated throughout the day",
            "Limit caffeine if taking certain medications",
        ],
    )


def generate_optimal_schedule(
    medications: Iterable[MedicationInput],
    date: Optional[Date] = None,
) -> DailySchedule:
    """
    Build a one-day dosing schedule.

    Every medication is placed in at least one slot. Slot times are unique
    and ascending. Cross-medication warnings come from the enriched records
    and do not depend on where the medications were placed.
    """
    day = date or Date.today()
    meds = [enrich_medication(_as_timing(m)) for m in medications]

    if not meds:
        return DailySchedule(date=day, general_instructions=list(GENERAL_INSTRUCTIONS))

    groups = group_medications_by_timing(meds)
    drafts: List[Dict[str, Any]] = []
    for bucket in BUCKETS:
        if groups[bucket]:
            drafts.extend(_schedule_group(bucket, groups[bucket]))

    slots = [_build_slot(d) for d in merge_coinciding_slots(drafts)]
    slots.sort(key=lambda s: s.time)

    logger.debug(
        f"Scheduled {len(meds)} medications into {len(slots)} slots "
        f"({', '.join(b for b in BUCKETS if groups[b])})"
    )

    return DailySchedule(
        date=day,
        slots=slots,
        general_instructions=GENERAL_INSTRUCTIONS + food_instructions(meds),
        warnings=cross_medication_warnings(meds),
        meal_plan=build_meal_plan(meds),
    )


def _record_get(record: Any, key: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def convert_medications_to_timing(records: Iterable[Any]) -> List[MedicationTiming]:
    """
    Map stored medication records (name/dosage/frequency/notes) to timing
    profiles. Records flagged ``active=False`` are left out.
    """
    out: List[MedicationTiming] = []
    for r in records:
        if _record_get(r, "active", True) is False:
            continue
        name = str(_record_get(r, "name", "") or "").strip()
        if not name:
            logger.warning("Skipping medication record without a name")
            continue
        fields = {"name": name}
        for key in ("dosage", "frequency"):
            value = _record_get(r, key)
            if value is not None:
                fields[key] = str(value)
        notes = _record_get(r, "notes")
        if notes is not None:
            fields["notes"] = str(notes)
        out.append(MedicationTiming(**fields))
    return out


def format_schedule_time(hhmm: str) -> str:
    """"14:05" -> "2:05 PM"."""
    h, m = divmod(hhmm_to_minutes(hhmm), 60)
    period = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:{m:02d} {period}"


def get_next_dose_time(schedule: DailySchedule, now: Optional[datetime] = None) -> Optional[str]:
    now = now or datetime.now()
    current = minutes_to_hhmm(now.hour * 60 + now.minute)
    upcoming = next((s for s in schedule.slots if s.time > current), None)
    return format_schedule_time(upcoming.time) if upcoming else None


def attach_interaction_warnings(schedule: DailySchedule, result: InteractionCheckResult) -> DailySchedule:
    """
    Return a copy of ``schedule`` carrying the interaction check outcome.
    Any medication that could not be checked adds an explicit notice naming
    it, even when other sources did report findings. A clean "none found"
    adds nothing.
    """
    warnings = list(schedule.warnings)

    if result.status == "unavailable" or result.unreachable:
        warnings.append(INTERACTION_DATA_UNAVAILABLE)
    if result.unreachable:
        warnings.append(f"Not checked for interactions: {', '.join(result.unreachable)}")

    for ix in result.interactions:
        msg = (
            f"{ix.severity.capitalize()} interaction: {ix.drug_name} and "
            f"{ix.interacting_drug} ({ix.source})"
        )
        if msg not in warnings:
            warnings.append(msg)

    return schedule.model_copy(update={"warnings": warnings})
