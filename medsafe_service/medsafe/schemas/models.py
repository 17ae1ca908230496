import re
from datetime import date as Date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

TimeOfDay = Literal["morning", "afternoon", "evening", "bedtime", "any"]
MealTiming = Literal["before", "with", "after", "between"]
Severity = Literal["major", "moderate", "minor"]
InteractionStatus = Literal["found", "none_found", "unavailable"]

SAFETY_NOTE = (
    "Not medical advice. This service organizes user-provided medicines. "
    "Always confirm instructions with a doctor/pharmacist."
)

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class MedicationTiming(BaseModel):
    """Scheduling-relevant profile of one medication.

    Frozen: enrichment builds a new instance instead of mutating this one.
    Fields the caller actually supplied are tracked in ``model_fields_set``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    dosage: str = ""
    frequency: str = ""
    notes: Optional[str] = None

    # True = with food, False = empty stomach, None = doesn't matter
    with_food: Optional[bool] = None
    time_of_day: TimeOfDay = "any"
    separation_required_minutes: Optional[int] = Field(default=None, ge=0)

    avoid_foods: Optional[List[str]] = None
    require_foods: Optional[List[str]] = None

    before_meal_minutes: Optional[int] = Field(default=None, ge=0)
    after_meal_minutes: Optional[int] = Field(default=None, ge=0)

    acidic_environment: bool = False
    fat_soluble: bool = False
    drowsiness: bool = False
    photosensitivity: bool = False
    alcohol_interaction: bool = False


class ScheduledMedication(BaseModel):
    name: str
    dosage: str = ""
    notes: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class ScheduleSlot(BaseModel):
    time: str  # "HH:MM" 24-hour, zero padded
    medications: List[ScheduledMedication] = Field(default_factory=list)
    meal_timing: Optional[MealTiming] = None
    instructions: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        if not _HHMM_RE.match(v):
            raise ValueError(f"time must be zero-padded HH:MM, got {v!r}")
        return v


class MealPlan(BaseModel):
    breakfast: str
    lunch: str
    dinner: str
    snacks: List[str] = Field(default_factory=list)


class DailySchedule(BaseModel):
    date: Date
    slots: List[ScheduleSlot] = Field(default_factory=list)
    general_instructions: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    meal_plan: Optional[MealPlan] = None
    safety_note: str = SAFETY_NOTE


class DrugInfo(BaseModel):
    id: str
    brand_name: Optional[str] = None
    generic_name: Optional[str] = None
    active_ingredient: Optional[str] = None
    manufacturer_name: Optional[str] = None
    dosage_form: Optional[str] = None
    route: List[str] = Field(default_factory=list)
    strength: Optional[str] = None
    ndc: Optional[str] = None
    application_number: Optional[str] = None
    product_type: Optional[str] = None

    @computed_field
    @property
    def display_name(self) -> str:
        return self.brand_name or self.generic_name or self.active_ingredient or "Unknown Drug"


class DrugLabel(BaseModel):
    brand_name: List[str] = Field(default_factory=list)
    generic_name: List[str] = Field(default_factory=list)
    active_ingredient: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    contraindications: List[str] = Field(default_factory=list)
    adverse_reactions: List[str] = Field(default_factory=list)
    drug_interactions: List[str] = Field(default_factory=list)
    dosage_and_administration: List[str] = Field(default_factory=list)
    indications_and_usage: List[str] = Field(default_factory=list)
    manufacturer_name: List[str] = Field(default_factory=list)


class DrugInteraction(BaseModel):
    drug_name: str
    interacting_drug: str
    severity: Severity
    description: str
    mechanism: Optional[str] = None
    management: Optional[str] = None
    source: str


class InteractionCheckResult(BaseModel):
    """Outcome of an interaction lookup.

    ``none_found`` means the sources answered and reported nothing;
    ``unavailable`` means they could not be asked. Only the former says
    anything about the medication list.
    """

    status: InteractionStatus
    interactions: List[DrugInteraction] = Field(default_factory=list)
    checked: List[str] = Field(default_factory=list)
    unreachable: List[str] = Field(default_factory=list)
    source: str = ""


class OrangeBookEntry(BaseModel):
    ingredient: str
    dosage_form: str = ""
    route: str = ""
    trade_name: str = ""
    applicant: str = ""
    strength: str = ""
    appl_type: str = ""
    appl_no: str = ""
    product_no: str = ""
    te_code: str = ""  # therapeutic equivalence code
    approval_date: str = ""
    rld: str = "No"  # reference listed drug
    submission_type: str = ""


class RxConcept(BaseModel):
    rxcui: str
    name: str
    synonym: Optional[str] = None
    tty: Optional[str] = None  # RxNorm term type


# ---- HTTP request bodies ----

class ScheduleRequest(BaseModel):
    medications: List[MedicationTiming] = Field(default_factory=list)
    date: Optional[Date] = None


class ScheduleFromRecordsRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    date: Optional[Date] = None


class InteractionRequest(BaseModel):
    names: List[str] = Field(default_factory=list)


class ScheduleWithInteractionsResponse(BaseModel):
    schedule: DailySchedule
    interactions: InteractionCheckResult
