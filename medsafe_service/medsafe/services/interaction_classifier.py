from typing import List

from medsafe.schemas.models import DrugInteraction, Severity

MAJOR_KEYWORDS = ("contraindicated", "avoid", "serious", "life-threatening", "fatal", "severe")
MODERATE_KEYWORDS = ("caution", "monitor", "adjust", "reduce", "increase", "significant")

COMMON_INTERACTIONS_SOURCE = "Common Interactions Database"

# Built-in pairs checked even when no upstream source answers
COMMON_INTERACTION_PATTERNS = [
    {
        "drugs": ("warfarin", "aspirin"),
        "severity": "major",
        "description": "Increased risk of bleeding when warfarin is combined with aspirin.",
    },
    {
        "drugs": ("metformin", "alcohol"),
        "severity": "moderate",
        "description": "Alcohol may increase the risk of lactic acidosis with metformin.",
    },
    {
        "drugs": ("levothyroxine", "calcium"),
        "severity": "moderate",
        "description": "Calcium may reduce the absorption of levothyroxine. Take 4 hours apart.",
    },
    {
        "drugs": ("lisinopril", "potassium"),
        "severity": "moderate",
        "description": "ACE inhibitors like lisinopril may increase potassium levels.",
    },
]


def classify_severity(text: str) -> Severity:
    """
    Map free interaction prose to major/moderate/minor by keyword.
    First matching tier wins; anything else is minor.
    """
    t = (text or "").lower()
    if any(k in t for k in MAJOR_KEYWORDS):
        return "major"
    if any(k in t for k in MODERATE_KEYWORDS):
        return "moderate"
    return "minor"


def classify_severity_code(code: str) -> Severity:
    """Normalize a structured severity code such as RxNav's "high" or "N/A"."""
    c = (code or "").lower()
    if "high" in c or "major" in c or "contraindicated" in c:
        return "major"
    if "moderate" in c or "significant" in c:
        return "moderate"
    return "minor"


def find_common_interactions(names: List[str]) -> List[DrugInteraction]:
    lowered = [n.lower() for n in names if n]
    found: List[DrugInteraction] = []

    for pattern in COMMON_INTERACTION_PATTERNS:
        a, b = pattern["drugs"]
        if any(a in n for n in lowered) and any(b in n for n in lowered):
            found.append(DrugInteraction(
                drug_name=a,
                interacting_drug=b,
                severity=pattern["severity"],
                description=pattern["description"],
                source=COMMON_INTERACTIONS_SOURCE,
            ))

    return found
