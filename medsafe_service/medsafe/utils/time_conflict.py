# medsafe/utils/time_conflict.py
from __future__ import annotations

from typing import Any, Dict, List


def hhmm_to_minutes(hhmm: str) -> int:
    h, m = map(int, hhmm.split(":"))
    return h * 60 + m


def minutes_to_hhmm(total_minutes: int) -> str:
    total_minutes = max(0, min(23 * 60 + 59, total_minutes))
    h = total_minutes // 60
    m = total_minutes % 60
    return f"{h:02d}:{m:02d}"


def merge_coinciding_slots(drafts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Collapse slot drafts that share a clock time into one draft.

    A draft is {"time", "meds", "meal_timing", "instructions"}. The first
    draft at a time keeps its position and meal timing; later ones append
    their medications and any instructions not already present.
    """
    merged: List[Dict[str, Any]] = []
    by_time: Dict[str, Dict[str, Any]] = {}

    for d in drafts:
        t = d["time"]
        existing = by_time.get(t)
        if existing is None:
            copy_ = {
                "time": t,
                "meds": list(d.get("meds") or []),
                "meal_timing": d.get("meal_timing"),
                "instructions": list(d.get("instructions") or []),
            }
            by_time[t] = copy_
            merged.append(copy_)
            continue

        existing["meds"].extend(d.get("meds") or [])
        for ins in d.get("instructions") or []:
            if ins not in existing["instructions"]:
                existing["instructions"].append(ins)

    return merged
