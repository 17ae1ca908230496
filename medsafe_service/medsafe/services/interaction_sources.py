"""
Interaction lookup strategies.

Each source answers check(names) with an InteractionCheckResult. Free-text
label scanning and structured pair lookups sit behind the same interface so
either can be swapped without touching the scheduler.
"""
import logging
from typing import Dict, List, Protocol, Sequence

from medsafe.schemas.models import InteractionCheckResult
from medsafe.services.drug_directory import OPENFDA_SOURCE, DrugDirectoryClient
from medsafe.services.http_json import DirectoryError
from medsafe.services.interaction_classifier import COMMON_INTERACTIONS_SOURCE, find_common_interactions
from medsafe.services.rxnav import RXNAV_SOURCE, RxNavClient

logger = logging.getLogger(__name__)


class InteractionSource(Protocol):
    name: str

    async def check(self, names: List[str]) -> InteractionCheckResult:
        ...


class LabelScanInteractionSource:
    """Scan openFDA label interaction text for the other names."""

    name = OPENFDA_SOURCE

    def __init__(self, client: DrugDirectoryClient):
        self.client = client

    async def check(self, names: List[str]) -> InteractionCheckResult:
        return await self.client.check_interactions(names)


class RxNavInteractionSource:
    """Resolve names to RxCUIs and ask RxNav for structured pairs."""

    name = RXNAV_SOURCE

    def __init__(self, client: RxNavClient):
        self.client = client

    async def check(self, names: List[str]) -> InteractionCheckResult:
        # no pair to look up; nothing was checked
        if len(names) < 2:
            return InteractionCheckResult(status="none_found", source=self.name)

        try:
            rxcuis: Dict[str, str] = {}
            for n in names:
                rxcui = await self.client.fetch_rxcui(n)
                if rxcui:
                    rxcuis[n] = rxcui
            interactions = await self.client.fetch_interactions(list(rxcuis.values()))
        except DirectoryError as e:
            logger.error(f"RxNav interaction check failed: {e}")
            return InteractionCheckResult(status="unavailable", unreachable=list(names), source=self.name)

        return InteractionCheckResult(
            status="found" if interactions else "none_found",
            interactions=interactions,
            checked=list(rxcuis),
            source=self.name,
        )


class CommonInteractionSource:
    """Built-in table of well-known pairs. Always answers."""

    name = COMMON_INTERACTIONS_SOURCE

    async def check(self, names: List[str]) -> InteractionCheckResult:
        found = find_common_interactions(names)
        return InteractionCheckResult(
            status="found" if found else "none_found",
            interactions=found,
            checked=list(names),
            source=self.name,
        )


def combine_results(results: Sequence[InteractionCheckResult]) -> InteractionCheckResult:
    """
    Merge per-source results. Any finding makes the whole check "found".
    Otherwise one unavailable source is enough to report "unavailable":
    silence from the sources that did answer is not a clean bill.
    """
    interactions = [ix for r in results for ix in r.interactions]
    checked = list(dict.fromkeys(n for r in results for n in r.checked))
    unreachable = list(dict.fromkeys(n for r in results for n in r.unreachable))

    if interactions:
        status = "found"
    elif any(r.status == "unavailable" for r in results):
        status = "unavailable"
    else:
        status = "none_found"

    return InteractionCheckResult(
        status=status,
        interactions=interactions,
        checked=checked,
        unreachable=unreachable,
        source=", ".join(r.source for r in results if r.source),
    )


async def check_all(names: List[str], sources: Sequence[InteractionSource]) -> InteractionCheckResult:
    """Ask each source in turn and merge the answers."""
    names = [n.strip() for n in names if n and n.strip()]
    results = []
    for source in sources:
        results.append(await source.check(names))
    return combine_results(results)
