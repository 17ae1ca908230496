"""
RxNav (NLM RxNorm) client: concept search, RxCUI resolution, related
concepts, spelling suggestions and structured interaction pairs.
Same failure policy as the openFDA client.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from medsafe.core.api_config import RXNAV_BASE_URL
from medsafe.schemas.models import DrugInteraction, RxConcept
from medsafe.services.http_json import DirectoryContext, DirectoryError, JsonHttpClient
from medsafe.services.interaction_classifier import classify_severity, classify_severity_code

logger = logging.getLogger(__name__)

RXNAV_SOURCE = "RxNav"
SEARCH_TTYS = {"BN", "IN", "PIN", "MIN"}  # brand, ingredient, precise/multiple ingredient
MAX_SEARCH_RESULTS = 20


def _concepts(groups: Any, ttys: Optional[set] = None) -> List[RxConcept]:
    out: List[RxConcept] = []
    for group in groups or []:
        for c in group.get("conceptProperties") or []:
            if ttys is not None and c.get("tty") not in ttys:
                continue
            out.append(RxConcept(
                rxcui=str(c.get("rxcui", "")),
                name=c.get("name", ""),
                synonym=c.get("synonym") or None,
                tty=c.get("tty"),
            ))
    return out


def parse_interaction_pairs(data: Optional[Dict[str, Any]]) -> List[DrugInteraction]:
    """Flatten /interaction/list.json into one record per interaction pair."""
    found: List[DrugInteraction] = []
    for group in (data or {}).get("fullInteractionTypeGroup") or []:
        source = group.get("sourceName") or RXNAV_SOURCE
        for itype in group.get("fullInteractionType") or []:
            for pair in itype.get("interactionPair") or []:
                concepts = pair.get("interactionConcept") or []
                if len(concepts) < 2:
                    continue
                description = pair.get("description") or ""
                code = (pair.get("severity") or "").strip()
                # DrugBank pairs carry "N/A"; fall back to the prose
                if not code or code.upper() == "N/A":
                    severity = classify_severity(description)
                else:
                    severity = classify_severity_code(code)
                found.append(DrugInteraction(
                    drug_name=concepts[0]["minConceptItem"]["name"],
                    interacting_drug=concepts[1]["minConceptItem"]["name"],
                    severity=severity,
                    description=description,
                    source=f"{RXNAV_SOURCE}/{source}",
                ))
    return found


class RxNavClient(JsonHttpClient):
    source_name = "RxNav"

    def __init__(
        self,
        context: DirectoryContext,
        session: Optional[requests.Session] = None,
        base_url: str = RXNAV_BASE_URL,
        **kwargs: Any,
    ):
        super().__init__(context, base_url, session=session, **kwargs)

    async def search_drugs(self, query: str) -> List[RxConcept]:
        if not query or not query.strip():
            return []

        cached = self.context.rxnav_cache.get(query)
        if cached is not None:
            return list(cached)

        try:
            data = await self._get_json("/drugs.json", {"name": query.strip()})
            groups = ((data or {}).get("drugGroup") or {}).get("conceptGroup")
            concepts = _concepts(groups, SEARCH_TTYS)
        except (DirectoryError, AttributeError, TypeError, ValueError) as e:
            logger.error(f"Error searching RxNav for '{query}': {e}")
            return []

        seen = set()
        unique: List[RxConcept] = []
        for c in concepts:
            key = c.name.lower()
            if key not in seen:
                seen.add(key)
                unique.append(c)
        unique = unique[:MAX_SEARCH_RESULTS]

        self.context.rxnav_cache.set(query, unique)
        return list(unique)

    async def fetch_rxcui(self, name: str) -> Optional[str]:
        data = await self._get_json("/rxcui.json", {"name": name, "search": 2})
        try:
            ids = ((data or {}).get("idGroup") or {}).get("rxnormId") or []
            return str(ids[0]) if ids else None
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise DirectoryError(f"Malformed RxNav rxcui response for '{name}': {e}") from e

    async def get_rxcui_by_name(self, name: str) -> Optional[str]:
        try:
            return await self.fetch_rxcui(name)
        except (DirectoryError, AttributeError, TypeError) as e:
            logger.error(f"Error getting RxCUI for '{name}': {e}")
            return None

    async def get_drug_properties(self, rxcui: str) -> Optional[Dict[str, Any]]:
        try:
            data = await self._get_json(f"/rxcui/{rxcui}/properties.json")
        except DirectoryError as e:
            logger.error(f"Error getting properties for RxCUI {rxcui}: {e}")
            return None
        return (data or {}).get("properties")

    async def get_related_drugs(self, rxcui: str) -> List[RxConcept]:
        try:
            data = await self._get_json(f"/rxcui/{rxcui}/related.json", {"tty": "IN PIN MIN BN"})
            return _concepts(((data or {}).get("relatedGroup") or {}).get("conceptGroup"))
        except (DirectoryError, AttributeError, TypeError, ValueError) as e:
            logger.error(f"Error getting related drugs for RxCUI {rxcui}: {e}")
            return []

    async def get_spelling_suggestions(self, name: str) -> List[str]:
        try:
            data = await self._get_json("/spellingsuggestions.json", {"name": name})
            suggestions = (((data or {}).get("suggestionGroup") or {}).get("suggestionList") or {}).get("suggestion")
        except (DirectoryError, AttributeError) as e:
            logger.error(f"Error getting spelling suggestions for '{name}': {e}")
            return []
        return [str(s) for s in suggestions or []]

    async def fetch_interactions(self, rxcuis: List[str]) -> List[DrugInteraction]:
        if len(rxcuis) < 2:
            return []
        data = await self._get_json("/interaction/list.json", {"rxcuis": " ".join(rxcuis)})
        if data is None:
            logger.warning(f"No drug interactions found for RxCUIs: {rxcuis}")
            return []
        try:
            return parse_interaction_pairs(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DirectoryError(f"Malformed RxNav interaction response: {e}") from e

    async def get_interactions(self, rxcuis: List[str]) -> List[DrugInteraction]:
        try:
            return await self.fetch_interactions(rxcuis)
        except DirectoryError as e:
            logger.error(f"Error fetching drug interactions: {e}")
            return []
