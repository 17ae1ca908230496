"""
openFDA drug directory client.

search_* / get_* methods never raise for upstream trouble: failures are
logged and come back as [] or None. The fetch_* methods raise
DirectoryError instead, for callers that must tell "nothing found" apart
from "could not ask" (see check_interactions).
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from medsafe.core.api_config import DEFAULT_SEARCH_LIMIT, OPENFDA_BASE_URL
from medsafe.schemas.models import (
    DrugInfo,
    DrugInteraction,
    DrugLabel,
    InteractionCheckResult,
    OrangeBookEntry,
)
from medsafe.services.http_json import DirectoryContext, DirectoryError, JsonHttpClient
from medsafe.services.interaction_classifier import classify_severity

logger = logging.getLogger(__name__)

OPENFDA_SOURCE = "OpenFDA"
MAX_SUGGESTIONS = 5

_LABEL_FIELDS = (
    "warnings",
    "contraindications",
    "adverse_reactions",
    "drug_interactions",
    "dosage_and_administration",
    "indications_and_usage",
)


def _first(values: Any) -> Optional[str]:
    if isinstance(values, list) and values:
        return str(values[0])
    return None


def _str_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v) for v in values]


def _term(text: str) -> str:
    # quotes would end the openFDA phrase early
    return text.replace('"', " ").strip()


def parse_search_results(results: List[Dict[str, Any]]) -> List[DrugInfo]:
    """Expand label hits into one DrugInfo per brand name and per new generic name."""
    drugs: List[DrugInfo] = []

    for index, result in enumerate(results):
        openfda = result.get("openfda") or {}
        shared = {
            "active_ingredient": _first(result.get("active_ingredient")),
            "manufacturer_name": _first(openfda.get("manufacturer_name")),
            "dosage_form": _first(openfda.get("dosage_form")),
            "route": _str_list(openfda.get("route")),
            "ndc": _first(openfda.get("product_ndc")),
            "application_number": _first(openfda.get("application_number")),
            "product_type": _first(openfda.get("product_type")),
        }

        for brand in _str_list(openfda.get("brand_name")):
            drugs.append(DrugInfo(
                id=f"brand_{index}_{'_'.join(brand.split())}",
                brand_name=brand,
                generic_name=_first(openfda.get("generic_name")),
                **shared,
            ))

        for generic in _str_list(openfda.get("generic_name")):
            if any(d.generic_name == generic for d in drugs):
                continue
            drugs.append(DrugInfo(
                id=f"generic_{index}_{'_'.join(generic.split())}",
                brand_name=_first(openfda.get("brand_name")),
                generic_name=generic,
                **shared,
            ))

    return drugs


def rank_drugs(drugs: List[DrugInfo], query: str) -> List[DrugInfo]:
    """Dedupe by display name (first wins), then exact, prefix, alphabetical."""
    seen = set()
    unique: List[DrugInfo] = []
    for d in drugs:
        if d.display_name in seen:
            continue
        seen.add(d.display_name)
        unique.append(d)

    q = query.strip().lower()

    def key_fn(d: DrugInfo) -> Tuple[int, int, str]:
        name = d.display_name.lower()
        return (0 if name == q else 1, 0 if name.startswith(q) else 1, name)

    return sorted(unique, key=key_fn)


def unique_names(names: List[str]) -> List[str]:
    """Drop blanks and case-insensitive repeats, keeping the first spelling."""
    seen = set()
    out: List[str] = []
    for n in names:
        key = (n or "").strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(n)
    return out


def find_label_mentions(drug_name: str, label: DrugLabel, names: List[str]) -> List[DrugInteraction]:
    """One record per (interaction paragraph, other supplied name it mentions)."""
    found: List[DrugInteraction] = []
    for text in label.drug_interactions:
        lowered = text.lower()
        for other in names:
            if other.lower() == drug_name.lower() or not other.strip():
                continue
            if other.lower() in lowered:
                found.append(DrugInteraction(
                    drug_name=drug_name,
                    interacting_drug=other,
                    severity=classify_severity(text),
                    description=text,
                    source=OPENFDA_SOURCE,
                ))
    return found


class DrugDirectoryClient(JsonHttpClient):
    source_name = "openFDA"

    def __init__(
        self,
        context: DirectoryContext,
        session: Optional[requests.Session] = None,
        base_url: str = OPENFDA_BASE_URL,
        **kwargs: Any,
    ):
        super().__init__(context, base_url, session=session, **kwargs)

    # ---- search ----

    async def fetch_drugs(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[DrugInfo]:
        term = _term(query.lower())
        search = (
            f'(openfda.brand_name:"{term}" openfda.generic_name:"{term}" '
            f'active_ingredient:"{term}")'
        )
        data = await self._get_json("/drug/label.json", {"search": search, "limit": limit})
        if not data:
            return []

        results = data.get("results") or []
        if not isinstance(results, list):
            raise DirectoryError("openFDA results is not a list")
        try:
            drugs = parse_search_results(results)
        except (AttributeError, TypeError, ValueError) as e:
            raise DirectoryError(f"Malformed openFDA search result: {e}") from e

        return rank_drugs(drugs, query)[:limit]

    async def search_drugs(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[DrugInfo]:
        """
        Search labels by brand, generic or active ingredient name.
        Results are cached per query and limit for the cache TTL.
        """
        if not query or not query.strip():
            return []

        cache_key = f"{query}::{limit}"
        cached = self.context.search_cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit for '{query}'")
            return list(cached)

        try:
            drugs = await self.fetch_drugs(query, limit)
        except DirectoryError as e:
            logger.error(f"Error searching drugs for '{query}': {e}")
            return []

        self.context.search_cache.set(cache_key, drugs)
        return list(drugs)

    async def get_spelling_suggestions(self, query: str) -> List[str]:
        results = await self.search_drugs(query, 10)
        suggestions: List[str] = []
        for d in results:
            name = d.brand_name or d.generic_name
            if name and name not in suggestions:
                suggestions.append(name)
        return suggestions[:MAX_SUGGESTIONS]

    # ---- labels ----

    async def fetch_label(self, name: str) -> Optional[DrugLabel]:
        cached = self.context.label_cache.get(name)
        if cached is not None:
            return cached

        term = _term(name)
        search = f'(openfda.brand_name:"{term}" openfda.generic_name:"{term}")'
        data = await self._get_json("/drug/label.json", {"search": search, "limit": 1})
        results = (data or {}).get("results") or []
        if not results:
            return None

        try:
            result = results[0]
            openfda = result.get("openfda") or {}
            label = DrugLabel(
                brand_name=_str_list(openfda.get("brand_name")),
                generic_name=_str_list(openfda.get("generic_name")),
                active_ingredient=_str_list(result.get("active_ingredient")),
                manufacturer_name=_str_list(openfda.get("manufacturer_name")),
                **{f: _str_list(result.get(f)) for f in _LABEL_FIELDS},
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DirectoryError(f"Malformed openFDA label for '{name}': {e}") from e

        self.context.label_cache.set(name, label)
        return label

    async def get_drug_label(self, name: str) -> Optional[DrugLabel]:
        if not name or not name.strip():
            return None
        try:
            return await self.fetch_label(name)
        except DirectoryError as e:
            logger.error(f"Error getting drug label for '{name}': {e}")
            return None

    # ---- interactions ----

    async def scan_label_interactions(self, names: List[str]) -> Tuple[List[DrugInteraction], List[str]]:
        """
        Look each name's label up in turn and report mentions of the other
        names in its drug_interactions text.

        Returns (interactions, names whose label could not be fetched).
        """
        names = unique_names(names)
        interactions: List[DrugInteraction] = []
        unreachable: List[str] = []

        for name in names:
            try:
                label = await self.fetch_label(name)
            except DirectoryError as e:
                logger.error(f"Error getting drug label for '{name}': {e}")
                unreachable.append(name)
                continue
            if label is None:
                continue
            interactions.extend(find_label_mentions(name, label, names))

        return interactions, unreachable

    async def get_drug_interactions(self, names: List[str]) -> List[DrugInteraction]:
        names = unique_names(names)
        if len(names) < 2:
            return []
        interactions, _ = await self.scan_label_interactions(names)
        return interactions

    async def check_interactions(self, names: List[str]) -> InteractionCheckResult:
        """
        Like get_drug_interactions, but says whether the check could run.

        With fewer than two distinct names there is no pair to check: the
        result is "none_found" with an empty ``checked`` list and no request
        is made.
        """
        names = unique_names(names)
        if len(names) < 2:
            return InteractionCheckResult(status="none_found", source=OPENFDA_SOURCE)

        interactions, unreachable = await self.scan_label_interactions(names)
        if interactions:
            status = "found"
        elif unreachable:
            status = "unavailable"
        else:
            status = "none_found"

        return InteractionCheckResult(
            status=status,
            interactions=interactions,
            checked=[n for n in names if n not in unreachable],
            unreachable=unreachable,
            source=OPENFDA_SOURCE,
        )

    # ---- Orange Book ----

    async def search_orange_book(self, ingredient: str) -> List[OrangeBookEntry]:
        if not ingredient or not ingredient.strip():
            return []
        try:
            data = await self._get_json(
                "/drug/drugsfda.json",
                {"search": f'products.active_ingredients.name:"{_term(ingredient)}"', "limit": 50},
            )
            return parse_orange_book(data, ingredient)
        except DirectoryError as e:
            logger.error(f"Error searching Orange Book for '{ingredient}': {e}")
            return []


def parse_orange_book(data: Optional[Dict[str, Any]], ingredient: str) -> List[OrangeBookEntry]:
    entries: List[OrangeBookEntry] = []
    try:
        for result in (data or {}).get("results") or []:
            appl_no = result.get("application_number") or ""
            submissions = result.get("submissions") or [{}]
            latest = submissions[0]
            for product in result.get("products") or []:
                actives = product.get("active_ingredients") or [{}]
                entries.append(OrangeBookEntry(
                    ingredient=actives[0].get("name") or ingredient,
                    dosage_form=product.get("dosage_form") or "",
                    route=product.get("route") or "",
                    trade_name=product.get("brand_name") or "",
                    applicant=result.get("sponsor_name") or "",
                    strength=actives[0].get("strength") or "",
                    appl_type=appl_no.rstrip("0123456789"),
                    appl_no=appl_no,
                    product_no=product.get("product_number") or "",
                    te_code=product.get("te_code") or "",
                    approval_date=latest.get("submission_status_date") or "",
                    rld=product.get("reference_drug") or "No",
                    submission_type=latest.get("submission_type") or "",
                ))
    except (AttributeError, IndexError, TypeError, ValueError) as e:
        raise DirectoryError(f"Malformed Orange Book result: {e}") from e
    return entries
