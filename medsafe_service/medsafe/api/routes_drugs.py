# medsafe/api/routes_drugs.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from medsafe.api.deps import get_drug_directory, get_interaction_sources, get_rxnav
from medsafe.core.api_config import DEFAULT_SEARCH_LIMIT
from medsafe.schemas.models import (
    DrugInfo,
    DrugLabel,
    InteractionCheckResult,
    InteractionRequest,
    OrangeBookEntry,
    RxConcept,
)
from medsafe.services.drug_directory import DrugDirectoryClient
from medsafe.services.interaction_sources import InteractionSource, check_all
from medsafe.services.rxnav import RxNavClient

router = APIRouter(prefix="/drugs", tags=["drugs"])


@router.get("/search", response_model=List[DrugInfo])
async def search(
    q: str = Query(..., min_length=2),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=100),
    directory: DrugDirectoryClient = Depends(get_drug_directory),
):
    return await directory.search_drugs(q, limit)


@router.get("/suggestions", response_model=List[str])
async def suggestions(
    q: str = Query(..., min_length=2),
    directory: DrugDirectoryClient = Depends(get_drug_directory),
):
    return await directory.get_spelling_suggestions(q)


@router.get("/label", response_model=DrugLabel)
async def label(name: str, directory: DrugDirectoryClient = Depends(get_drug_directory)):
    found = await directory.get_drug_label(name)
    if found is None:
        raise HTTPException(status_code=404, detail=f"No label found for '{name}'")
    return found


@router.get("/orange-book", response_model=List[OrangeBookEntry])
async def orange_book(ingredient: str, directory: DrugDirectoryClient = Depends(get_drug_directory)):
    return await directory.search_orange_book(ingredient)


@router.get("/rxnav/search", response_model=List[RxConcept])
async def rxnav_search(q: str = Query(..., min_length=2), rxnav: RxNavClient = Depends(get_rxnav)):
    return await rxnav.search_drugs(q)


@router.post("/interactions", response_model=InteractionCheckResult)
async def interactions(
    req: InteractionRequest,
    sources: List[InteractionSource] = Depends(get_interaction_sources),
):
    return await check_all(req.names, sources)
