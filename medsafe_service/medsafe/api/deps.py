# medsafe/api/deps.py
from functools import lru_cache
from typing import List

from fastapi import Depends

from medsafe.core.api_config import USE_RXNAV_INTERACTIONS
from medsafe.services.drug_directory import DrugDirectoryClient
from medsafe.services.http_json import DirectoryContext
from medsafe.services.interaction_sources import (
    CommonInteractionSource,
    InteractionSource,
    LabelScanInteractionSource,
    RxNavInteractionSource,
)
from medsafe.services.rxnav import RxNavClient


@lru_cache(maxsize=1)
def get_directory_context() -> DirectoryContext:
    # one limiter + cache set for the whole process
    return DirectoryContext.from_settings()


@lru_cache(maxsize=1)
def _directory_client() -> DrugDirectoryClient:
    return DrugDirectoryClient(get_directory_context())


@lru_cache(maxsize=1)
def _rxnav_client() -> RxNavClient:
    return RxNavClient(get_directory_context())


def get_drug_directory() -> DrugDirectoryClient:
    return _directory_client()


def get_rxnav() -> RxNavClient:
    return _rxnav_client()


def get_interaction_sources(
    directory: DrugDirectoryClient = Depends(get_drug_directory),
    rxnav: RxNavClient = Depends(get_rxnav),
) -> List[InteractionSource]:
    sources: List[InteractionSource] = [LabelScanInteractionSource(directory)]
    if USE_RXNAV_INTERACTIONS:
        sources.append(RxNavInteractionSource(rxnav))
    sources.append(CommonInteractionSource())
    return sources
