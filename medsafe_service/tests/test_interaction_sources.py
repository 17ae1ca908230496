"""
Tests for combining interaction sources into one three-state answer.
"""
import asyncio

from conftest import FakeResponse, FakeSession, connection_error, label_result, labels_responder

from medsafe.schemas.models import DrugInteraction, InteractionCheckResult
from medsafe.services.drug_directory import DrugDirectoryClient
from medsafe.services.interaction_sources import (
    CommonInteractionSource,
    LabelScanInteractionSource,
    RxNavInteractionSource,
    check_all,
    combine_results,
)
from medsafe.services.rxnav import RxNavClient


class StubSource:
    def __init__(self, name, result):
        self.name = name
        self.result = result
        self.seen = []

    async def check(self, names):
        self.seen.append(names)
        return self.result


def ix(a, b, severity="moderate", source="stub"):
    return DrugInteraction(drug_name=a, interacting_drug=b, severity=severity, description="", source=source)


# =============================================================================
# combine_results
# =============================================================================

def test_any_finding_wins():
    combined = combine_results([
        InteractionCheckResult(status="unavailable", unreachable=["a"], source="one"),
        InteractionCheckResult(status="found", interactions=[ix("a", "b")], checked=["a", "b"], source="two"),
    ])

    assert combined.status == "found"
    assert combined.unreachable == ["a"]
    assert combined.source == "one, two"


def test_unavailable_beats_none_found():
    combined = combine_results([
        InteractionCheckResult(status="none_found", checked=["a", "b"], source="one"),
        InteractionCheckResult(status="unavailable", unreachable=["a", "b"], source="two"),
    ])

    assert combined.status == "unavailable"
    assert combined.checked == ["a", "b"]


def test_all_clean_is_none_found():
    combined = combine_results([
        InteractionCheckResult(status="none_found", checked=["a"], source="one"),
        InteractionCheckResult(status="none_found", checked=["a", "b"], source="two"),
    ])

    assert combined.status == "none_found"
    assert combined.checked == ["a", "b"]


# =============================================================================
# check_all
# =============================================================================

def test_check_all_strips_names_and_asks_every_source():
    first = StubSource("one", InteractionCheckResult(status="none_found", source="one"))
    second = StubSource("two", InteractionCheckResult(status="none_found", source="two"))

    asyncio.run(check_all([" warfarin ", "", "aspirin"], [first, second]))

    assert first.seen == [["warfarin", "aspirin"]]
    assert second.seen == [["warfarin", "aspirin"]]


def test_common_table_still_reports_when_labels_are_down(context):
    directory = DrugDirectoryClient(context, session=FakeSession(connection_error))
    sources = [LabelScanInteractionSource(directory), CommonInteractionSource()]

    result = asyncio.run(check_all(["Warfarin", "Aspirin"], sources))

    assert result.status == "found"
    assert [(i.drug_name, i.severity) for i in result.interactions] == [("warfarin", "major")]
    assert result.unreachable == ["Warfarin", "Aspirin"]


def test_labels_down_and_nothing_common_is_unavailable(context):
    directory = DrugDirectoryClient(context, session=FakeSession(connection_error))
    sources = [LabelScanInteractionSource(directory), CommonInteractionSource()]

    result = asyncio.run(check_all(["amoxicillin", "ibuprofen"], sources))

    assert result.status == "unavailable"


def test_labels_answering_cleanly_is_none_found(context):
    labels = {"amoxicillin": label_result("Amoxil", "amoxicillin", ["Probenecid raises levels."])}
    directory = DrugDirectoryClient(context, session=FakeSession(labels_responder(labels)))
    sources = [LabelScanInteractionSource(directory), CommonInteractionSource()]

    result = asyncio.run(check_all(["amoxicillin", "ibuprofen"], sources))

    assert result.status == "none_found"
    assert result.source == "OpenFDA, Common Interactions Database"


# =============================================================================
# RxNav source
# =============================================================================

PAIRS = {
    "fullInteractionTypeGroup": [{
        "sourceName": "ONCHigh",
        "fullInteractionType": [{"interactionPair": [{
            "interactionConcept": [
                {"minConceptItem": {"name": "warfarin"}},
                {"minConceptItem": {"name": "aspirin"}},
            ],
            "severity": "high",
            "description": "Bleeding.",
        }]}],
    }],
}


def rxnav_responder(url, params):
    if url.endswith("/rxcui.json"):
        ids = {"warfarin": ["11289"], "aspirin": ["1191"]}.get(params["name"], [])
        return FakeResponse(200, {"idGroup": {"rxnormId": ids}})
    if url.endswith("/interaction/list.json"):
        return FakeResponse(200, PAIRS)
    return FakeResponse(404, None)


def test_rxnav_source_found(context):
    source = RxNavInteractionSource(RxNavClient(context, session=FakeSession(rxnav_responder)))

    result = asyncio.run(source.check(["warfarin", "aspirin", "unknownium"]))

    assert result.status == "found"
    assert result.checked == ["warfarin", "aspirin"]
    assert result.interactions[0].severity == "major"


def test_rxnav_source_unreachable(context):
    source = RxNavInteractionSource(RxNavClient(context, session=FakeSession(connection_error)))

    result = asyncio.run(source.check(["warfarin", "aspirin"]))

    assert result.status == "unavailable"
    assert result.unreachable == ["warfarin", "aspirin"]


def test_rxnav_source_single_name(context):
    session = FakeSession(connection_error)
    source = RxNavInteractionSource(RxNavClient(context, session=session))

    result = asyncio.run(source.check(["warfarin"]))

    assert result.status == "none_found"
    assert result.checked == []
    assert session.calls == []


def test_rxnav_source_malformed_rxcui_is_unavailable(context):
    def responder(url, params):
        return FakeResponse(200, {"idGroup": ["bogus"]})

    source = RxNavInteractionSource(RxNavClient(context, session=FakeSession(responder)))

    result = asyncio.run(source.check(["warfarin", "aspirin"]))

    assert result.status == "unavailable"
    assert result.unreachable == ["warfarin", "aspirin"]
