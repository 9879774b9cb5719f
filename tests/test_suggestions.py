from unittest.mock import MagicMock

import pytest

from ontoscope.enums import CQType, Dimension
from ontoscope.errors import SuggestionError
from ontoscope.suggestions import (
    AxisValueRequest, CQSuggestionRequest, CustomCQRequest, SampleSuggestionProvider,
    SuggestionProvider, collect_unique_terminology, validate_property_terminology
)


@pytest.fixture
def provider() -> SampleSuggestionProvider:
    return SampleSuggestionProvider()


def test_provider_is_a_strategy(provider):
    assert isinstance(provider, SuggestionProvider)
    assert provider.name == "Sample Suggestions"
    with pytest.raises(TypeError):
        SuggestionProvider()


def test_initial_space(provider):
    space = provider.initial_space("Healthcare informatics")
    assert space.domain_values == ["Clinical", "Devices", "Records"]
    assert space.granularity_values == ["First-level", "Second-level", "Third-level"]

    generic = provider.initial_space("Astronomy")
    assert len(generic.domain_values) == 3

    with pytest.raises(SuggestionError):
        provider.initial_space("  ")


def test_suggest_cqs_skips_known_questions(provider):
    request = CQSuggestionRequest("Healthcare informatics", "Clinical", "First-level")
    first = provider.suggest_cqs(request)
    assert len(first) == 3
    assert first == provider.suggest_cqs(request)

    request.excluded_questions = [first[0].question.upper()]
    second = provider.suggest_cqs(request)
    assert first[0].question not in [s.question for s in second]
    assert all(s.type in CQType for s in second)


def test_suggest_granularity_levels(provider):
    request = AxisValueRequest(Dimension.TERMINOLOGY_GRANULARITY, "Education",
                               excluded_values=["First-level", "Second-level", "Third-level"])
    assert provider.suggest_axis_values(request) == ["Fourth-level"]


def test_suggest_domain_values_respect_exclusions(provider):
    request = AxisValueRequest(Dimension.DOMAIN_COVERAGE, "Education", excluded_values=["Education standards"])
    values = provider.suggest_axis_values(request)
    assert "Education standards" not in values
    assert len(values) == 3


def test_analyze_custom_cq(provider):
    result = provider.analyze_custom_cq(CustomCQRequest(
        "Which attribute of a course is its credit load?", "Education", "Courses", "First-level",
        existing_terms=["Course"]
    ))
    assert result.type == CQType.PROPERTY
    assert "Course" not in result.suggested_terms

    with pytest.raises(SuggestionError):
        provider.analyze_custom_cq(CustomCQRequest("", "Education", "Courses", "First-level"))


def test_validate_property_terminology():
    terms = ["treats", "department", "ownership", "prescribes", "Supervisor"]
    assert validate_property_terminology(terms, CQType.PROPERTY) == ["treats", "prescribes"]
    assert validate_property_terminology(terms, CQType.SUBJECT) == terms
    assert validate_property_terminology(terms, None) == terms


def test_collect_unique_terminology_stops_at_target(seeded_store):
    store, session = seeded_store
    cq = store.cqs(session.id)[0]
    fake = MagicMock(spec=SuggestionProvider)
    fake.suggest_terminology.side_effect = [
        ["Patient", "Inpatient"],
        ["Inpatient", "Admission", "Ward"],
        ["Bed"],
    ]

    terms = collect_unique_terminology(fake, store, cq.id)

    assert terms == ["Inpatient", "Admission", "Ward"]
    assert fake.suggest_terminology.call_count == 2
    second_request = fake.suggest_terminology.call_args_list[1].args[0]
    # Everything from the first attempt is excluded from the second.
    assert {"Patient", "Inpatient"} <= set(second_request.excluded_terms)
    assert second_request.domain == "Healthcare informatics"


def test_collect_unique_terminology_gives_up(seeded_store):
    store, session = seeded_store
    cq = store.cqs(session.id)[0]
    fake = MagicMock(spec=SuggestionProvider)
    fake.suggest_terminology.return_value = ["Patient", "Clinician"]

    assert collect_unique_terminology(fake, store, cq.id) == []
    assert fake.suggest_terminology.call_count == 10


def test_collect_unique_terminology_propagates_errors(seeded_store):
    store, session = seeded_store
    fake = MagicMock(spec=SuggestionProvider)
    fake.suggest_terminology.side_effect = SuggestionError("provider offline")
    with pytest.raises(SuggestionError):
        collect_unique_terminology(fake, store, store.cqs(session.id)[0].id)
