import pytest

from ontoscope.enums import Dimension
from ontoscope.layout import Viewport
from ontoscope.models import CompetencyQuestion
from ontoscope.store import CQStore

DOMAINS = ["Clinical", "Devices", "Records"]
LEVELS = ["First-level", "Second-level", "Third-level"]


@pytest.fixture
def viewport() -> Viewport:
    """A viewport large enough that the plot hits its 800x600 cap."""
    return Viewport(1200, 800)


@pytest.fixture
def patient_cq() -> CompetencyQuestion:
    return CompetencyQuestion(
        question="Which patients receive a given drug?",
        domain_coverage="Clinical",
        terminology_granularity="First-level",
        suggested_terms=["Patient"],
        type="subject",
    )


@pytest.fixture
def seeded_store():
    """
    A store with one session on the standard 3x3 axes and five CQs:
    three on Clinical, two on Devices.
    """
    store = CQStore()
    session = store.create_session("Healthcare informatics")
    for value in DOMAINS:
        store.add_axis_value(session.id, Dimension.DOMAIN_COVERAGE, value)
    for value in LEVELS:
        store.add_axis_value(session.id, Dimension.TERMINOLOGY_GRANULARITY, value)

    store.add_cq(session.id, "Which patients are admitted?", "Clinical", "First-level", ["Patient"], "subject")
    store.add_cq(session.id, "What dose does a prescription specify?", "Clinical", "Second-level", ["Dose", "Prescription"], "property")
    store.add_cq(session.id, "Who treats a patient?", "Clinical", "First-level", ["Clinician"], "object")
    store.add_cq(session.id, "Which devices monitor heart rate?", "Devices", "First-level", ["Monitor"], "subject")
    store.add_cq(session.id, "What device records a reading?", "Devices", "Third-level", ["Reading"], None)
    return store, session
