"""
Session Store Module.
In-memory container for scoping sessions: axis values, competency questions
and the deletion logs that keep deleted items out of later suggestions.
"""
import logging
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from ontoscope.enums import CQType, Dimension
from ontoscope.errors import DuplicateError, NotFoundError, ValidationError
from ontoscope.models import AxisValue, CQSession, CompetencyQuestion, DeletedRecord
from ontoscope.suggestions import (
    AxisValueRequest, CQSuggestionRequest, CustomCQRequest, InitialSpace, SuggestedCQ,
    normalize_text, validate_property_terminology
)

logger = logging.getLogger(__name__)

DimensionInput = Union[Dimension, str]


def _required(text: Optional[str], what: str) -> str:
    if text is None or not str(text).strip():
        raise ValidationError(f"{what} must not be empty.")
    return str(text).strip()


class CQStore:
    """
    Container for every session's records.
    Axis values and CQs keep insertion order, which is also band order.
    """
    def __init__(self):
        self._sessions: Dict[str, CQSession] = {}
        self._axis_values: Dict[str, AxisValue] = {}
        self._cqs: Dict[str, CompetencyQuestion] = {}
        self._deleted_values: List[DeletedRecord] = []
        self._deleted_terms: List[DeletedRecord] = []
        self._deleted_questions: List[DeletedRecord] = []

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    # ==============================================================================
    # --- Sessions ---
    # ==============================================================================

    def create_session(self, domain: str) -> CQSession:
        session = CQSession(_required(domain, "Domain"))
        self._sessions[session.id] = session
        logger.info("Created session %s for domain '%s'.", session.id, session.domain)
        return session

    def get_session(self, session_id: str) -> CQSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session '{session_id}' not found.")
        return session

    def load_initial_space(self, session_id: str, space: InitialSpace) -> List[AxisValue]:
        """Adds the provider's starting axis values, skipping any already present."""
        added = []
        for dimension, values in ((Dimension.DOMAIN_COVERAGE, space.domain_values),
                                  (Dimension.TERMINOLOGY_GRANULARITY, space.granularity_values)):
            for value in values:
                try:
                    added.append(self.add_axis_value(session_id, dimension, value))
                except DuplicateError:
                    logger.debug("Initial value '%s' already present, skipped.", value)
        return added

    # ==============================================================================
    # --- Axis Values ---
    # ==============================================================================

    def add_axis_value(self, session_id: str, dimension: DimensionInput, value: str) -> AxisValue:
        self.get_session(session_id)
        dimension = Dimension(dimension)
        value = _required(value, "Axis value")

        wanted = normalize_text(value)
        for existing in self._session_values(session_id, dimension):
            if normalize_text(existing.value) == wanted:
                raise DuplicateError(f"This value already exists on the {dimension.axis_label}")

        axis_value = AxisValue(dimension, value, session_id=session_id)
        self._axis_values[axis_value.id] = axis_value
        return axis_value

    def get_axis_value(self, value_id: str) -> AxisValue:
        axis_value = self._axis_values.get(value_id)
        if axis_value is None:
            raise NotFoundError(f"Axis value '{value_id}' not found.")
        return axis_value

    def _session_values(self, session_id: str, dimension: Optional[Dimension] = None) -> List[AxisValue]:
        return [
            v for v in self._axis_values.values()
            if v.session_id == session_id and (dimension is None or v.dimension == dimension)
        ]

    def axis_values(self, session_id: str, dimension: DimensionInput, include_irrelevant: bool = False) -> List[AxisValue]:
        """Values of one dimension in insertion order; relevant ones only unless asked."""
        self.get_session(session_id)
        values = self._session_values(session_id, Dimension(dimension))
        if include_irrelevant:
            return values
        return [v for v in values if v.is_relevant]

    def set_axis_value_relevance(self, value_id: str, is_relevant: bool) -> AxisValue:
        axis_value = self.get_axis_value(value_id)
        axis_value.is_relevant = bool(is_relevant)
        return axis_value

    def delete_axis_value(self, value_id: str) -> int:
        """
        Removes an axis value, records it in the deletion log and deletes every CQ
        of the same session placed on it. Returns the number of CQs removed.
        """
        axis_value = self.get_axis_value(value_id)
        del self._axis_values[value_id]
        self._deleted_values.append(
            DeletedRecord(axis_value.session_id, axis_value.value, dimension=axis_value.dimension)
        )

        if axis_value.dimension == Dimension.DOMAIN_COVERAGE:
            doomed = [cq.id for cq in self._session_cqs(axis_value.session_id)
                      if cq.domain_coverage == axis_value.value]
        else:
            doomed = [cq.id for cq in self._session_cqs(axis_value.session_id)
                      if cq.terminology_granularity == axis_value.value]
        for cq_id in doomed:
            del self._cqs[cq_id]

        logger.info(
            "Deleted %s value '%s' and %d competency questions.",
            axis_value.dimension.axis_label, axis_value.value, len(doomed)
        )
        return len(doomed)

    def delete_granularity_level(self, session_id: str, value: str) -> int:
        for axis_value in self._session_values(session_id, Dimension.TERMINOLOGY_GRANULARITY):
            if axis_value.value == value:
                return self.delete_axis_value(axis_value.id)
        raise NotFoundError(f"Granularity level '{value}' not found.")

    def deleted_values(self, session_id: str, dimension: Optional[DimensionInput] = None) -> List[str]:
        dimension = Dimension(dimension) if dimension is not None else None
        return [
            r.text for r in self._deleted_values
            if r.session_id == session_id and (dimension is None or r.dimension == dimension)
        ]

    # ==============================================================================
    # --- Competency Questions ---
    # ==============================================================================

    def _session_cqs(self, session_id: str) -> List[CompetencyQuestion]:
        return [cq for cq in self._cqs.values() if cq.session_id == session_id]

    def _check_unique_question(self, session_id: str, question: str, ignore_id: Optional[str] = None):
        wanted = normalize_text(question)
        for cq in self._session_cqs(session_id):
            if cq.id != ignore_id and normalize_text(cq.question) == wanted:
                raise DuplicateError("This competency question already exists in the session.")

    def add_cq(
        self,
        session_id: str,
        question: str,
        domain_coverage: str,
        terminology_granularity: str,
        suggested_terms: Optional[Iterable[str]] = None,
        cq_type: Optional[Union[CQType, str]] = None,
        x: float = 0.5,
        y: float = 0.5,
    ) -> CompetencyQuestion:
        self.get_session(session_id)
        question = _required(question, "Question")
        self._check_unique_question(session_id, question)

        cq = CompetencyQuestion(
            question=question,
            domain_coverage=_required(domain_coverage, "Domain coverage"),
            terminology_granularity=_required(terminology_granularity, "Terminology granularity"),
            suggested_terms=list(suggested_terms or []),
            type=cq_type,
            x=x,
            y=y,
            session_id=session_id,
        )
        self._cqs[cq.id] = cq
        return cq

    def add_suggested_cqs(self, session_id: str, domain_coverage: str, terminology_granularity: str,
                          suggestions: Iterable[SuggestedCQ]) -> List[CompetencyQuestion]:
        """Adds provider suggestions to one intersection; duplicates are skipped."""
        added = []
        for suggestion in suggestions:
            try:
                added.append(self.add_cq(
                    session_id, suggestion.question, domain_coverage, terminology_granularity,
                    suggestion.suggested_terms, suggestion.type
                ))
            except DuplicateError:
                logger.info("Skipped duplicate suggestion: %s", suggestion.question)
        return added

    def get_cq(self, cq_id: str) -> CompetencyQuestion:
        cq = self._cqs.get(cq_id)
        if cq is None:
            raise NotFoundError(f"Competency question '{cq_id}' not found.")
        return cq

    def cqs(self, session_id: str, relevant_only: bool = False) -> List[CompetencyQuestion]:
        self.get_session(session_id)
        cqs = self._session_cqs(session_id)
        if relevant_only:
            return [cq for cq in cqs if cq.is_relevant]
        return cqs

    def update_cq(
        self,
        cq_id: str,
        question: Optional[str] = None,
        cq_type: Optional[Union[CQType, str]] = None,
        domain_coverage: Optional[str] = None,
        terminology_granularity: Optional[str] = None,
    ) -> CompetencyQuestion:
        """Changes the given fields. An empty `cq_type` string resets the type to unspecified."""
        cq = self.get_cq(cq_id)
        if question is not None:
            question = _required(question, "Question")
            self._check_unique_question(cq.session_id, question, ignore_id=cq.id)
            cq.question = question
        if cq_type is not None:
            cq.type = cq_type if isinstance(cq_type, CQType) else CQType.parse(cq_type)
        if domain_coverage is not None:
            cq.domain_coverage = _required(domain_coverage, "Domain coverage")
        if terminology_granularity is not None:
            cq.terminology_granularity = _required(terminology_granularity, "Terminology granularity")
        return cq

    def set_cq_relevance(self, cq_id: str, is_relevant: bool) -> CompetencyQuestion:
        cq = self.get_cq(cq_id)
        cq.is_relevant = bool(is_relevant)
        return cq

    def delete_cq(self, cq_id: str) -> CompetencyQuestion:
        cq = self.get_cq(cq_id)
        del self._cqs[cq_id]
        self._deleted_questions.append(DeletedRecord(cq.session_id, cq.question))
        logger.info("Deleted competency question %s.", cq_id)
        return cq

    def deleted_questions(self, session_id: str) -> List[str]:
        return [r.text for r in self._deleted_questions if r.session_id == session_id]

    # ==============================================================================
    # --- Terminology ---
    # ==============================================================================

    def set_terminology(self, cq_id: str, terms: Iterable[str]) -> CompetencyQuestion:
        """Replaces a CQ's terms. Property CQs drop noun-like terms."""
        cq = self.get_cq(cq_id)
        cleaned = list(dict.fromkeys(t.strip() for t in terms if t and t.strip()))
        cq.suggested_terms = validate_property_terminology(cleaned, cq.type)
        return cq

    def add_terminology(self, cq_id: str, terms: Iterable[str]) -> CompetencyQuestion:
        cq = self.get_cq(cq_id)
        return self.set_terminology(cq_id, cq.suggested_terms + list(terms))

    def delete_terminology(self, cq_id: str, term: str) -> CompetencyQuestion:
        cq = self.get_cq(cq_id)
        if term not in cq.suggested_terms:
            raise NotFoundError(f"Term '{term}' is not attached to this question.")
        cq.suggested_terms = [t for t in cq.suggested_terms if t != term]
        self._deleted_terms.append(DeletedRecord(cq.session_id, term))
        return cq

    def deleted_terms(self, session_id: str) -> List[str]:
        return [r.text for r in self._deleted_terms if r.session_id == session_id]

    def terminology_exclusions(self, session_id: str) -> List[str]:
        """Terms in use anywhere in the session plus every deleted term."""
        used = [t for cq in self._session_cqs(session_id) for t in cq.suggested_terms]
        return list(dict.fromkeys(used + self.deleted_terms(session_id)))

    # ==============================================================================
    # --- Suggestion Contexts ---
    # ==============================================================================

    def cq_suggestion_request(self, session_id: str, domain_coverage: str, terminology_granularity: str) -> CQSuggestionRequest:
        session = self.get_session(session_id)
        cqs = self._session_cqs(session_id)
        relevant = [cq for cq in cqs if cq.is_relevant]
        irrelevant = [cq.question for cq in cqs if not cq.is_relevant]
        return CQSuggestionRequest(
            domain=session.domain,
            domain_coverage=domain_coverage,
            terminology_granularity=terminology_granularity,
            existing_questions=[cq.question for cq in relevant],
            existing_terms=list(dict.fromkeys(t for cq in relevant for t in cq.suggested_terms)),
            excluded_questions=irrelevant + self.deleted_questions(session_id),
            intersection_cqs=[
                (cq.type_value, cq.question) for cq in relevant
                if cq.intersection_key == (domain_coverage, terminology_granularity)
            ],
        )

    def axis_value_request(self, session_id: str, dimension: DimensionInput) -> AxisValueRequest:
        """
        Domain suggestions avoid existing and deleted values; granularity
        suggestions only avoid existing levels.
        """
        session = self.get_session(session_id)
        dimension = Dimension(dimension)
        excluded = [v.value for v in self._session_values(session_id, dimension)]
        if dimension == Dimension.DOMAIN_COVERAGE:
            excluded += self.deleted_values(session_id, dimension)
        return AxisValueRequest(
            dimension=dimension,
            domain=session.domain,
            excluded_values=list(dict.fromkeys(excluded)),
            existing_questions=[cq.question for cq in self._session_cqs(session_id) if cq.is_relevant],
        )

    def custom_cq_request(self, session_id: str, question: str, domain_coverage: str, terminology_granularity: str) -> CustomCQRequest:
        base = self.cq_suggestion_request(session_id, domain_coverage, terminology_granularity)
        return CustomCQRequest(
            question=_required(question, "Question"),
            domain=base.domain,
            domain_coverage=domain_coverage,
            terminology_granularity=terminology_granularity,
            existing_questions=base.existing_questions,
            existing_terms=base.existing_terms,
            excluded_questions=base.excluded_questions,
        )

    # ==============================================================================
    # --- Tabular View ---
    # ==============================================================================

    def to_dataframe(self, session_id: str, relevant_only: bool = True) -> pd.DataFrame:
        """One row per CQ, in insertion order."""
        rows = [{
            'ID': cq.id,
            'Question': cq.question,
            'Type': cq.type_value or '',
            'Domain Coverage': cq.domain_coverage,
            'Terminology Granularity': cq.terminology_granularity,
            'Terminology': ", ".join(cq.suggested_terms),
            'Relevant': cq.is_relevant,
            'Created': cq.created_at,
        } for cq in self.cqs(session_id, relevant_only=relevant_only)]

        if not rows:
            return pd.DataFrame(columns=[
                'ID', 'Question', 'Type', 'Domain Coverage', 'Terminology Granularity',
                'Terminology', 'Relevant', 'Created'
            ])
        return pd.DataFrame(rows)
