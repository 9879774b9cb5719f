"""
Suggestion Provider Module.

The layout engine never talks to an LLM. Suggestions for axis values, CQs and
terminology come from a `SuggestionProvider`, a strategy object that takes a
request payload and either returns a result or raises `SuggestionError`. The
bundled `SampleSuggestionProvider` is offline and deterministic; it backs the
demo app and the tests.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import re
from typing import TYPE_CHECKING, List, Optional, Tuple

from ontoscope.config import DEFAULT_GRANULARITY_LEVELS, TERMINOLOGY_TARGET, TERMINOLOGY_MAX_ATTEMPTS
from ontoscope.enums import CQType, Dimension
from ontoscope.errors import SuggestionError

if TYPE_CHECKING:
    from ontoscope.store import CQStore

logger = logging.getLogger(__name__)

# --- Request / Result Payloads ---

@dataclass
class SuggestedCQ:
    question: str
    suggested_terms: List[str] = field(default_factory=list)
    type: Optional[CQType] = None


@dataclass
class InitialSpace:
    domain_values: List[str]
    granularity_values: List[str]


@dataclass
class CQSuggestionRequest:
    domain: str
    domain_coverage: str
    terminology_granularity: str
    existing_questions: List[str] = field(default_factory=list)
    existing_terms: List[str] = field(default_factory=list)
    excluded_questions: List[str] = field(default_factory=list)
    intersection_cqs: List[Tuple[Optional[str], str]] = field(default_factory=list)


@dataclass
class AxisValueRequest:
    dimension: Dimension
    domain: str
    excluded_values: List[str] = field(default_factory=list)
    existing_questions: List[str] = field(default_factory=list)


@dataclass
class TerminologyRequest:
    domain: str
    question: str
    cq_type: CQType
    domain_coverage: str
    terminology_granularity: str
    excluded_terms: List[str] = field(default_factory=list)


@dataclass
class CustomCQRequest:
    question: str
    domain: str
    domain_coverage: str
    terminology_granularity: str
    existing_questions: List[str] = field(default_factory=list)
    existing_terms: List[str] = field(default_factory=list)
    excluded_questions: List[str] = field(default_factory=list)


# --- Property Terminology Validation ---

FORBIDDEN_PROPERTY_NOUNS = [
    'teacher', 'manager', 'enrollment', 'leadership', 'relationship',
    'connection', 'administration', 'supervision', 'membership', 'ownership',
    'association', 'participation', 'instruction', 'education', 'governance',
    'management', 'service', 'system', 'process', 'structure', 'organization',
    'department', 'division', 'unit', 'team', 'group', 'office', 'facility'
]
NOUN_ENDINGS = re.compile(r"\b\w+(tion|sion|ment|ness|ship|ity|ence|ance|ing|er|or|ist|ian)$", re.IGNORECASE)


def validate_property_terminology(terms: List[str], cq_type: Optional[CQType]) -> List[str]:
    """
    Property CQs should be named by relations, not nouns. Drops noun-like terms
    for property CQs; every other type passes through untouched.
    """
    if cq_type != CQType.PROPERTY:
        return list(terms)

    kept = []
    for term in terms:
        trimmed = term.strip().lower()
        if any(noun in trimmed for noun in FORBIDDEN_PROPERTY_NOUNS):
            continue
        if NOUN_ENDINGS.search(trimmed):
            continue
        kept.append(term)
    return kept


def normalize_text(text: str) -> str:
    return text.strip().lower()


# --- Provider Strategy ---

class SuggestionProvider(ABC):
    """
    Abstract Base Class for a suggestion source.
    Implementations raise SuggestionError when they cannot produce a result.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The display name of the provider."""
        pass

    @abstractmethod
    def initial_space(self, domain: str) -> InitialSpace:
        pass

    @abstractmethod
    def suggest_cqs(self, request: CQSuggestionRequest) -> List[SuggestedCQ]:
        pass

    @abstractmethod
    def suggest_axis_values(self, request: AxisValueRequest) -> List[str]:
        pass

    @abstractmethod
    def suggest_terminology(self, request: TerminologyRequest) -> List[str]:
        pass

    @abstractmethod
    def analyze_custom_cq(self, request: CustomCQRequest) -> SuggestedCQ:
        pass


STOPWORDS = {
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'can', 'do', 'does', 'for', 'from',
    'has', 'have', 'how', 'in', 'is', 'it', 'its', 'of', 'on', 'or', 'the', 'their',
    'to', 'what', 'when', 'where', 'which', 'who', 'whom', 'why', 'with',
}

KNOWN_SUBDOMAINS = {
    'healthcare informatics': ["Clinical", "Devices", "Records"],
    'education': ["Courses", "Students", "Assessment"],
    'transportation': ["Vehicles", "Routes", "Schedules"],
}

ORDINALS = [
    "First", "Second", "Third", "Fourth", "Fifth", "Sixth", "Seventh", "Eighth", "Ninth", "Tenth"
]

CQ_TEMPLATES = [
    (CQType.SUBJECT, "What kinds of {topic} exist in {area}?"),
    (CQType.PROPERTY, "Which attributes describe {topic} in {area}?"),
    (CQType.OBJECT, "What is {topic} related to within {area}?"),
    (CQType.SUBJECT, "Who is responsible for {topic} in {area}?"),
    (CQType.PROPERTY, "How is {topic} measured in {area}?"),
    (CQType.OBJECT, "Which resources support {topic} in {area}?"),
]


def _readable(term: str) -> str:
    """Only the first character capitalised."""
    term = term.strip()
    return term[:1].upper() + term[1:].lower() if term else term


def _keywords(text: str) -> List[str]:
    words = re.findall(r"[A-Za-z][A-Za-z\-]+", text)
    return list(dict.fromkeys(w.lower() for w in words if w.lower() not in STOPWORDS))


class SampleSuggestionProvider(SuggestionProvider):
    """Offline provider built from templates; same request, same answer."""

    @property
    def name(self) -> str:
        return "Sample Suggestions"

    def initial_space(self, domain: str) -> InitialSpace:
        if not domain or not domain.strip():
            raise SuggestionError("A domain is required to generate the initial space.")
        subdomains = KNOWN_SUBDOMAINS.get(normalize_text(domain))
        if subdomains is None:
            subdomains = ["Core concepts", "Processes", "Resources"]
        return InitialSpace(list(subdomains), list(DEFAULT_GRANULARITY_LEVELS))

    def suggest_cqs(self, request: CQSuggestionRequest) -> List[SuggestedCQ]:
        taken = {normalize_text(q) for q in request.existing_questions + request.excluded_questions}
        taken.update(normalize_text(q) for _, q in request.intersection_cqs)
        topic = request.domain_coverage.lower()
        area = f"{request.domain} ({request.terminology_granularity.lower()})"

        suggestions = []
        for cq_type, template in CQ_TEMPLATES:
            question = template.format(topic=topic, area=area)
            if normalize_text(question) in taken:
                continue
            terms = validate_property_terminology(
                [_readable(w) for w in _keywords(question) if w not in topic.split()][:2] or [_readable(topic)],
                cq_type
            )
            suggestions.append(SuggestedCQ(question, terms, cq_type))
            if len(suggestions) == 3:
                break
        return suggestions

    def suggest_axis_values(self, request: AxisValueRequest) -> List[str]:
        excluded = {normalize_text(v) for v in request.excluded_values}

        if request.dimension == Dimension.TERMINOLOGY_GRANULARITY:
            # Next level below the deepest existing one.
            for ordinal in ORDINALS[len(request.excluded_values):]:
                candidate = f"{ordinal}-level"
                if normalize_text(candidate) not in excluded:
                    return [candidate]
            return []

        candidates = [_readable(w) for q in request.existing_questions for w in _keywords(q)]
        candidates += [f"{_readable(request.domain)} {suffix}" for suffix in ("standards", "stakeholders", "operations", "outcomes")]
        values = []
        for candidate in dict.fromkeys(candidates):
            if normalize_text(candidate) not in excluded:
                values.append(candidate)
            if len(values) == 3:
                break
        return values

    def suggest_terminology(self, request: TerminologyRequest) -> List[str]:
        excluded = {normalize_text(t) for t in request.excluded_terms}
        candidates = _keywords(request.question) + _keywords(request.domain_coverage)
        terms = [_readable(c) for c in candidates if c not in excluded]
        return terms[:TERMINOLOGY_TARGET]

    def analyze_custom_cq(self, request: CustomCQRequest) -> SuggestedCQ:
        question = request.question.strip()
        if not question:
            raise SuggestionError("The question is empty.")
        lowered = question.lower()
        if lowered.startswith(("who", "what kind", "what type")):
            cq_type = CQType.SUBJECT
        elif any(marker in lowered for marker in (" has ", " have ", " of ", "attribute", "measured")):
            cq_type = CQType.PROPERTY
        else:
            cq_type = CQType.OBJECT

        used = {normalize_text(t) for t in request.existing_terms}
        terms = [_readable(w) for w in _keywords(question) if w not in used][:3]
        return SuggestedCQ(question, validate_property_terminology(terms, cq_type), cq_type)


def collect_unique_terminology(
    provider: SuggestionProvider,
    store: "CQStore",
    cq_id: str,
    target: int = TERMINOLOGY_TARGET,
    max_attempts: int = TERMINOLOGY_MAX_ATTEMPTS,
) -> List[str]:
    """
    Asks the provider repeatedly until `target` terms are found that no CQ in the
    session uses and that were never deleted, or `max_attempts` calls are spent.
    Every raw suggestion, accepted or not, is excluded from later attempts.
    """
    cq = store.get_cq(cq_id)
    session = store.get_session(cq.session_id)
    attempted = store.terminology_exclusions(cq.session_id)
    cq_type = cq.type or CQType.SUBJECT

    unique: List[str] = []
    attempt = 1
    while len(unique) < target and attempt <= max_attempts:
        raw = provider.suggest_terminology(TerminologyRequest(
            domain=session.domain,
            question=cq.question,
            cq_type=cq_type,
            domain_coverage=cq.domain_coverage,
            terminology_granularity=cq.terminology_granularity,
            excluded_terms=list(attempted),
        ))
        seen = {normalize_text(t) for t in attempted} | {normalize_text(t) for t in unique}
        fresh = [t for t in raw if normalize_text(t) not in seen]
        fresh = validate_property_terminology(fresh, cq_type)

        added = fresh[:target - len(unique)]
        unique.extend(added)
        attempted.extend(raw)
        logger.info(
            "Terminology attempt %d/%d: %d raw, %d unique, %d added (%d/%d).",
            attempt, max_attempts, len(raw), len(fresh), len(added), len(unique), target
        )
        attempt += 1

    return unique[:target]
