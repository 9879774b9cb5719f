"""
Domain Models for Competency Question Scoping.
Encapsulates sessions, axis values, competency questions and the derived
intersections that the layout engine groups them into.
"""
from dataclasses import dataclass, field
from datetime import datetime
import uuid
from typing import Dict, List, Optional, Tuple

from ontoscope.enums import Dimension, CQType

IntersectionKey = Tuple[str, str]


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class CQSession:
    domain: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class AxisValue:
    """
    One category value on an axis. Band order is the order in which values
    appear in the list handed to the layout engine.
    """
    dimension: Dimension
    value: str
    session_id: Optional[str] = None
    is_relevant: bool = True
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if isinstance(self.dimension, str):
            self.dimension = Dimension(self.dimension)


@dataclass
class CompetencyQuestion:
    """
    A natural-language question scoped to one (domain coverage, granularity) pair.
    The pair holds axis *values*, not axis value ids.
    """
    question: str
    domain_coverage: str
    terminology_granularity: str
    suggested_terms: List[str] = field(default_factory=list)
    type: Optional[CQType] = None
    is_relevant: bool = True
    # Legacy normalized hints; computed positions are authoritative.
    x: float = 0.5
    y: float = 0.5
    session_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not isinstance(self.type, CQType):
            self.type = CQType.parse(self.type)
        self.suggested_terms = list(self.suggested_terms or [])

    @property
    def intersection_key(self) -> IntersectionKey:
        return (self.domain_coverage, self.terminology_granularity)

    @property
    def type_value(self) -> Optional[str]:
        return self.type.value if self.type else None


@dataclass
class DeletedRecord:
    """Log entry for a deleted axis value, terminology or CQ text."""
    session_id: str
    text: str
    dimension: Optional[Dimension] = None
    deleted_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=new_id)


def group_by_intersection(cqs: List[CompetencyQuestion]) -> Dict[IntersectionKey, List[CompetencyQuestion]]:
    """
    Groups relevant CQs by (domain coverage, granularity), preserving input order
    inside every group. Irrelevant CQs are skipped.
    """
    groups: Dict[IntersectionKey, List[CompetencyQuestion]] = {}
    for cq in cqs:
        if not cq.is_relevant:
            continue
        groups.setdefault(cq.intersection_key, []).append(cq)
    return groups
