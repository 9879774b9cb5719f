"""
Enum Definitions Module.

This module contains Enumeration classes for the constant sets of values used
across the layout engine, such as the two axis dimensions, the grammatical
role of a competency question and the zoom-dependent render modes.
"""
from enum import Enum
from typing import Optional

class Dimension(Enum):
    """The two dimensions a CQ is scoped along."""
    DOMAIN_COVERAGE = "domain_coverage"
    TERMINOLOGY_GRANULARITY = "terminology_granularity"

    @classmethod
    def values(cls) -> list[str]:
        """Returns the string values of all enum members."""
        return [item.value for item in cls]

    @property
    def axis(self) -> "Axis":
        return Axis.DOMAIN if self == Dimension.DOMAIN_COVERAGE else Axis.GRANULARITY

    @property
    def axis_label(self) -> str:
        return "X-axis" if self == Dimension.DOMAIN_COVERAGE else "Y-axis"

class Axis(Enum):
    """Axis names reported to click callbacks."""
    DOMAIN = "domain"
    GRANULARITY = "granularity"

    @property
    def dimension(self) -> Dimension:
        return Dimension.DOMAIN_COVERAGE if self == Axis.DOMAIN else Dimension.TERMINOLOGY_GRANULARITY

class CQType(Enum):
    """Grammatical role of a competency question."""
    SUBJECT = "subject"
    PROPERTY = "property"
    OBJECT = "object"

    @classmethod
    def values(cls) -> list[str]:
        """Returns the string values of all enum members."""
        return [item.value for item in cls]

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["CQType"]:
        """Maps a raw string to a member; empty or unknown values mean 'unspecified'."""
        if not raw:
            return None
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None

class RenderMode(Enum):
    """What the content layer draws at a given zoom scale."""
    POINTS = "points"
    COMPACT_LABELS = "compact_labels"
    FULL_LABELS = "full_labels"

    @property
    def shows_labels(self) -> bool:
        return self != RenderMode.POINTS
