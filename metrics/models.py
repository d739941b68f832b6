"""Exposition data models"""
from dataclasses import dataclass
from typing import Optional, Tuple
from enum import Enum

from .errors import ValidationError


METRIC_NAME_LABEL = "__name__"
UNKNOWN_COUNTRY = "unknown"


class MetadataKind(Enum):
    """Metadata comment kinds carried through the relay"""
    TYPE = "TYPE"
    HELP = "HELP"


@dataclass(frozen=True)
class Label:
    """Single label name/value pair"""
    name: str
    value: str


@dataclass(frozen=True)
class MetadataEntry:
    """A TYPE or HELP line, reproduced verbatim on output"""
    kind: MetadataKind
    metric_name: str
    text: str


@dataclass(frozen=True)
class Sample:
    """One series observation.

    ``labels`` includes the ``__name__`` pseudo-label holding the metric name.
    The timestamp is passed through untouched.
    """
    labels: Tuple[Label, ...]
    value: float
    timestamp: Optional[int] = None

    @property
    def name(self) -> str:
        """Metric name taken from the __name__ label"""
        for label in self.labels:
            if label.name == METRIC_NAME_LABEL:
                return label.value
        return ""

    def with_labels(self, labels: Tuple[Label, ...]) -> "Sample":
        """Copy of this sample with a replaced label set"""
        return Sample(labels=tuple(labels), value=self.value, timestamp=self.timestamp)


@dataclass(frozen=True)
class EnrichmentContext:
    """Per-request identity attached to every sample"""
    cluster_id: str
    source_ip: Optional[str] = None
    country_code: Optional[str] = None

    def __post_init__(self):
        if not self.cluster_id:
            raise ValidationError("cluster identifier is required")
