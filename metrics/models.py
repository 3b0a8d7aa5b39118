"""Metric data models"""
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional
from enum import Enum

from utils.labels import format_labels


class MetricType(Enum):
    """Prometheus metric types"""
    GAUGE = "gauge"
    COUNTER = "counter"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"


@dataclass(frozen=True)
class TagSpec:
    """Parsed form of a field's ``prom`` annotation"""
    help_text: str = ""
    metric_type: MetricType = MetricType.GAUGE
    metric_name: str = ""
    label_name: str = ""
    value_precision: int = 0
    is_metric: bool = False
    is_label: bool = False


@dataclass
class Sample:
    """A single observation ready for exposition"""
    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    help_text: str = ""
    metric_type: MetricType = MetricType.GAUGE
    value_precision: int = 0

    def __post_init__(self):
        # Ensure labels is never None
        if self.labels is None:
            self.labels = {}

    def add_labels(self, *labels: Optional[Dict[str, str]]) -> None:
        """Merge label maps in order, later maps overwrite earlier keys"""
        for label_map in labels:
            if not label_map:
                continue
            self.labels.update(label_map)

    def delete_labels(self, names: Iterable[str]) -> None:
        for name in names:
            self.labels.pop(name, None)

    def format_value(self) -> str:
        """Fixed-point value with ``value_precision`` fractional digits"""
        if math.isnan(self.value):
            return "NaN"
        if math.isinf(self.value):
            return "+Inf" if self.value > 0 else "-Inf"
        return f"{self.value:.{self.value_precision}f}"

    def to_prometheus_line(self) -> str:
        """Convert to Prometheus exposition format"""
        return f"{self.name}{format_labels(self.labels)} {self.format_value()}"
