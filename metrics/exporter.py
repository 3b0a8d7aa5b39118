"""Prometheus exposition of grouped samples"""
from pathlib import Path
from typing import Dict, List, Optional, Union

from .models import Sample
from logging_config import get_logger, log_error, log_export


logger = get_logger(__name__)

# Per-metric capacity hint used when the estimate rounds down to nothing
DEFAULT_SAMPLE_COUNT = 8


class Exporter:
    """Collects samples grouped by metric name and renders them as text

    Every sample of a group is expected to share help text and metric type;
    the first sample of a group supplies both when rendering. Instances are
    not synchronized, callers sharing one across threads must lock around it.
    """

    def __init__(self, expected_metric_count: int = 1, expected_total_samples: int = 0):
        if expected_metric_count < 1:
            raise ValueError("expected_metric_count must be at least 1")

        # Capacity hints only, rendered output never depends on them
        self.metric_count = expected_metric_count
        self.sample_count = expected_total_samples // expected_metric_count
        if self.sample_count < 1:
            self.sample_count = DEFAULT_SAMPLE_COUNT

        self.metrics: Dict[str, List[Sample]] = {}

    @classmethod
    def from_config(cls, config) -> "Exporter":
        return cls(config.expected_metric_count, config.expected_total_samples)

    def add_samples(self, *samples: Sample) -> None:
        """Append samples to the group of their metric name"""
        for sample in samples:
            group = self.metrics.get(sample.name)
            if group is None:
                group = self.metrics[sample.name] = []
            group.append(sample)

    def merge(self, *others: "Exporter") -> None:
        """Add every sample of ``others`` to this exporter, leaving their groups untouched

        The groups of ``others`` are not changed, but the Sample objects are
        shared rather than copied: mutating a merged sample, e.g. with
        ``add_labels``, is visible through both exporters.
        """
        for other in others:
            for samples in list(other.metrics.values()):
                self.add_samples(*samples)

    def metric_names(self) -> List[str]:
        return list(self.metrics.keys())

    def samples(self, name: str) -> List[Sample]:
        return list(self.metrics.get(name, []))

    def __len__(self) -> int:
        return sum(len(samples) for samples in self.metrics.values())

    def render(self) -> str:
        """Generate Prometheus exposition format output"""
        lines = []

        for metric_name, samples in self.metrics.items():
            if not samples:
                continue

            # HELP and TYPE come from the first sample of the group
            lines.append(f"# HELP {metric_name} {samples[0].help_text}")
            lines.append(f"# TYPE {metric_name} {samples[0].metric_type.value}")

            for sample in samples:
                lines.append(sample.to_prometheus_line())

        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()

    def write_metrics_file(self, path: Optional[Union[str, Path]] = None, config=None) -> Path:
        """Write the rendered output atomically, for a textfile collector

        ``path`` defaults to ``config.prometheus_file``.
        """
        if path is None and config is not None:
            path = config.prometheus_file
        if path is None:
            raise ValueError("No metrics file path given and none configured")

        metrics_file = Path(path)
        metrics_file.parent.mkdir(parents=True, exist_ok=True)
        content = self.render()

        # Write atomically using temporary file
        temp_file = metrics_file.with_suffix(metrics_file.suffix + '.tmp')
        try:
            temp_file.write_text(content, encoding='utf-8')
            temp_file.replace(metrics_file)
        except OSError as e:
            log_error(logger, e, {"component": "exporter", "path": str(metrics_file)})
            raise

        log_export(logger, len(self.metrics), len(self), metrics_file)
        return metrics_file
