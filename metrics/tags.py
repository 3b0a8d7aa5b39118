"""Parsing and caching of ``prom`` field annotations

An annotation is a ``;``-separated list of ``key: value`` pairs, e.g.::

    help: requests served; type: counter; metricName: requests_total; labelName: host

Recognised keys are ``help``, ``type``, ``metricName``, ``labelName`` and
``valuePrecision``. Anything the parser does not understand is skipped
rather than reported, so a partially valid annotation still yields whatever
it can: an unknown ``type`` keeps the gauge default, an invalid name leaves
the matching flag unset, and a missing ``help`` disables the metric.
"""
import re
import threading
from typing import Dict

from .models import MetricType, TagSpec
from logging_config import get_logger


logger = get_logger(__name__)

# Metric and label names
NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]{2,}$')

# Characters that would break the label block of the exposition format
ILLEGAL_LABEL_VALUE_PATTERN = re.compile(r'[{}"\\]+')

PRECISION_PATTERN = re.compile(r'[0-9]+')

# Largest precision an 8-bit signed integer holds
MAX_VALUE_PRECISION = 127

DEFAULT_ILLEGAL_LABEL_VALUE = "illegal"

METRIC_TYPE_MAPPING: Dict[str, MetricType] = {
    "gauge": MetricType.GAUGE,
    "counter": MetricType.COUNTER,
    "histogram": MetricType.HISTOGRAM,
    "summary": MetricType.SUMMARY,
}


def validate_name(name: str) -> bool:
    """Check a metric or label name fragment"""
    return NAME_PATTERN.fullmatch(name) is not None


def tidy_label_value(value: str, illegal: str = DEFAULT_ILLEGAL_LABEL_VALUE) -> str:
    """Replace a label value that cannot be rendered safely with ``illegal``"""
    if ILLEGAL_LABEL_VALUE_PATTERN.search(value):
        return illegal
    return value


def _parse_precision(value: str):
    if not PRECISION_PATTERN.fullmatch(value):
        return None
    precision = int(value)
    if precision > MAX_VALUE_PRECISION:
        return None
    return precision


def parse_tag(raw: str) -> TagSpec:
    """Parse a raw annotation string into a TagSpec (uncached)"""
    help_text = ""
    metric_type = MetricType.GAUGE
    metric_name = ""
    label_name = ""
    value_precision = 0
    is_metric = False
    is_label = False

    for segment in raw.strip().split(";"):
        kv = segment.strip().split(":")
        if len(kv) != 2:
            continue
        key, value = kv[0], kv[1].strip()

        if key == "help":
            help_text = value
        elif key == "type":
            # Unknown types keep the gauge default
            metric_type = METRIC_TYPE_MAPPING.get(value, metric_type)
        elif key == "metricName":
            if validate_name(value):
                metric_name = value
                is_metric = True
        elif key == "labelName":
            if validate_name(value):
                label_name = value
                is_label = True
        elif key == "valuePrecision":
            precision = _parse_precision(value)
            if precision is not None:
                value_precision = precision

    # Undocumented metrics are not emitted
    if not help_text:
        is_metric = False

    return TagSpec(
        help_text=help_text,
        metric_type=metric_type,
        metric_name=metric_name,
        label_name=label_name,
        value_precision=value_precision,
        is_metric=is_metric,
        is_label=is_label,
    )


class TagCache:
    """Thread-safe cache of parsed annotations keyed by the exact raw string

    Entries are never evicted. The set of distinct annotation strings is
    bounded by the record types a program declares, not by traffic.
    """

    def __init__(self):
        self._specs: Dict[str, TagSpec] = {}
        self._lock = threading.Lock()

    def get(self, raw: str) -> TagSpec:
        """Return the cached spec for ``raw``, parsing it on first use"""
        spec = self._specs.get(raw)
        if spec is not None:
            return spec

        with self._lock:
            spec = self._specs.get(raw)
            if spec is None:
                spec = parse_tag(raw)
                self._specs[raw] = spec
                logger.debug(
                    "Parsed prom tag",
                    tag=raw,
                    is_metric=spec.is_metric,
                    is_label=spec.is_label,
                    event_type="tag_parsed"
                )
        return spec

    def clear(self) -> None:
        with self._lock:
            self._specs.clear()

    def __contains__(self, raw: str) -> bool:
        return raw in self._specs

    def __len__(self) -> int:
        return len(self._specs)


default_tag_cache = TagCache()
