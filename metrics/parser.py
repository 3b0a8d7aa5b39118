"""Extraction of Prometheus samples from annotated records

A record is a dataclass or pydantic model that also implements the
``Metricer`` naming contract. Each field carries a ``prom`` annotation
(see ``metrics.tags``) saying whether it is a metric, a label, or both::

    @dataclass
    class RequestStats(Metricer):
        host: str = prom_field("labelName: host")
        served: int = prom_field("help: requests served; type: counter; metricName: served_total")

        def get_metric_name_prefix(self): return "http"
        def get_metric_name_suffix(self): return ""
        def get_metric_name_separator(self): return "_"

Every label field is attached to every metric of the same record, except
that a field which is both a metric and a label never labels its own sample.
"""
import abc
import dataclasses
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel

from .errors import NotARecordError, ValueCoercionError
from .models import Sample
from .tags import DEFAULT_ILLEGAL_LABEL_VALUE, TagCache, default_tag_cache, tidy_label_value
from logging_config import get_logger


logger = get_logger(__name__)

# Metadata key holding the annotation of a record field
PROM_TAG_KEY = "prom"

TRUE_LITERALS = {"1", "t", "T", "TRUE", "true", "True"}
FALSE_LITERALS = {"0", "f", "F", "FALSE", "false", "False"}


class Metricer(abc.ABC):
    """Naming contract for records that can be parsed into samples"""

    @abc.abstractmethod
    def get_metric_name_prefix(self) -> str:
        """Prefix joined in front of every field's metric name"""

    @abc.abstractmethod
    def get_metric_name_suffix(self) -> str:
        """Suffix joined after every field's metric name"""

    @abc.abstractmethod
    def get_metric_name_separator(self) -> str:
        """Separator placed between prefix, field metric name and suffix"""


def prom_field(tag: str, **kwargs) -> Any:
    """``dataclasses.field`` carrying a ``prom`` annotation"""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[PROM_TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def _record_fields(record) -> List[Tuple[str, Any, str]]:
    """(name, value, raw annotation) for every field in declaration order"""
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return [
            (f.name, getattr(record, f.name), f.metadata.get(PROM_TAG_KEY, ""))
            for f in dataclasses.fields(record)
        ]

    if isinstance(record, BaseModel):
        fields = []
        for name, info in type(record).model_fields.items():
            extra = info.json_schema_extra
            raw = extra.get(PROM_TAG_KEY, "") if isinstance(extra, dict) else ""
            fields.append((name, getattr(record, name), raw))
        return fields

    raise NotARecordError(
        f"Cannot parse {type(record).__name__}: record must be a dataclass instance or a pydantic model"
    )


def _check_naming_contract(record) -> None:
    for method in ("get_metric_name_prefix", "get_metric_name_suffix", "get_metric_name_separator"):
        if not callable(getattr(record, method, None)):
            raise NotARecordError(
                f"Cannot parse {type(record).__name__}: record does not implement {method}()"
            )


def _parse_float(text: str) -> Optional[float]:
    # Reject forms float() tolerates but a plain number literal would not
    if text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def coerce_value(text: str) -> Optional[float]:
    """Read a stringified field value as a float, then as a boolean literal"""
    value = _parse_float(text)
    if value is not None:
        return value
    if text in TRUE_LITERALS:
        return 1.0
    if text in FALSE_LITERALS:
        return 0.0
    return None


class MetricParser:
    """Turns annotated records into samples using an owned annotation cache"""

    def __init__(self, config=None, cache: Optional[TagCache] = None):
        self.config = config
        self.cache = cache if cache is not None else TagCache()
        self.illegal_label_value = config.illegal_label_value if config else DEFAULT_ILLEGAL_LABEL_VALUE
        self.external_labels: Dict[str, str] = dict(config.external_labels) if config else {}

    def parse(self, record, *external_labels: Optional[Dict[str, str]]) -> List[Sample]:
        """Parse ``record`` into samples, in field declaration order

        Labels are merged into every sample in this order, later sources
        overwriting earlier ones: configured external labels, then each of
        ``external_labels``, then the record's own label fields.

        Raises NotARecordError if ``record`` is not a dataclass or pydantic
        model implementing the naming contract, and ValueCoercionError on the
        first metric field whose value is neither a float nor a boolean.
        """
        if record is None:
            return []

        fields = _record_fields(record)
        _check_naming_contract(record)

        prefix = record.get_metric_name_prefix()
        suffix = record.get_metric_name_suffix()
        separator = record.get_metric_name_separator()

        samples: List[Sample] = []
        labels: Dict[str, str] = {}
        exclude_labels: Dict[str, str] = {}

        for field_name, field_value, raw_tag in fields:
            spec = self.cache.get(raw_tag)
            if not (spec.is_label or spec.is_metric):
                continue

            text = str(field_value)

            if spec.is_label:
                labels[spec.label_name] = tidy_label_value(text, self.illegal_label_value)

            if spec.is_metric:
                metric_name = separator.join([prefix, spec.metric_name, suffix])
                value = coerce_value(text)
                if value is None:
                    error = ValueCoercionError(field_name, text)
                    logger.error(
                        "Metric field coercion failed",
                        record_type=type(record).__name__,
                        field=field_name,
                        value=text,
                        event_type="coercion_error"
                    )
                    raise error

                samples.append(Sample(
                    name=metric_name,
                    value=value,
                    help_text=spec.help_text,
                    metric_type=spec.metric_type,
                    value_precision=spec.value_precision,
                ))

                # A field never labels the sample it produced itself
                if spec.is_label:
                    exclude_labels[metric_name] = spec.label_name

        for sample in samples:
            sample.add_labels(self.external_labels, *external_labels, labels)
            excluded = exclude_labels.get(sample.name)
            if excluded is not None:
                sample.delete_labels([excluded])

        logger.debug(
            "Parsed record",
            record_type=type(record).__name__,
            samples_count=len(samples),
            event_type="record_parsed"
        )
        return samples


default_parser = MetricParser(cache=default_tag_cache)


def parse(record, *external_labels: Optional[Dict[str, str]]) -> List[Sample]:
    """Parse ``record`` with the process-wide default parser"""
    return default_parser.parse(record, *external_labels)
