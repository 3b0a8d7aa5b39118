"""Annotation-driven Prometheus sample extraction and exposition"""
from .models import MetricType, Sample, TagSpec
from .errors import PromError, NotARecordError, ValueCoercionError
from .tags import TagCache, parse_tag
from .parser import Metricer, MetricParser, parse, prom_field
from .exporter import Exporter

__all__ = [
    'MetricType',
    'Sample',
    'TagSpec',
    'PromError',
    'NotARecordError',
    'ValueCoercionError',
    'TagCache',
    'parse_tag',
    'Metricer',
    'MetricParser',
    'parse',
    'prom_field',
    'Exporter'
]
