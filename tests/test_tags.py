"""Tests for prom annotation parsing and caching"""
import threading

from metrics.models import MetricType, TagSpec
from metrics.tags import TagCache, parse_tag, tidy_label_value, validate_name


class TestParseTag:
    """Test parsing of raw annotation strings"""

    def test_full_annotation(self):
        """Test every recognised key"""
        spec = parse_tag("help: requests served; type: counter; metricName: served_total; labelName: host; valuePrecision: 3")

        assert spec == TagSpec(
            help_text="requests served",
            metric_type=MetricType.COUNTER,
            metric_name="served_total",
            label_name="host",
            value_precision=3,
            is_metric=True,
            is_label=True,
        )

    def test_defaults(self):
        """Test defaults for an annotation with only help and name"""
        spec = parse_tag("help: queue depth; metricName: queue_depth")

        assert spec.is_metric is True
        assert spec.is_label is False
        assert spec.metric_type == MetricType.GAUGE
        assert spec.value_precision == 0

    def test_missing_help_disables_metric(self):
        """Test a metric without help text is never emitted"""
        for raw in [
            "metricName: queue_depth",
            "type: counter; metricName: queue_depth; labelName: queue",
            "help: ; metricName: queue_depth",
        ]:
            spec = parse_tag(raw)
            assert spec.is_metric is False
            assert spec.metric_name == "queue_depth"

    def test_missing_help_keeps_label(self):
        """Test help is not needed for a label"""
        spec = parse_tag("labelName: host")

        assert spec.is_label is True
        assert spec.label_name == "host"

    def test_invalid_names_are_dropped(self):
        """Test names that fail validation leave the flags unset"""
        for name in ["x", "with space", "dotted.name", "semi!", "ünïcode"]:
            spec = parse_tag(f"help: some help; metricName: {name}; labelName: {name}")
            assert spec.is_metric is False
            assert spec.is_label is False
            assert spec.metric_name == ""
            assert spec.label_name == ""

    def test_metric_types(self):
        """Test all metric types are recognised"""
        assert parse_tag("type: gauge").metric_type == MetricType.GAUGE
        assert parse_tag("type: counter").metric_type == MetricType.COUNTER
        assert parse_tag("type: histogram").metric_type == MetricType.HISTOGRAM
        assert parse_tag("type: summary").metric_type == MetricType.SUMMARY

    def test_unknown_type_keeps_current(self):
        """Test an unknown type does not reset an earlier valid one"""
        assert parse_tag("type: timer").metric_type == MetricType.GAUGE
        assert parse_tag("type: counter; type: Counter").metric_type == MetricType.COUNTER

    def test_malformed_segments_are_skipped(self):
        """Test segments without exactly one ':' are ignored"""
        spec = parse_tag("help: latency: p99; metricName: latency; garbage; labelName: a:b:c")

        assert spec.help_text == ""
        assert spec.is_metric is False
        assert spec.is_label is False

    def test_unknown_keys_are_ignored(self):
        """Test unrecognised keys do not affect the result"""
        spec = parse_tag("unit: bytes; help: used; metricName: used_bytes")

        assert spec.is_metric is True
        assert spec.help_text == "used"

    def test_keys_are_case_sensitive(self):
        """Test keys must match exactly"""
        spec = parse_tag("Help: used; metricname: used_bytes")

        assert spec.help_text == ""
        assert spec.metric_name == ""

    def test_invalid_precision_is_ignored(self):
        """Test only non-negative integers set the precision"""
        assert parse_tag("valuePrecision: 2").value_precision == 2
        assert parse_tag("valuePrecision: -1").value_precision == 0
        assert parse_tag("valuePrecision: two").value_precision == 0
        assert parse_tag("valuePrecision: 1.5").value_precision == 0
        assert parse_tag("valuePrecision: 127").value_precision == 127
        assert parse_tag("valuePrecision: 128").value_precision == 0
        assert parse_tag("valuePrecision: 9999999999").value_precision == 0

    def test_empty_annotation(self):
        """Test an empty annotation marks nothing"""
        spec = parse_tag("")

        assert spec == TagSpec()

    def test_surrounding_whitespace(self):
        """Test whitespace around segments and values is tolerated"""
        spec = parse_tag("  help:   used  ;   metricName:used_bytes  ; ")

        assert spec.help_text == "used"
        assert spec.metric_name == "used_bytes"
        assert spec.is_metric is True


class TestValidation:
    """Test name validation and label value tidying"""

    def test_validate_name(self):
        """Test the metric and label name rule"""
        assert validate_name("ok") is True
        assert validate_name("with-dash_and_9") is True
        assert validate_name("a") is False
        assert validate_name("") is False
        assert validate_name("a b") is False
        assert validate_name("ab\n") is False

    def test_tidy_label_value(self):
        """Test unsafe label values are replaced whole"""
        assert tidy_label_value("web-01") == "web-01"
        for value in ["{x", "x}", 'say "hi"', "C:\\path"]:
            assert tidy_label_value(value) == "illegal"

    def test_tidy_label_value_custom_sentinel(self):
        """Test a custom replacement value"""
        assert tidy_label_value("{}", illegal="redacted") == "redacted"


class TestTagCache:
    """Test annotation caching"""

    def setup_method(self):
        """Setup test fixtures"""
        self.cache = TagCache()

    def test_cache_hit_returns_same_spec(self):
        """Test repeated lookups reuse the parsed spec"""
        raw = "help: used; metricName: used_bytes"

        first = self.cache.get(raw)
        second = self.cache.get(raw)

        assert first is second
        assert first == parse_tag(raw)
        assert len(self.cache) == 1
        assert raw in self.cache

    def test_cache_key_is_exact(self):
        """Test raw strings differing only in whitespace are cached separately"""
        first = self.cache.get("help: used; metricName: used_bytes")
        second = self.cache.get("help: used;metricName: used_bytes")

        assert first == second
        assert len(self.cache) == 2

    def test_clear(self):
        """Test clearing the cache"""
        self.cache.get("labelName: host")
        self.cache.clear()

        assert len(self.cache) == 0

    def test_concurrent_access(self):
        """Test concurrent lookups of the same annotation store one entry"""
        raw = "help: used; metricName: used_bytes"
        results = []

        def worker():
            for _ in range(100):
                results.append(self.cache.get(raw))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(self.cache) == 1
        assert all(result is results[0] for result in results)
