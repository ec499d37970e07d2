"""Unit tests for the metrics sink."""

from fwb.core.metrics import MetricsSink


class TestMetricsSink:
    """Tests for MetricsSink."""

    def test_gauge_and_counter(self):
        """Values are stored per label set."""
        sink = MetricsSink()
        sink.set_gauge("fwb_table_entries", 3, {"family": "inet"})
        sink.set_gauge("fwb_table_entries", 1, {"family": "inet6"})
        sink.set_counter("fwb_decisions_total", 7, {"action": "add"})

        assert sink.get("fwb_table_entries", {"family": "inet"}) == 3
        assert sink.get("fwb_table_entries", {"family": "inet6"}) == 1
        assert sink.get("fwb_decisions_total", {"action": "add"}) == 7
        assert sink.get("fwb_table_entries") is None

    def test_prometheus_text(self):
        """Rendering includes HELP, TYPE and labelled samples."""
        sink = MetricsSink()
        sink.set_gauge("fwb_table_entries", 2, {"table": "bans", "family": "inet"})

        text = sink.as_prometheus()

        assert "# HELP fwb_table_entries" in text
        assert "# TYPE fwb_table_entries gauge" in text
        assert 'fwb_table_entries{family="inet",table="bans"} 2' in text

    def test_empty(self):
        """An empty sink renders nothing."""
        assert MetricsSink().as_prometheus() == ""
