"""
Tests for load_test/summary.py: results object, text block and outputs.
"""
import io
import json

from load_test import config
from load_test.metrics import ERRORS, HOMEPAGE_LOAD_TIME, ITERATIONS, MetricsStore
from load_test.summary import (
    build_summary_data,
    handle_summary,
    http_metrics,
    text_summary,
    write_outputs,
)
from tests.conftest import FakeStatsEntry


def populated_store():
    store = MetricsStore()
    for failed in (False, False, False, True):
        store.add(ERRORS, failed)
    store.add(HOMEPAGE_LOAD_TIME, 300.0)
    store.add(ITERATIONS, 1)
    store.add(ITERATIONS, 1)
    store.check("homepage status is 200", True)
    return store


class TestBuildSummaryData:
    def test_http_metrics(self):
        metrics = http_metrics(FakeStatsEntry(), duration_s=10)

        assert metrics["http_reqs"]["values"] == {"count": 1000, "rate": 100.0}
        assert metrics["http_req_failed"]["values"] == {"rate": 0.005, "passes": 5, "fails": 995}
        assert metrics["http_req_duration"]["values"]["p(95)"] == 800
        assert metrics["http_req_duration"]["values"]["p(99)"] == 1500

    def test_no_requests(self):
        entry = FakeStatsEntry(num_requests=0, num_failures=0, avg=0, percentiles={0.90: 0, 0.95: 0, 0.99: 0})
        entry.min_response_time = None
        metrics = http_metrics(entry, duration_s=0)
        assert metrics["http_req_failed"]["values"]["rate"] == 0.0
        assert metrics["http_req_duration"]["values"]["min"] == 0

    def test_layout(self):
        data = build_summary_data(FakeStatsEntry(), populated_store(), duration_ms=330_000, peak_users=100)

        assert data["state"] == {"testRunDurationMs": 330_000}
        assert data["metrics"]["vus"]["values"] == {"max": 100}
        assert data["metrics"]["vus_max"]["values"] == {"max": 100}
        assert data["metrics"]["iterations"]["values"]["count"] == 2
        assert data["metrics"][ERRORS]["values"]["rate"] == 0.25
        assert data["root_group"]["checks"] == [
            {"name": "homepage status is 200", "passes": 1, "fails": 0}
        ]

    def test_json_serialisable(self):
        data = build_summary_data(FakeStatsEntry(), populated_store(), duration_ms=1000, peak_users=3, max_users=10)
        assert json.loads(json.dumps(data))["metrics"]["vus_max"]["values"]["max"] == 10


class TestTextSummary:
    def test_plain_text(self):
        data = build_summary_data(FakeStatsEntry(), populated_store(), duration_ms=330_000, peak_users=100)
        text = text_summary(data, indent=" ")

        assert "Test Summary" in text
        assert " Duration: 330000ms\n" in text
        assert " VUs: 100\n" in text
        assert " Iterations: 2\n" in text
        assert "   Requests: 1000\n" in text
        assert "   Failed: 0.50%\n" in text
        assert "   Duration (avg): 250.00ms\n" in text
        assert "   Duration (p95): 800.00ms\n" in text
        assert "   Duration (p99): 1500.00ms\n" in text
        assert " Error Rate: 25.00%\n" in text
        assert "\x1b[" not in text

    def test_without_error_metric(self):
        data = build_summary_data(FakeStatsEntry(), MetricsStore(), duration_ms=1000, peak_users=1)
        assert ERRORS not in data["metrics"]

        text = text_summary(data)
        assert "Error Rate" not in text
        assert "Duration (p99)" in text

    def test_empty_results(self):
        text = text_summary({})
        assert "Requests: 0" in text
        assert "Error Rate" not in text

    def test_colors(self):
        data = build_summary_data(FakeStatsEntry(), populated_store(), duration_ms=1000, peak_users=1)
        data["metrics"][ERRORS]["thresholds"] = {"rate<0.05": {"ok": False}}

        text = text_summary(data, enable_colors=True)
        assert "\x1b[" in text
        assert "Error Rate" in text


class TestOutputs:
    def test_handle_summary_destinations(self, tmp_path):
        data = {"metrics": {}}
        outputs = handle_summary(data, str(tmp_path / "summary.json"))

        assert set(outputs) == {"stdout", str(tmp_path / "summary.json")}
        assert json.loads(outputs[str(tmp_path / "summary.json")]) == data

    def test_default_path(self):
        assert config.SUMMARY_PATH in handle_summary({})

    def test_write_outputs(self, tmp_path):
        data = build_summary_data(FakeStatsEntry(), populated_store(), duration_ms=1000, peak_users=1)
        path = tmp_path / "results" / "load-test-summary.json"
        stdout = io.StringIO()

        write_outputs(handle_summary(data, str(path)), stdout=stdout)

        assert json.loads(path.read_text()) == data
        assert "Test Summary" in stdout.getvalue()
