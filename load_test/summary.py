"""
End-of-run summary: a text block for the terminal and the raw results as JSON.

The results object mirrors the k6 summary layout (``state`` plus
``metrics.<name>.values``) so existing dashboards and the comparison script
can read it without caring which engine produced it.
"""

import io
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.text import Text

from load_test import config
from load_test.metrics import ERRORS, MetricsStore, counter_values

logger = logging.getLogger(__name__)


# ============================================================================
# RESULTS OBJECT
# ============================================================================


def http_metrics(total, duration_s: float) -> Dict[str, dict]:
    """Built-in request metrics from Locust's aggregated ``StatsEntry``."""
    requests = total.num_requests
    failures = total.num_failures

    return {
        "http_reqs": {
            "type": "counter",
            "contains": "default",
            "values": counter_values(requests, duration_s),
        },
        "http_req_failed": {
            "type": "rate",
            "contains": "default",
            "values": {
                "rate": failures / requests if requests else 0.0,
                "passes": failures,
                "fails": requests - failures,
            },
        },
        "http_req_duration": {
            "type": "trend",
            "contains": "time",
            "values": {
                "avg": total.avg_response_time,
                "min": total.min_response_time or 0,
                "med": total.median_response_time or 0,
                "max": total.max_response_time,
                "p(90)": total.get_response_time_percentile(0.90) or 0,
                "p(95)": total.get_response_time_percentile(0.95) or 0,
                "p(99)": total.get_response_time_percentile(0.99) or 0,
            },
        },
    }


def build_summary_data(
    total,
    store: MetricsStore,
    duration_ms: float,
    peak_users: int,
    max_users: Optional[int] = None,
) -> dict:
    duration_s = duration_ms / 1000
    metrics = http_metrics(total, duration_s)
    metrics["vus"] = {
        "type": "gauge",
        "contains": "default",
        "values": {"max": peak_users},
    }
    metrics["vus_max"] = {
        "type": "gauge",
        "contains": "default",
        "values": {"max": max_users if max_users is not None else peak_users},
    }
    metrics.update(store.to_metrics(duration_s))

    return {
        "state": {"testRunDurationMs": duration_ms},
        "metrics": metrics,
        "root_group": {"name": "", "checks": store.to_checks()},
    }


# ============================================================================
# TEXT SUMMARY
# ============================================================================


def _value(data: dict, metric: str, stat: str, default=0):
    return data.get("metrics", {}).get(metric, {}).get("values", {}).get(stat, default)


def _thresholds_ok(data: dict, metric: str) -> Optional[bool]:
    thresholds = data.get("metrics", {}).get(metric, {}).get("thresholds")
    if not thresholds:
        return None
    return all(result.get("ok") for result in thresholds.values())


def _status_style(ok: Optional[bool]) -> Optional[str]:
    if ok is None:
        return None
    return "green" if ok else "bold red"


def render_summary(data: dict, indent: str = "") -> Text:
    text = Text("\n")

    def line(label: str, value: str = "", style: Optional[str] = None):
        text.append(f"{indent}{label}")
        text.append(value, style=style)
        text.append("\n")

    text.append(f"{indent}Test Summary\n", style="bold cyan")
    text.append(f"{indent}============\n\n", style="cyan")

    line("Duration: ", f"{data.get('state', {}).get('testRunDurationMs', 0):.0f}ms")
    line("VUs: ", f"{_value(data, 'vus', 'max')}")
    line("Iterations: ", f"{_value(data, 'iterations', 'count')}")
    text.append("\n")

    failed = _value(data, "http_req_failed", "rate") * 100
    line("HTTP Metrics:", style="bold")
    line("  Requests: ", f"{_value(data, 'http_reqs', 'count')}")
    line("  Failed: ", f"{failed:.2f}%", _status_style(_thresholds_ok(data, "http_req_failed")))
    duration_style = _status_style(_thresholds_ok(data, "http_req_duration"))
    for stat, label in (("avg", "avg"), ("p(95)", "p95"), ("p(99)", "p99")):
        line(f"  Duration ({label}): ", f"{_value(data, 'http_req_duration', stat):.2f}ms", duration_style)
    text.append("\n")

    if ERRORS in data.get("metrics", {}):
        error_rate = _value(data, ERRORS, "rate") * 100
        line("Error Rate: ", f"{error_rate:.2f}%", _status_style(_thresholds_ok(data, ERRORS)))

    return text


def text_summary(data: dict, indent: str = "", enable_colors: bool = False) -> str:
    text = render_summary(data, indent)
    if not enable_colors:
        return text.plain

    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, color_system="standard", width=200)
    console.print(text, end="", soft_wrap=True, highlight=False)
    return buffer.getvalue()


# ============================================================================
# OUTPUTS
# ============================================================================


def handle_summary(data: dict, summary_path: Optional[str] = None) -> Dict[str, str]:
    """Map each output destination to its content."""
    return {
        "stdout": text_summary(data, indent=" ", enable_colors=True),
        summary_path or config.SUMMARY_PATH: json.dumps(data),
    }


def write_outputs(outputs: Dict[str, str], stdout=None) -> None:
    stdout = stdout or sys.stdout
    for destination, content in outputs.items():
        if destination == "stdout":
            stdout.write(content)
            continue
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        logger.info("Summary saved to %s", path)
