"""
Pass/fail thresholds evaluated against the run summary.

Expressions use the k6 syntax, e.g. ``p(95)<1000`` or ``rate<0.01``.
Nothing here raises for a breached threshold; the caller decides what a
failed run means (the locustfile turns it into a non-zero exit code).
"""

import logging
import operator
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

_EXPRESSION = re.compile(
    r"^\s*(avg|min|max|med|count|rate|p\(\d+(?:\.\d+)?\))\s*(<=|>=|==|!=|<|>)\s*(-?\d+(?:\.\d+)?)\s*$"
)

_OPERATORS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


@dataclass
class ThresholdResult:
    """Result of a threshold check."""

    metric: str
    expression: str
    actual: Optional[float]
    passed: bool

    @property
    def message(self) -> str:
        if self.actual is None:
            return f"{self.metric}: {self.expression} (no data)"
        return f"{self.metric}: {self.expression} (actual {self.actual:.4g})"


def parse_expression(expression: str) -> Tuple[str, str, float]:
    match = _EXPRESSION.match(expression)
    if not match:
        raise ValueError(f"Invalid threshold expression: {expression!r}")
    aggregation, op, value = match.groups()
    return aggregation, op, float(value)


def evaluate(data: dict, thresholds: Dict[str, Sequence[str]]) -> List[ThresholdResult]:
    """Check every expression against ``data["metrics"]``."""
    results = []
    metrics = data.get("metrics", {})

    for metric, expressions in thresholds.items():
        values = metrics.get(metric, {}).get("values", {})
        for expression in expressions:
            aggregation, op, limit = parse_expression(expression)
            actual = values.get(aggregation)
            if actual is None:
                results.append(ThresholdResult(metric, expression, None, True))
                continue
            passed = _OPERATORS[op](actual, limit)
            results.append(ThresholdResult(metric, expression, actual, passed))

    return results


def annotate(data: dict, results: List[ThresholdResult]) -> dict:
    """Write results back into the summary the way k6 lays them out."""
    metrics = data.setdefault("metrics", {})
    for result in results:
        if result.metric not in metrics:
            continue
        entry = metrics[result.metric].setdefault("thresholds", {})
        entry[result.expression] = {"ok": result.passed}
    return data


def log_results(results: List[ThresholdResult]) -> bool:
    """Log each result and return whether all of them passed."""
    for result in results:
        if result.passed:
            logger.info("Threshold passed: %s", result.message)
        else:
            logger.warning("Threshold crossed: %s", result.message)
    return all(result.passed for result in results)
