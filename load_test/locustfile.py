"""
Locust Load Tester for the Online Boutique storefront

Each virtual user loops over the shopper journey (home → product → cart →
optional checkout/search) while the stage shape ramps 10 → 50 → 100 → 0
users. At the end of the run the summary is printed, the raw results are
written to results/load-test-summary.json and the process exits non-zero
if any threshold was crossed.

Usage:
    # Local (BASE_URL defaults to http://localhost:8080)
    locust -f load_test/locustfile.py --headless

    # Other target
    BASE_URL=http://boutique.example.com locust -f load_test/locustfile.py --headless

    # Distributed: summary and thresholds are handled on the master
    locust -f load_test/locustfile.py --master --headless --expect-workers 4
    locust -f load_test/locustfile.py --worker --master-host=localhost
"""

import threading
import time

from locust import HttpUser, constant, events, task
from locust.runners import MasterRunner, WorkerRunner

from load_test import config, summary, thresholds
from load_test.journey import run_iteration
from load_test.metrics import ITERATIONS, metrics_store
from load_test.shape import StagesShape  # noqa: F401  (picked up by Locust)

REPORT_KEY = "boutique_metrics"

# ============================================================================
# RUN STATE
# ============================================================================


class RunState:
    def __init__(self):
        self._lock = threading.Lock()
        self._started_at = None
        self._peak_users = 0

    def start(self):
        with self._lock:
            self._started_at = time.time()
            self._peak_users = 0

    def observe_users(self, user_count: int):
        with self._lock:
            self._peak_users = max(self._peak_users, user_count)

    def get_peak_users(self) -> int:
        with self._lock:
            return self._peak_users

    def get_duration_ms(self) -> float:
        with self._lock:
            if self._started_at is None:
                return 0.0
            return (time.time() - self._started_at) * 1000


run_state = RunState()

# ============================================================================
# USER CLASSES
# ============================================================================


class BoutiqueShopper(HttpUser):
    """Runs the shopper journey back to back; think time lives in the journey."""

    host = config.BASE_URL
    wait_time = constant(0)

    @task
    def shop(self):
        run_iteration(self.client, metrics_store)
        metrics_store.add(ITERATIONS, 1)


# ============================================================================
# EVENT HANDLERS
# ============================================================================


def runner_mode(runner) -> str:
    if isinstance(runner, MasterRunner):
        return "MASTER"
    if isinstance(runner, WorkerRunner):
        return "WORKER"
    return "SINGLE"


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    metrics_store.reset()
    run_state.start()

    print(f"\n{'=' * 60}")
    print(f"  BOUTIQUE LOAD TEST [{runner_mode(environment.runner)}]")
    print(f"{'=' * 60}")
    print(f"  Target:     {environment.host or config.BASE_URL}")
    print(f"  Stages:     {' → '.join(str(target) for _, target in config.STAGES)} users")
    print(f"  Checkout:   {config.CHECKOUT_PROBABILITY:.0%} of iterations")
    print(f"  Search:     {config.SEARCH_PROBABILITY:.0%} of iterations")
    print(f"{'=' * 60}\n")


@events.spawning_complete.add_listener
def on_spawning_complete(user_count, **kwargs):
    run_state.observe_users(user_count)


@events.report_to_master.add_listener
def on_report_to_master(client_id, data, **kwargs):
    data[REPORT_KEY] = metrics_store.drain()


@events.worker_report.add_listener
def on_worker_report(client_id, data, **kwargs):
    metrics_store.merge(data.get(REPORT_KEY, {}))


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    total = environment.stats.total

    print(f"\n{'=' * 60}")
    print(f"  TEST COMPLETED [{runner_mode(environment.runner)}]")
    print(f"{'=' * 60}")
    print(f"  Requests:   {total.num_requests:,}")
    print(f"  Failures:   {total.num_failures:,}")
    print(f"  Peak users: {run_state.get_peak_users()}")
    print(f"{'=' * 60}\n")


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    if isinstance(environment.runner, WorkerRunner):
        return

    shape = environment.shape_class
    data = summary.build_summary_data(
        environment.stats.total,
        metrics_store,
        duration_ms=run_state.get_duration_ms(),
        peak_users=run_state.get_peak_users(),
        max_users=shape.peak_users() if isinstance(shape, StagesShape) else None,
    )

    results = thresholds.evaluate(data, config.THRESHOLDS)
    thresholds.annotate(data, results)
    # Set both ways; left unset, Locust exits non-zero on any failed request.
    environment.process_exit_code = 0 if thresholds.log_results(results) else 1

    summary.write_outputs(summary.handle_summary(data))
