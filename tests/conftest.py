"""
Shared fakes for the boutique load test.

No server and no Locust runner: the journey talks to ``FakeClient``, which
hands back canned ``FakeResponse`` objects keyed by request name.
"""
import random

import locust  # noqa: F401  (gevent monkey-patches ssl; must load before requests)
import pytest
from requests.cookies import RequestsCookieJar

from load_test.metrics import MetricsStore

START_TIME = 1_700_000_000.0

OK_BODIES = {
    "GET /": "<h1>Hot products</h1>",
    "GET /product/{id}": "<button>Add to Cart</button>",
    "POST /cart": "",
    "GET /cart": "<h2>Cart (1)</h2>",
    "POST /cart/checkout": "Your order is complete!",
    "GET /?search={term}": "<h1>Hot products</h1>",
}


class FakeResponse:
    def __init__(self, status_code=200, text="", response_time=100.0):
        self.status_code = status_code
        self.text = text
        self.request_meta = {"response_time": response_time}
        self.outcome = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def success(self):
        self.outcome = "success"

    def failure(self, message):
        self.outcome = message


class FakeClock:
    def __init__(self, now=START_TIME):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeClient:
    """Records every request; ``overrides`` replace the default 200 responses.

    Like ``HttpSession``, cookies live in a persistent jar. Each entry in
    ``sent_cookies`` is the jar as it stood when a request (or the GET hop of
    a ``redirects`` entry) went out, and an override's ``set_cookies`` are
    stored in the jar the way a ``Set-Cookie`` header would be.
    """

    def __init__(self, overrides=None, clock=None, latency=None, redirects=None):
        self.overrides = overrides or {}
        self.clock = clock
        self.latency = latency or {}
        self.redirects = redirects or {}
        self.cookies = RequestsCookieJar()
        self.calls = []
        self.sent_cookies = []
        self.responses = []

    def _send(self, method, path):
        self.sent_cookies.append((method, path, dict(self.cookies)))

    def _request(self, method, path, **kwargs):
        name = kwargs["name"]
        self.calls.append((method, path, kwargs))
        self._send(method, path)
        override = self.overrides.get(name, {})
        for cookie, value in override.get("set_cookies", {}).items():
            self.cookies.set(cookie, value)
        if name in self.redirects:
            self._send("GET", self.redirects[name])
        if self.clock is not None:
            self.clock.advance(self.latency.get(name, 0.0))
        response = FakeResponse(
            status_code=override.get("status", 200),
            text=override.get("text", OK_BODIES[name]),
            response_time=override.get("response_time", 100.0),
        )
        self.responses.append((name, response))
        return response

    def get(self, path, **kwargs):
        return self._request("GET", path, **kwargs)

    def post(self, path, **kwargs):
        return self._request("POST", path, **kwargs)

    def names(self):
        return [kwargs["name"] for _, _, kwargs in self.calls]

    def response(self, name):
        return next(resp for n, resp in self.responses if n == name)


class ScriptedRandom:
    """``random()`` returns the scripted draws first; everything else is seeded."""

    def __init__(self, draws=(), seed=7):
        self._draws = list(draws)
        self._rng = random.Random(seed)

    def random(self):
        if self._draws:
            return self._draws.pop(0)
        return self._rng.random()

    def choice(self, seq):
        return self._rng.choice(seq)

    def randint(self, a, b):
        return self._rng.randint(a, b)


class FakeStatsEntry:
    def __init__(self, num_requests=1000, num_failures=5, avg=250.0, percentiles=None):
        self.num_requests = num_requests
        self.num_failures = num_failures
        self.avg_response_time = avg
        self.min_response_time = 12
        self.median_response_time = 200
        self.max_response_time = 2400
        self.percentiles = percentiles or {0.90: 600, 0.95: 800, 0.99: 1500}

    def get_response_time_percentile(self, percent):
        return self.percentiles[percent]


# Checkout at 0.1 (< 0.25), search at 0.05 (< 0.10), final pause draw 0.5
BOTH_BRANCHES = (0.1, 0.05, 0.5)
NO_BRANCHES = (0.9, 0.9, 0.5)


@pytest.fixture
def store():
    return MetricsStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []
