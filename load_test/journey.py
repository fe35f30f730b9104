"""
Shopper journey: home → product → cart → (checkout) → (search).

``run_iteration`` is one virtual-user iteration. The HTTP client, metrics
recorder, random source, sleep and clock are all passed in, so the journey
runs the same under Locust and under a fake client in tests.
"""

import random
import string
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from load_test import config
from load_test.metrics import (
    CHECKOUT_TIME,
    ERRORS,
    HOMEPAGE_LOAD_TIME,
    PRODUCT_PAGE_LOAD_TIME,
    TOTAL_REQUESTS,
)

PAGE_BUDGET_MS = 1000
CHECKOUT_BUDGET_MS = 3000

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class Iteration:
    """What happened during one pass through the journey."""
    session_id: str
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    checked_out: bool = False
    search_term: Optional[str] = None
    results: Dict[str, bool] = field(default_factory=dict)


# ============================================================================
# DATA GENERATORS
# ============================================================================


def generate_session_id(rng=random, clock: Callable[[], float] = None) -> str:
    clock = clock or time.time
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(8))
    return f"session-{int(clock() * 1000)}-{suffix}"


def pick_product(rng=random) -> str:
    return rng.choice(config.PRODUCTS)


def generate_cart_item(product_id: str, rng=random) -> dict:
    return {"product_id": product_id, "quantity": rng.randint(1, 3)}


def generate_checkout(session_id: str) -> dict:
    return {"email": f"user{session_id}@example.com", **config.CHECKOUT_DETAILS}


# ============================================================================
# CHECKS
# ============================================================================


def response_time_ms(response) -> float:
    """Engine-measured duration of the request, in milliseconds."""
    return response.request_meta["response_time"]


def body(response) -> str:
    return response.text or ""


def check(recorder, response, conditions: Dict[str, Callable]) -> bool:
    """Record every named condition and return whether all of them held."""
    ok = True
    for name, condition in conditions.items():
        ok = recorder.check(name, bool(condition(response))) and ok
    return ok


def mark_response(response) -> None:
    """Report to Locust: 2xx/3xx pass, transport errors and >= 400 fail."""
    if 0 < response.status_code < 400:
        response.success()
    else:
        response.failure(f"Status {response.status_code}")


# ============================================================================
# JOURNEY
# ============================================================================


def run_iteration(client, recorder, rng=random, sleep=None, clock=None) -> Iteration:
    sleep = sleep or time.sleep
    clock = clock or time.time

    session_id = generate_session_id(rng, clock)
    # Fresh jar per iteration; redirect hops rebuild Cookie from it.
    client.cookies.clear()
    client.cookies.set(config.SESSION_COOKIE, session_id)
    json_headers = {"Content-Type": "application/json"}
    iteration = Iteration(session_id=session_id)

    # Homepage
    with client.get("/", name="GET /", catch_response=True) as resp:
        recorder.add(TOTAL_REQUESTS, 1)
        duration = response_time_ms(resp)
        ok = check(recorder, resp, {
            "homepage status is 200": lambda r: r.status_code == 200,
            "homepage has products": lambda r: "product" in body(r),
            "homepage loads in < 1s": lambda r: duration < PAGE_BUDGET_MS,
        })
        mark_response(resp)
    recorder.add(ERRORS, not ok)
    recorder.add(HOMEPAGE_LOAD_TIME, duration)
    iteration.results["homepage"] = ok
    sleep(1)

    # Product page
    product_id = pick_product(rng)
    iteration.product_id = product_id
    with client.get(
        f"/product/{product_id}",
        name="GET /product/{id}",
        catch_response=True,
    ) as resp:
        recorder.add(TOTAL_REQUESTS, 1)
        duration = response_time_ms(resp)
        ok = check(recorder, resp, {
            "product page status is 200": lambda r: r.status_code == 200,
            "product page has details": lambda r: "Add to Cart" in body(r),
            "product page loads in < 1s": lambda r: duration < PAGE_BUDGET_MS,
        })
        mark_response(resp)
    recorder.add(ERRORS, not ok)
    recorder.add(PRODUCT_PAGE_LOAD_TIME, duration)
    iteration.results["product"] = ok
    sleep(2)

    # Add to cart
    item = generate_cart_item(product_id, rng)
    iteration.quantity = item["quantity"]
    with client.post(
        "/cart",
        json=item,
        headers=json_headers,
        name="POST /cart",
        catch_response=True,
    ) as resp:
        recorder.add(TOTAL_REQUESTS, 1)
        ok = check(recorder, resp, {
            "add to cart successful": lambda r: r.status_code in (200, 302),
        })
        mark_response(resp)
    recorder.add(ERRORS, not ok)
    iteration.results["add_to_cart"] = ok
    sleep(1)

    # View cart
    with client.get("/cart", name="GET /cart", catch_response=True) as resp:
        recorder.add(TOTAL_REQUESTS, 1)
        ok = check(recorder, resp, {
            "cart page status is 200": lambda r: r.status_code == 200,
            "cart has items": lambda r: "Cart" in body(r) or "Empty" in body(r),
        })
        mark_response(resp)
    recorder.add(ERRORS, not ok)
    iteration.results["cart"] = ok
    sleep(2)

    # Checkout (a quarter of the iterations)
    if rng.random() < config.CHECKOUT_PROBABILITY:
        start = clock()
        with client.post(
            "/cart/checkout",
            json=generate_checkout(session_id),
            headers=json_headers,
            name="POST /cart/checkout",
            catch_response=True,
        ) as resp:
            elapsed = (clock() - start) * 1000
            recorder.add(TOTAL_REQUESTS, 1)
            ok = check(recorder, resp, {
                "checkout successful": lambda r: r.status_code in (200, 302),
                "checkout completes in < 3s": lambda r: elapsed < CHECKOUT_BUDGET_MS,
            })
            mark_response(resp)
        recorder.add(ERRORS, not ok)
        recorder.add(CHECKOUT_TIME, elapsed)
        iteration.checked_out = True
        iteration.results["checkout"] = ok
        sleep(3)

    # Search (a tenth of the iterations); not counted in the error rate
    if rng.random() < config.SEARCH_PROBABILITY:
        term = rng.choice(config.SEARCH_TERMS)
        iteration.search_term = term
        with client.get(
            f"/?search={term}",
            name="GET /?search={term}",
            catch_response=True,
        ) as resp:
            recorder.add(TOTAL_REQUESTS, 1)
            ok = check(recorder, resp, {
                "search results status is 200": lambda r: r.status_code == 200,
            })
            mark_response(resp)
        iteration.results["search"] = ok
        sleep(1)

    # Reading time between iterations
    sleep(1 + rng.random() * 3)
    return iteration
