from datetime import datetime, timezone

import pytest
import requests

from cfo_insight.config import Mode
from cfo_insight.results import DemoFallback, FallbackCause, Live
from cfo_insight.revenue import DEMO_STRIPE_METRICS, get_stripe_metrics, start_of_month, summarize_charges

CHARGES = [
    {"status": "succeeded", "amount": 10000, "refunded": False, "amount_refunded": 0},
    {"status": "succeeded", "amount": 5000, "refunded": True, "amount_refunded": 2000},
    {"status": "failed", "amount": 700, "refunded": False, "amount_refunded": 0},
]


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


def test_summarize_charges():
    metrics = summarize_charges(CHARGES)

    assert metrics.total_revenue == 150.0
    assert metrics.refunds == 20.0
    assert metrics.net_revenue == 130.0
    assert metrics.transaction_count == 2
    assert metrics.avg_transaction_value == 75.0
    assert metrics.mrr == pytest.approx(15.0)


def test_summarize_no_charges():
    metrics = summarize_charges([])

    assert metrics.total_revenue == 0
    assert metrics.avg_transaction_value == 0


def test_start_of_month():
    now = datetime(2026, 2, 14, 9, 30, tzinfo=timezone.utc)
    assert start_of_month(now) == int(datetime(2026, 2, 1, tzinfo=timezone.utc).timestamp())


def test_demo_mode_makes_no_request(monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("no request expected in demo mode")

    monkeypatch.setattr("cfo_insight.revenue.requests.get", unexpected)
    result = get_stripe_metrics(Mode.DEMO)

    assert isinstance(result, DemoFallback)
    assert result.cause is FallbackCause.DEMO_MODE
    assert result.value == DEMO_STRIPE_METRICS


def test_live_mode_reads_first_page(monkeypatch):
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return FakeResponse({"data": CHARGES, "has_more": True})

    monkeypatch.setattr("cfo_insight.revenue.requests.get", fake_get)
    result = get_stripe_metrics(Mode.LIVE, secret_key="sk_test_123", api_base="https://stripe.test")

    assert isinstance(result, Live)
    assert result.value.transaction_count == 2
    url, kwargs = calls[0]
    assert url == "https://stripe.test/v1/charges"
    assert kwargs["auth"] == ("sk_test_123", "")
    assert kwargs["params"]["limit"] == 100


@pytest.mark.parametrize(
    "response",
    [FakeResponse({"error": {"message": "Invalid API Key"}}, status_code=401), FakeResponse({"unexpected": []})],
)
def test_live_mode_falls_back_on_bad_response(monkeypatch, response):
    monkeypatch.setattr("cfo_insight.revenue.requests.get", lambda url, **kwargs: response)
    result = get_stripe_metrics(Mode.LIVE, secret_key="sk_test_123")

    assert isinstance(result, DemoFallback)
    assert result.cause is FallbackCause.UPSTREAM_FAILURE
    assert result.value == DEMO_STRIPE_METRICS
