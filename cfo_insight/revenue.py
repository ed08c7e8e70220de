import logging
from datetime import datetime, timezone

import requests

from cfo_insight.config import Mode
from cfo_insight.models import StripeMetrics
from cfo_insight.results import DemoFallback, FallbackCause, IntegrationResult, Live

logger = logging.getLogger("cfo_insight.revenue")

DEMO_STRIPE_METRICS = StripeMetrics(
    mrr=4500000,
    total_revenue=45000000,
    refunds=225000,
    net_revenue=44775000,
    transaction_count=125000,
    avg_transaction_value=360,
)

CHARGES_PAGE_SIZE = 100
# Placeholder: no subscription data is read yet, so MRR is a flat share of revenue.
RECURRING_REVENUE_SHARE = 0.1


def start_of_month(now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    first = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return int(first.timestamp())


def summarize_charges(charges: list[dict]) -> StripeMetrics:
    total_revenue = 0
    refunds = 0
    successful = 0
    for charge in charges:
        if charge.get("status") == "succeeded":
            total_revenue += charge.get("amount", 0)
            successful += 1
        if charge.get("refunded"):
            refunds += charge.get("amount_refunded", 0)

    # minor units (cents / paise) to major units
    total_revenue = total_revenue / 100
    refunds = refunds / 100

    return StripeMetrics(
        mrr=total_revenue * RECURRING_REVENUE_SHARE,
        total_revenue=total_revenue,
        refunds=refunds,
        net_revenue=total_revenue - refunds,
        transaction_count=successful,
        avg_transaction_value=total_revenue / successful if successful > 0 else 0,
    )


def fetch_charges(secret_key: str, api_base: str, timeout: float) -> list[dict]:
    resp = requests.get(
        f"{api_base}/v1/charges",
        params={"created[gte]": start_of_month(), "limit": CHARGES_PAGE_SIZE},
        auth=(secret_key, ""),
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()["data"]


def get_stripe_metrics(
    mode: Mode,
    secret_key: str | None = None,
    api_base: str = "https://api.stripe.com",
    timeout: float = 30,
) -> IntegrationResult[StripeMetrics]:
    if mode is Mode.DEMO:
        logger.info("Stripe metrics: using demo data")
        return DemoFallback(DEMO_STRIPE_METRICS, FallbackCause.DEMO_MODE)

    try:
        charges = fetch_charges(secret_key, api_base, timeout)
        metrics = summarize_charges(charges)
    except (requests.RequestException, ValueError, KeyError, TypeError):
        logger.exception("Stripe metrics failed, using demo data")
        return DemoFallback(DEMO_STRIPE_METRICS, FallbackCause.UPSTREAM_FAILURE)

    logger.info("Stripe metrics computed from %d charges", len(charges))
    return Live(metrics)
