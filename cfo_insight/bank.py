import logging

from cfo_insight.config import Mode
from cfo_insight.models import BankMetrics, Status
from cfo_insight.results import DemoFallback, FallbackCause, IntegrationResult

logger = logging.getLogger("cfo_insight.bank")

UNBOUNDED_RUNWAY_MONTHS = 99

DEMO_BANK_METRICS = BankMetrics(
    cash_balance=150000000,
    monthly_inflow=48000000,
    monthly_outflow=18000000,
    net_cash_flow=30000000,
    account_count=3,
)


def get_bank_metrics(mode: Mode) -> IntegrationResult[BankMetrics]:
    if mode is Mode.DEMO:
        logger.info("Bank metrics: using demo data")
        return DemoFallback(DEMO_BANK_METRICS, FallbackCause.DEMO_MODE)

    # TODO: exchange a Plaid Link public token for an access token, then read
    # /accounts/balance/get and /transactions/get to fill in cash flow.
    logger.warning("Bank metrics: live Plaid integration not implemented, using demo data")
    return DemoFallback(DEMO_BANK_METRICS, FallbackCause.NOT_IMPLEMENTED)


def calculate_runway(cash_balance: float, monthly_burn_rate: float) -> float:
    if monthly_burn_rate <= 0:
        return UNBOUNDED_RUNWAY_MONTHS
    return round(cash_balance / monthly_burn_rate, 1)


def get_cash_health_status(runway_months: float) -> Status:
    if runway_months > 6:
        return "green"
    if runway_months >= 3:
        return "amber"
    return "red"
