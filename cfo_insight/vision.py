import logging
import re

from cfo_insight.config import Mode
from cfo_insight.llm import complete_json
from cfo_insight.models import TileVisionResult, VisionAnalysisResult
from cfo_insight.results import DemoFallback, FallbackCause, IntegrationResult, Live

logger = logging.getLogger("cfo_insight.vision")

DATA_URL_RE = re.compile(r"^data:(image/\w+);base64,")
DEFAULT_MIME = "image/png"
DEFAULT_TILE = "cash-health"
STATUSES = ("green", "amber", "red")
DEFAULT_CONFIDENCE = 70

DEMO_VISION_RESULT = VisionAnalysisResult(
    extracted_data={
        "Total Cost": "$2,847.32",
        "Month": "February 2026",
        "Top Service": "EC2 Instances",
        "Trend": "Up 12% from last month",
    },
    summary=(
        "This appears to be an AWS billing dashboard. Monthly cost is $2,847.32, "
        "up 12% from last month. EC2 instances are the primary cost driver."
    ),
    source_type="AWS Billing Dashboard",
)

VISION_PROMPT = (
    "You are a CFO assistant analyzing dashboard screenshots.\n"
    "Extract key financial/operational metrics from the image.\n"
    "Return a JSON object with:\n"
    '- sourceType: what kind of dashboard this is (e.g., "AWS Billing", '
    '"Stripe Dashboard", "Shopify Analytics")\n'
    "- extractedData: key-value pairs of important numbers/metrics you see\n"
    "- summary: a 2-sentence CEO-friendly summary of what this shows\n\n"
    "Always respond with valid JSON only."
)

TILE_RESULT_FORMAT = (
    "Return JSON with:\n"
    "- extractedMetrics: key-value pairs of numbers found{units}\n"
    '- status: "green" if {green}, "amber" if {amber}, "red" if {red}\n'
    '- message: One sentence summary for a CEO (e.g., "{example}")\n'
    "- confidence: 0-100 how confident you are in the extraction"
)

TILE_PROMPTS = {
    "cash-health": (
        "You are a CFO assistant analyzing a financial document or dashboard screenshot.\n"
        "Extract cash/banking metrics. Look for:\n"
        "- Account balance / Cash balance\n"
        "- Monthly expenses / Burn rate\n"
        "- Income / Revenue\n"
        "- Any dates shown\n\n"
        + TILE_RESULT_FORMAT.format(
            units=" (in INR/USD)",
            green="balance is healthy",
            amber="concerning",
            red="critical",
            example="Cash at 2.5 Cr, burn rate stable",
        )
    ),
    "fulfillment-flow": (
        "You are a CFO assistant analyzing an operations/logistics dashboard screenshot.\n"
        "Extract fulfillment metrics. Look for:\n"
        "- Order counts / Pending orders\n"
        "- Delivery times / Wait times\n"
        "- Store/warehouse metrics\n"
        "- Any backlogs or delays\n\n"
        + TILE_RESULT_FORMAT.format(
            units="",
            green="operations smooth",
            amber="delays exist",
            red="critical",
            example="45 orders pending, avg wait 8 min",
        )
    ),
    "unit-economics": (
        "You are a CFO assistant analyzing a revenue/sales dashboard screenshot.\n"
        "Extract unit economics metrics. Look for:\n"
        "- Revenue / Sales figures\n"
        "- Margins / Profit percentages\n"
        "- Order values / AOV\n"
        "- Discounts / Promo costs\n\n"
        + TILE_RESULT_FORMAT.format(
            units="",
            green="margins healthy",
            amber="concerning",
            red="losing money",
            example="Revenue 4.5 Cr, margin 12%",
        )
    ),
}

DEMO_TILE_RESULTS = {
    "cash-health": TileVisionResult(
        extracted_metrics={
            "Cash Balance": "₹15,00,00,000",
            "Monthly Expenses": "₹1,80,00,000",
            "Last Updated": "Feb 2026",
        },
        status="green",
        message="Cash at 15 Cr, runway 8+ months. Looking healthy.",
        confidence=85,
    ),
    "fulfillment-flow": TileVisionResult(
        extracted_metrics={
            "Pending Orders": 156,
            "Avg Wait Time": "5.2 min",
            "Stores Active": 45,
        },
        status="amber",
        message="156 pending orders, 2 stores showing delays.",
        confidence=78,
    ),
    "unit-economics": TileVisionResult(
        extracted_metrics={
            "Daily Revenue": "₹48,50,000",
            "Contribution Margin": "12.4%",
            "Avg Order Value": "₹385",
        },
        status="green",
        message="Daily revenue 48.5L, margins at 12.4%. Promos under control.",
        confidence=82,
    ),
}


def strip_data_url(image: str) -> tuple[str, str]:
    match = DATA_URL_RE.match(image)
    if not match:
        return DEFAULT_MIME, image
    return match.group(1), image[match.end():]


def image_message(image: str, instruction: str) -> dict:
    mime_type, encoded = strip_data_url(image)
    return {
        "role": "user",
        "content": [
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
            {"type": "text", "text": instruction},
        ],
    }


def reply_confidence(value) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return value
    return DEFAULT_CONFIDENCE


def demo_tile_result(tile_id: str) -> TileVisionResult:
    return DEMO_TILE_RESULTS.get(tile_id, DEMO_TILE_RESULTS[DEFAULT_TILE])


def analyze_image(
    image: str, mode: Mode, client=None, model: str = "gpt-4o"
) -> IntegrationResult[VisionAnalysisResult]:
    if mode is Mode.DEMO:
        logger.info("Vision: using demo data")
        return DemoFallback(DEMO_VISION_RESULT, FallbackCause.DEMO_MODE)

    messages = [
        {"role": "system", "content": VISION_PROMPT},
        image_message(image, "Analyze this dashboard screenshot and extract the key metrics."),
    ]
    try:
        parsed = complete_json(client, model, messages, max_tokens=500)
        result = VisionAnalysisResult(
            extracted_data=parsed.get("extractedData") or {},
            summary=parsed.get("summary") or "Unable to analyze image",
            source_type=parsed.get("sourceType") or "Unknown",
        )
    except Exception:
        logger.exception("Vision analysis failed, using demo data")
        return DemoFallback(DEMO_VISION_RESULT, FallbackCause.UPSTREAM_FAILURE)

    return Live(result)


def analyze_tile(
    tile_id: str, image: str, mode: Mode, client=None, model: str = "gpt-4o"
) -> IntegrationResult[TileVisionResult]:
    if mode is Mode.DEMO:
        logger.info("Vision: using demo data for tile %s", tile_id)
        return DemoFallback(demo_tile_result(tile_id), FallbackCause.DEMO_MODE)

    prompt = TILE_PROMPTS.get(tile_id, TILE_PROMPTS[DEFAULT_TILE])
    messages = [
        {"role": "system", "content": prompt + "\n\nRespond with valid JSON only, no markdown."},
        image_message(image, "Analyze this screenshot and extract the relevant metrics."),
    ]
    try:
        parsed = complete_json(client, model, messages, max_tokens=500)
        status = parsed.get("status")
        result = TileVisionResult(
            extracted_metrics=parsed.get("extractedMetrics") or {},
            status=status if status in STATUSES else "amber",
            message=parsed.get("message") or "Analysis complete",
            confidence=reply_confidence(parsed.get("confidence")),
        )
    except Exception:
        logger.exception("Vision analysis failed for tile %s, using demo data", tile_id)
        return DemoFallback(demo_tile_result(tile_id), FallbackCause.UPSTREAM_FAILURE)

    return Live(result)
