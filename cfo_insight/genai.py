import json
import logging
from concurrent.futures import ThreadPoolExecutor

from cfo_insight.config import Mode
from cfo_insight.llm import complete_json
from cfo_insight.models import GeneratedSummary, TileMetrics
from cfo_insight.results import DemoFallback, FallbackCause, IntegrationResult, Live

logger = logging.getLogger("cfo_insight.genai")

DEFAULT_TILE = "cash-health"
STATUSES = ("green", "amber", "red")
TRENDS = ("up", "down", "stable")

DEMO_SUMMARIES = {
    "cash-health": GeneratedSummary(
        message="Runway is 8 months. Cash stable.",
        status="green",
        trend="stable",
    ),
    "fulfillment-flow": GeneratedSummary(
        message="2 stores slow. Rider wait 5 min.",
        status="amber",
        trend="down",
    ),
    "unit-economics": GeneratedSummary(
        message="Margins healthy. Promos controlled.",
        status="green",
        trend="up",
    ),
}

SUMMARY_PROMPTS = {
    "cash-health": (
        "You are a CFO advisor generating a one-line summary for a CEO.\n"
        "Given the cash metrics below, create:\n"
        "- message: max 8 words, mention runway or cash status\n"
        '- status: "green" if runway > 6 months, "amber" if 3-6 months, "red" if < 3 months\n'
        '- trend: "up" if improving, "down" if declining, "stable" if unchanged\n\n'
        "Examples:\n"
        '- "Runway is 8 months. Cash stable." (green)\n'
        '- "Burn increased. 4 months runway left." (amber)\n'
        '- "Cash critical. 2 months runway." (red)\n\n'
        "Respond with JSON only."
    ),
    "fulfillment-flow": (
        "You are a CFO advisor generating a one-line summary for a CEO.\n"
        "Given the fulfillment metrics below, create:\n"
        "- message: max 8 words, focus on stores at risk or rider delays\n"
        '- status: "green" if all stores normal, "amber" if 1-3 stores slow, '
        '"red" if > 3 stores or critical delays\n'
        "- trend: based on whether situation is improving or worsening\n\n"
        "Examples:\n"
        '- "All stores flowing. No delays." (green)\n'
        '- "2 stores slow. Rider wait 5 min." (amber)\n'
        '- "5 stores congested. Orders piling up." (red)\n\n'
        "Respond with JSON only."
    ),
    "unit-economics": (
        "You are a CFO advisor generating a one-line summary for a CEO.\n"
        "Given the unit economics metrics below, create:\n"
        "- message: max 8 words, focus on margins or promos\n"
        '- status: "green" if margin > 10%, "amber" if 5-10%, "red" if < 5%\n'
        "- trend: based on whether margins are improving\n\n"
        "Examples:\n"
        '- "Margins healthy. Promos controlled." (green)\n'
        '- "Margins dipped. Watch promo spend." (amber)\n'
        '- "Losing money per order. Urgent fix needed." (red)\n\n'
        "Respond with JSON only."
    ),
}


def demo_summary(tile_id: str) -> GeneratedSummary:
    return DEMO_SUMMARIES.get(tile_id, DEMO_SUMMARIES[DEFAULT_TILE])


def build_messages(tile: TileMetrics) -> list[dict]:
    prompt = SUMMARY_PROMPTS.get(tile.tile_id, SUMMARY_PROMPTS[DEFAULT_TILE])
    return [
        {"role": "system", "content": prompt},
        {
            "role": "user",
            "content": f"Generate a summary for these metrics:\n{json.dumps(tile.metrics, indent=2)}",
        },
    ]


def summary_from_reply(parsed: dict) -> GeneratedSummary:
    status = parsed.get("status")
    trend = parsed.get("trend")
    return GeneratedSummary(
        message=parsed.get("message") or "Status updated.",
        status=status if status in STATUSES else "amber",
        trend=trend if trend in TRENDS else "stable",
    )


def generate_tile_summary(
    tile: TileMetrics, mode: Mode, client=None, model: str = "gpt-4o"
) -> IntegrationResult[GeneratedSummary]:
    if mode is Mode.DEMO:
        logger.info("Summary for %s: using demo data", tile.tile_id)
        return DemoFallback(demo_summary(tile.tile_id), FallbackCause.DEMO_MODE)

    try:
        parsed = complete_json(
            client,
            model,
            build_messages(tile),
            max_tokens=100,
            temperature=0.3,
        )
        summary = summary_from_reply(parsed)
    except Exception:
        logger.exception("Summary generation failed (%s), using demo data", tile.tile_id)
        return DemoFallback(demo_summary(tile.tile_id), FallbackCause.UPSTREAM_FAILURE)

    logger.info("Summary for %s generated by %s", tile.tile_id, model)
    return Live(summary)


def generate_all_summaries(
    tiles: list[TileMetrics], mode: Mode, client=None, model: str = "gpt-4o"
) -> dict[str, IntegrationResult[GeneratedSummary]]:
    if not tiles:
        return {}
    with ThreadPoolExecutor(max_workers=len(tiles)) as executor:
        futures = {
            tile.tile_id: executor.submit(generate_tile_summary, tile, mode, client, model)
            for tile in tiles
        }
    return {tile_id: future.result() for tile_id, future in futures.items()}
