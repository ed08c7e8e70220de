import json

from cfo_insight.config import Mode
from cfo_insight.genai import DEMO_SUMMARIES, build_messages, generate_all_summaries, generate_tile_summary
from cfo_insight.metrics import load_snapshot, summary_inputs
from cfo_insight.models import TileMetrics
from cfo_insight.results import DemoFallback, FallbackCause, Live

CASH = TileMetrics(tile_id="cash-health", title="Cash Health", metrics={"cashBalance": 150000000})


def test_demo_mode_uses_fixed_table():
    result = generate_tile_summary(CASH, Mode.DEMO)

    assert isinstance(result, DemoFallback)
    assert result.cause is FallbackCause.DEMO_MODE
    assert result.value == DEMO_SUMMARIES["cash-health"]


def test_unknown_tile_uses_cash_health_demo():
    tile = TileMetrics(tile_id="inventory", title="Inventory", metrics={})
    assert generate_tile_summary(tile, Mode.DEMO).value == DEMO_SUMMARIES["cash-health"]


def test_prompt_carries_metrics():
    messages = build_messages(CASH)

    assert messages[0]["role"] == "system"
    assert "runway" in messages[0]["content"]
    assert messages[1]["content"].startswith("Generate a summary for these metrics:\n")
    assert '"cashBalance": 150000000' in messages[1]["content"]


def test_live_reply_is_parsed(fake_openai):
    client = fake_openai('```json\n{"message": "Cash critical. 2 months runway.", "status": "red", "trend": "down"}\n```')
    result = generate_tile_summary(CASH, Mode.LIVE, client=client)

    assert isinstance(result, Live)
    assert result.value.status == "red"
    assert result.value.trend == "down"
    call = client.completions.calls[0]
    assert call["max_tokens"] == 100
    assert call["temperature"] == 0.3
    assert call["model"] == "gpt-4o"


def test_missing_and_unknown_fields_are_defaulted(fake_openai):
    client = fake_openai(json.dumps({"status": "purple"}))
    result = generate_tile_summary(CASH, Mode.LIVE, client=client)

    assert isinstance(result, Live)
    assert result.value.message == "Status updated."
    assert result.value.status == "amber"
    assert result.value.trend == "stable"


def test_unparseable_reply_falls_back(fake_openai):
    result = generate_tile_summary(CASH, Mode.LIVE, client=fake_openai("Runway looks fine"))

    assert isinstance(result, DemoFallback)
    assert result.cause is FallbackCause.UPSTREAM_FAILURE
    assert result.value == DEMO_SUMMARIES["cash-health"]


def test_batch_covers_every_tile(fake_openai):
    client = fake_openai(json.dumps({"message": "All good.", "status": "green", "trend": "stable"}))
    results = generate_all_summaries(summary_inputs(load_snapshot()), Mode.LIVE, client=client)

    assert set(results) == {"cash-health", "fulfillment-flow", "unit-economics"}
    assert all(isinstance(result, Live) for result in results.values())
    assert len(client.completions.calls) == 3


def test_batch_of_nothing():
    assert generate_all_summaries([], Mode.LIVE) == {}
