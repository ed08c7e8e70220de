import json
from pathlib import Path

from cfo_insight.models import MetricsSnapshot, SimpleTile, TileDetail, TileMetrics, TileTrends

DATA_DIR = Path(__file__).parent / "data"
SNAPSHOT_PATH = DATA_DIR / "snapshot.json"
TRENDS_PATH = DATA_DIR / "trends.json"

TILE_IDS = ("cash-health", "fulfillment-flow", "unit-economics")
TILE_TITLES = {
    "cash-health": "Cash Health",
    "fulfillment-flow": "Fulfillment Flow",
    "unit-economics": "Unit Economics",
}


def load_snapshot(path: Path = SNAPSHOT_PATH) -> MetricsSnapshot:
    with open(path, encoding="utf-8") as handle:
        return MetricsSnapshot.model_validate(json.load(handle))


def load_trends(path: Path = TRENDS_PATH) -> dict[str, TileTrends]:
    with open(path, encoding="utf-8") as handle:
        raw = json.load(handle)
    return {tile_id: TileTrends.model_validate(entry) for tile_id, entry in raw.items()}


def tile_block(snapshot: MetricsSnapshot, tile_id: str):
    blocks = {
        "cash-health": snapshot.cash_health,
        "fulfillment-flow": snapshot.fulfillment_flow,
        "unit-economics": snapshot.unit_economics,
    }
    return blocks.get(tile_id)


def list_tiles(snapshot: MetricsSnapshot) -> list[SimpleTile]:
    tiles = []
    for tile_id in TILE_IDS:
        block = tile_block(snapshot, tile_id)
        tiles.append(
            SimpleTile(
                id=tile_id,
                title=TILE_TITLES[tile_id],
                status=block.status,
                trend=block.trend,
                message=block.message,
            )
        )
    return tiles


def get_tile_detail(
    tile_id: str, snapshot: MetricsSnapshot, trends: dict[str, TileTrends]
) -> TileDetail | None:
    block = tile_block(snapshot, tile_id)
    if block is None:
        return None
    tile_trends = trends[tile_id]
    return TileDetail(
        id=tile_id,
        title=TILE_TITLES[tile_id],
        status=block.status,
        trend=block.trend,
        message=block.message,
        trend_data=tile_trends.trend_data,
        insights=tile_trends.insights,
        ai_summary=tile_trends.ai_summary,
        details=block.details.model_dump(by_alias=True),
    )


def summary_inputs(snapshot: MetricsSnapshot) -> list[TileMetrics]:
    return [
        TileMetrics(
            tile_id=tile_id,
            title=TILE_TITLES[tile_id],
            metrics=tile_block(snapshot, tile_id).details.model_dump(by_alias=True),
        )
        for tile_id in TILE_IDS
    ]
