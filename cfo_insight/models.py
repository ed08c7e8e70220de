from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Status = Literal["green", "amber", "red"]
Trend = Literal["up", "down", "stable"]
Number = int | float


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class CashHealthDetails(CamelModel):
    cash_balance: Number
    monthly_burn_rate: Number
    runway_months: Number
    payroll: Number
    liquidity_ratio: Number


class FulfillmentDetails(CamelModel):
    total_stores: int
    stores_at_risk: int
    avg_rider_wait_minutes: Number
    orders_aging_15_min: int = Field(alias="ordersAging15Min")
    avg_congestion_percent: Number


class UnitEconomicsDetails(CamelModel):
    contribution_margin_percent: Number
    avg_order_value: Number
    delivery_cost_per_order: Number
    promo_leakage_percent: Number
    total_orders_today: int


class CashHealthTile(CamelModel):
    status: Status
    trend: Trend
    message: str
    details: CashHealthDetails


class FulfillmentTile(CamelModel):
    status: Status
    trend: Trend
    message: str
    details: FulfillmentDetails


class UnitEconomicsTile(CamelModel):
    status: Status
    trend: Trend
    message: str
    details: UnitEconomicsDetails


class MetricsSnapshot(CamelModel):
    company_name: str
    last_updated: str
    cash_health: CashHealthTile
    fulfillment_flow: FulfillmentTile
    unit_economics: UnitEconomicsTile


class SimpleTile(CamelModel):
    id: str
    title: str
    status: Status
    trend: Trend
    message: str


class TrendPoint(CamelModel):
    day: str
    value: float


class TileTrends(CamelModel):
    trend_data: list[TrendPoint]
    insights: list[str]
    ai_summary: str


class TileDetail(CamelModel):
    id: str
    title: str
    status: Status
    trend: Trend
    message: str
    trend_data: list[TrendPoint]
    insights: list[str]
    ai_summary: str
    details: dict[str, Number]


class TileMetrics(CamelModel):
    tile_id: str
    title: str
    metrics: dict[str, Number | str]


class BankMetrics(CamelModel):
    cash_balance: Number
    monthly_inflow: Number
    monthly_outflow: Number
    net_cash_flow: Number
    account_count: int


class StripeMetrics(CamelModel):
    mrr: Number
    total_revenue: Number
    refunds: Number
    net_revenue: Number
    transaction_count: int
    avg_transaction_value: Number


class GeneratedSummary(CamelModel):
    message: str
    status: Status
    trend: Trend


class VisionAnalysisResult(CamelModel):
    extracted_data: dict[str, Any]
    summary: str
    source_type: str


class TileVisionResult(CamelModel):
    extracted_metrics: dict[str, Any]
    status: Status
    message: str
    confidence: Number


class ImagePayload(BaseModel):
    image: str | None = None


class MetricsListResponse(CamelModel):
    success: bool = True
    company_name: str
    last_updated: str
    tiles: list[SimpleTile]


class TileDetailResponse(CamelModel):
    success: bool = True
    data: TileDetail
