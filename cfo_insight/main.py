import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cfo_insight.bank import calculate_runway, get_bank_metrics, get_cash_health_status
from cfo_insight.config import Mode, Settings, load_environment, load_settings
from cfo_insight.genai import generate_all_summaries
from cfo_insight.llm import get_client
from cfo_insight.metrics import get_tile_detail, list_tiles, load_snapshot, load_trends, summary_inputs
from cfo_insight.models import ImagePayload, MetricsListResponse, TileDetailResponse
from cfo_insight.results import Live, fallback_cause, is_upstream_failure, source_name
from cfo_insight.revenue import get_stripe_metrics
from cfo_insight.vision import analyze_image, analyze_tile

load_environment()

logger = logging.getLogger("cfo_insight.api")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="CFO Insight API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return load_settings()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def openai_client(settings: Settings):
    if settings.openai_mode is Mode.DEMO:
        return None
    return get_client(settings)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return error_response(400, "Invalid request body")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/metrics", response_model=MetricsListResponse)
def get_metrics():
    try:
        snapshot = load_snapshot()
        return MetricsListResponse(
            company_name=snapshot.company_name,
            last_updated=snapshot.last_updated,
            tiles=list_tiles(snapshot),
        )
    except Exception:
        logger.exception("Error fetching metrics")
        return error_response(500, "Failed to fetch metrics")


@app.get("/api/metrics/{tile_id}", response_model=TileDetailResponse)
def get_metric_detail(tile_id: str):
    try:
        detail = get_tile_detail(tile_id, load_snapshot(), load_trends())
    except Exception:
        logger.exception("Error fetching tile details (%s)", tile_id)
        return error_response(500, "Failed to fetch tile details")
    if detail is None:
        return error_response(404, "Tile not found")
    return TileDetailResponse(data=detail)


@app.get("/api/ai/summaries")
def get_ai_summaries(settings: Settings = Depends(get_settings)):
    try:
        tiles = summary_inputs(load_snapshot())
        results = generate_all_summaries(
            tiles,
            settings.openai_mode,
            client=openai_client(settings),
            model=settings.openai_model,
        )
    except Exception:
        logger.exception("AI summaries error")
        return error_response(500, "Failed to generate summaries")

    any_live = any(isinstance(result, Live) for result in results.values())
    return {
        "success": True,
        "source": "openai" if any_live else "demo",
        "summaries": {tile_id: result.value.to_json() for tile_id, result in results.items()},
        "fallbacks": {
            tile_id: fallback_cause(result)
            for tile_id, result in results.items()
            if not isinstance(result, Live)
        },
    }


@app.get("/api/integrations/bank")
def get_bank_integration(settings: Settings = Depends(get_settings)):
    try:
        result = get_bank_metrics(settings.bank_mode)
        metrics = result.value
        runway = calculate_runway(metrics.cash_balance, metrics.monthly_outflow)
        data = {
            **metrics.to_json(),
            "runwayMonths": runway,
            "healthStatus": get_cash_health_status(runway),
        }
    except Exception:
        logger.exception("Bank error")
        return error_response(500, "Failed to fetch bank metrics")

    return {
        "success": True,
        "source": source_name(result, "plaid"),
        "fallbackCause": fallback_cause(result),
        "data": data,
    }


@app.get("/api/integrations/stripe")
def get_stripe_integration(settings: Settings = Depends(get_settings)):
    try:
        result = get_stripe_metrics(
            settings.stripe_mode,
            secret_key=settings.stripe_secret_key,
            api_base=settings.stripe_api_base,
            timeout=settings.request_timeout,
        )
    except Exception:
        logger.exception("Stripe error")
        return error_response(500, "Failed to fetch Stripe metrics")

    return {
        "success": True,
        "source": source_name(result, "stripe"),
        "fallbackCause": fallback_cause(result),
        "data": result.value.to_json(),
    }


@app.post("/api/integrations/vision")
def post_vision_analysis(
    payload: ImagePayload | None = None,
    settings: Settings = Depends(get_settings),
):
    image = payload.image if payload else None
    if not image:
        return error_response(400, "No image provided")

    try:
        result = analyze_image(
            image,
            settings.openai_mode,
            client=openai_client(settings),
            model=settings.openai_model,
        )
    except Exception:
        logger.exception("Vision error")
        return error_response(500, "Failed to analyze screenshot")

    return {
        "success": not is_upstream_failure(result),
        "source": source_name(result, "openai"),
        "fallbackCause": fallback_cause(result),
        "data": result.value.to_json(),
    }


@app.post("/api/tile/{tile_id}/analyze")
def post_tile_analysis(
    tile_id: str,
    payload: ImagePayload | None = None,
    settings: Settings = Depends(get_settings),
):
    image = payload.image if payload else None
    if not image:
        return error_response(400, "No image provided")

    try:
        result = analyze_tile(
            tile_id,
            image,
            settings.openai_mode,
            client=openai_client(settings),
            model=settings.openai_model,
        )
    except Exception:
        logger.exception("Tile analysis error (%s)", tile_id)
        return error_response(500, "Failed to analyze screenshot")

    return {
        "success": not is_upstream_failure(result),
        "tileId": tile_id,
        "source": source_name(result, "openai"),
        "fallbackCause": fallback_cause(result),
        "data": result.value.to_json(),
    }
