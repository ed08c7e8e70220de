import base64
import html
import logging
import os
from datetime import datetime

import pandas as pd
import requests
import streamlit as st
from dotenv import load_dotenv
from requests import RequestException

ENV_PATHS = [
    os.path.join(os.path.dirname(__file__), "config", "env.app"),
    os.path.join(os.path.dirname(__file__), "config", "env.local"),
]
for env_path in ENV_PATHS:
    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)

API_BASE = os.getenv("API_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
DEBUG_LOGS = os.getenv("DEBUG_LOGS", "false").lower() == "true"

logging.basicConfig(level=logging.INFO if DEBUG_LOGS else logging.WARNING)
logger = logging.getLogger("cfo_insight_app")

STATUS_COLORS = {"green": "#10B981", "amber": "#F59E0B", "red": "#EF4444"}
TREND_ARROWS = {"up": "&#8599;", "down": "&#8600;", "stable": "&#8594;"}
DETAIL_LABELS = {
    "cashBalance": "Cash Balance",
    "monthlyBurnRate": "Monthly Burn",
    "runwayMonths": "Runway (months)",
    "payroll": "Payroll",
    "liquidityRatio": "Liquidity Ratio",
    "totalStores": "Total Stores",
    "storesAtRisk": "Stores at Risk",
    "avgRiderWaitMinutes": "Rider Wait (min)",
    "ordersAging15Min": "Orders > 15 min",
    "avgCongestionPercent": "Congestion %",
    "contributionMarginPercent": "Contribution Margin %",
    "avgOrderValue": "Avg Order Value",
    "deliveryCostPerOrder": "Delivery Cost / Order",
    "promoLeakagePercent": "Promo Leakage %",
    "totalOrdersToday": "Orders Today",
}


def fetch_json(path: str, fallback: dict | None = None, timeout: int = 10):
    try:
        if DEBUG_LOGS:
            logger.info("GET %s", path)
        resp = requests.get(f"{API_BASE}{path}", timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except RequestException:
        logger.exception("API request failed: %s", path)
        return fallback


def post_json(path: str, body: dict, fallback: dict | None = None, timeout: int = 90):
    try:
        if DEBUG_LOGS:
            logger.info("POST %s", path)
        resp = requests.post(f"{API_BASE}{path}", json=body, timeout=timeout)
        return resp.json()
    except (RequestException, ValueError):
        logger.exception("API request failed: %s", path)
        return fallback


def to_data_url(upload) -> str:
    encoded = base64.b64encode(upload.getvalue()).decode("ascii")
    return f"data:{upload.type or 'image/png'};base64,{encoded}"


def format_time(iso_string: str) -> str:
    try:
        return datetime.fromisoformat(iso_string).strftime("%I:%M %p")
    except ValueError:
        return iso_string


def format_figure(value) -> str:
    if isinstance(value, (int, float)) and abs(value) >= 10000000:
        return f"{value / 10000000:,.2f} Cr"
    if isinstance(value, (int, float)) and abs(value) >= 100000:
        return f"{value / 100000:,.2f} L"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.1f}"
    if isinstance(value, (int, float)):
        return f"{value:,.0f}"
    return str(value)


def apply_summary(tile: dict, summary: dict | None) -> dict:
    if not summary:
        return tile
    return {
        **tile,
        "message": summary.get("message", tile["message"]),
        "status": summary.get("status", tile["status"]),
        "trend": summary.get("trend", tile["trend"]),
    }


def tile_html(title: str, status: str, trend: str, message: str, ai: bool = False) -> str:
    color = STATUS_COLORS.get(status, STATUS_COLORS["green"])
    ai_marker = '<span class="ai-marker">&bull; AI</span>' if ai else ""
    return (
        '<div class="status-card">'
        f'<div class="tile-title">{html.escape(title)}{ai_marker}</div>'
        '<div class="tile-row">'
        f'<div class="status-dot" style="background:{color};box-shadow:0 0 24px {color}66"></div>'
        f'<div class="trend" style="color:{color}">{TREND_ARROWS.get(trend, TREND_ARROWS["stable"])}</div>'
        "</div>"
        f'<div class="tile-message">{html.escape(message)}</div>'
        "</div>"
    )


def go_to(view: str, tile_id: str | None = None):
    st.session_state["view"] = view
    st.session_state["tile_id"] = tile_id
    st.session_state.pop("tile_analysis", None)
    st.session_state.pop("vision_result", None)


def fetch_summaries() -> dict:
    result = fetch_json("/api/ai/summaries", fallback={}, timeout=90)
    return (result or {}).get("summaries") or {}


def render_home():
    data = fetch_json("/api/metrics")
    if not data or not data.get("success"):
        st.error("Error: metrics unavailable. Start the API with `uvicorn cfo_insight.main:app`.")
        return

    summaries = st.session_state.setdefault("ai_summaries", {})
    title_col, ai_col, vision_col = st.columns([6, 1, 1])
    with title_col:
        st.title("CFO Insight")
        st.markdown(f'<span class="muted">{html.escape(data["companyName"])}</span>', unsafe_allow_html=True)
    with ai_col:
        label = "AI Active" if summaries else "AI Summary"
        if st.button(label, key="ai-all"):
            with st.spinner("Generating..."):
                st.session_state["ai_summaries"] = fetch_summaries()
            st.rerun()
    with vision_col:
        st.button("Screenshot", key="open-vision", on_click=go_to, args=("vision",))

    columns = st.columns(3)
    for column, tile in zip(columns, data["tiles"]):
        shown = apply_summary(tile, summaries.get(tile["id"]))
        with column:
            st.markdown(
                tile_html(shown["title"], shown["status"], shown["trend"], shown["message"], tile["id"] in summaries),
                unsafe_allow_html=True,
            )
            open_col, enhance_col = st.columns(2)
            open_col.button("Details", key=f"open-{tile['id']}", on_click=go_to, args=("tile", tile["id"]))
            if enhance_col.button("Enhance", key=f"enhance-{tile['id']}"):
                with st.spinner("Enhancing..."):
                    generated = fetch_summaries()
                if tile["id"] in generated:
                    summaries[tile["id"]] = generated[tile["id"]]
                st.rerun()

    footer = f"Data as of {format_time(data['lastUpdated'])}"
    if summaries:
        footer += " &bull; AI-enhanced"
    st.markdown(f'<div class="footer muted">{footer}</div>', unsafe_allow_html=True)


def render_tile(tile_id: str):
    st.button("Back", key="back-home", on_click=go_to, args=("home",))
    result = fetch_json(f"/api/metrics/{tile_id}")
    if not result or not result.get("success"):
        st.error("Error: Tile not found")
        return
    data = result["data"]
    analysis = st.session_state.get("tile_analysis")

    st.title(data["title"])
    status = analysis["status"] if analysis else data["status"]
    message = analysis["message"] if analysis else data["message"]
    caption = "Updated from Screenshot" if analysis else "Current Status"
    st.markdown(tile_html(caption, status, data["trend"], message), unsafe_allow_html=True)

    st.subheader("Update from Screenshot")
    upload = st.file_uploader("Screenshot", type=["png", "jpg", "jpeg", "webp", "gif"], key=f"upload-{tile_id}")
    if upload is not None:
        st.image(upload, width=360)
        if st.button("Analyze", key=f"analyze-{tile_id}"):
            with st.spinner("Analyzing..."):
                response = post_json(f"/api/tile/{tile_id}/analyze", {"image": to_data_url(upload)})
            if response and response.get("success"):
                st.session_state["tile_analysis"] = response["data"]
                st.rerun()
            else:
                st.warning("Failed to analyze screenshot. Please try again.")
    if analysis:
        st.caption(f"Confidence: {analysis['confidence']:.0f}%")
        st.table(pd.DataFrame(list(analysis["extractedMetrics"].items()), columns=["Metric", "Value"]))

    st.subheader("7-Day Trend")
    trend_df = pd.DataFrame(data["trendData"])
    if not trend_df.empty:
        trend_df["day"] = pd.Categorical(trend_df["day"], categories=trend_df["day"], ordered=True)
        st.area_chart(trend_df.set_index("day")["value"], color=STATUS_COLORS.get(data["status"]))

    st.subheader("Key Figures")
    figure_cols = st.columns(len(data["details"]) or 1)
    for column, (key, value) in zip(figure_cols, data["details"].items()):
        column.metric(DETAIL_LABELS.get(key, key), format_figure(value))

    insights_col, summary_col = st.columns(2)
    with insights_col:
        st.subheader("Insights")
        st.markdown("\n".join(f"- {insight}" for insight in data["insights"]))
    with summary_col:
        st.subheader("AI Summary")
        st.markdown(f'<div class="summary-text">{html.escape(data["aiSummary"])}</div>', unsafe_allow_html=True)


def render_vision():
    st.button("Back", key="back-home", on_click=go_to, args=("home",))
    st.title("Analyze Screenshot")
    st.markdown(
        '<span class="muted">Upload a billing, payments or operations dashboard to extract its key figures.</span>',
        unsafe_allow_html=True,
    )
    upload = st.file_uploader("Screenshot", type=["png", "jpg", "jpeg", "webp", "gif"], key="upload-vision")
    if upload is not None:
        st.image(upload, width=480)
        if st.button("Analyze", key="analyze-vision"):
            with st.spinner("Analyzing..."):
                st.session_state["vision_result"] = post_json(
                    "/api/integrations/vision",
                    {"image": to_data_url(upload)},
                    fallback={"success": False, "error": "API unavailable. Start the backend to analyze screenshots."},
                )

    response = st.session_state.get("vision_result")
    if not response:
        return
    if not response.get("success"):
        st.warning(response.get("error") or "Failed to analyze image. Please try again.")
        return
    result = response["data"]
    st.subheader(result["sourceType"])
    if response.get("source") == "demo":
        st.caption("Demo data")
    st.markdown(f'<div class="summary-text">{html.escape(result["summary"])}</div>', unsafe_allow_html=True)
    extracted = pd.DataFrame(list(result["extractedData"].items()), columns=["Metric", "Value"])
    st.dataframe(extracted, width="stretch", hide_index=True)


st.set_page_config(page_title="CFO Insight", layout="wide")
st.markdown(
    """
    <style>
        .block-container {
            padding-top: 1.25rem;
            padding-bottom: 1.25rem;
        }
        .muted {
            color: #6b6b6b;
        }
        .status-card {
            border: 1px solid rgba(255, 255, 255, 0.1);
            border-radius: 1rem;
            padding: 1.5rem;
            background: #12121A;
        }
        .tile-title {
            font-size: 0.8rem;
            text-transform: uppercase;
            letter-spacing: 0.15em;
            color: #71717a;
            margin-bottom: 1.25rem;
        }
        .ai-marker {
            margin-left: 0.5rem;
            color: #34d399;
            text-transform: none;
        }
        .tile-row {
            display: flex;
            align-items: center;
            justify-content: space-between;
            margin-bottom: 1.25rem;
        }
        .status-dot {
            width: 4rem;
            height: 4rem;
            border-radius: 50%;
        }
        .trend {
            font-size: 2rem;
            font-weight: 700;
        }
        .tile-message {
            font-size: 1.1rem;
            font-weight: 500;
            line-height: 1.5;
        }
        .summary-text {
            font-size: 16px;
            line-height: 1.4;
        }
        .footer {
            text-align: center;
            margin-top: 2rem;
        }
    </style>
    """,
    unsafe_allow_html=True,
)

view = st.session_state.setdefault("view", "home")
if view == "tile" and st.session_state.get("tile_id"):
    render_tile(st.session_state["tile_id"])
elif view == "vision":
    render_vision()
else:
    render_home()
