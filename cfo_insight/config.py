import os
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

from dotenv import load_dotenv

ENV_PATH = os.path.join(os.path.dirname(__file__), "..", "config", "env.local")
DEMO_CREDENTIAL = "demo"


class Mode(str, Enum):
    DEMO = "demo"
    LIVE = "live"


def load_environment(path: str = ENV_PATH) -> None:
    if os.path.exists(path):
        load_dotenv(path)


def resolve_mode(*credentials: str | None) -> Mode:
    """Live only when every credential is set and none is the literal "demo"."""
    for credential in credentials:
        if not credential or credential.strip() == DEMO_CREDENTIAL:
            return Mode.DEMO
    return Mode.LIVE


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_base_url: str | None = None
    stripe_secret_key: str | None = None
    stripe_api_base: str = "https://api.stripe.com"
    plaid_client_id: str | None = None
    plaid_secret: str | None = None
    request_timeout: float = 30.0

    @property
    def openai_mode(self) -> Mode:
        return resolve_mode(self.openai_api_key)

    @property
    def stripe_mode(self) -> Mode:
        return resolve_mode(self.stripe_secret_key)

    @property
    def bank_mode(self) -> Mode:
        return resolve_mode(self.plaid_client_id, self.plaid_secret)


def build_base_url(value: str | None) -> str | None:
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RuntimeError("OPENAI_BASE_URL must be an http(s) URL")
    return value.rstrip("/")


def load_settings() -> Settings:
    timeout = os.getenv("REQUEST_TIMEOUT", "30")
    try:
        request_timeout = float(timeout)
    except ValueError:
        raise RuntimeError(f"REQUEST_TIMEOUT must be a number of seconds, got {timeout!r}")

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        openai_base_url=build_base_url(os.getenv("OPENAI_BASE_URL")),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
        stripe_api_base=os.getenv("STRIPE_API_BASE", "https://api.stripe.com").rstrip("/"),
        plaid_client_id=os.getenv("PLAID_CLIENT_ID"),
        plaid_secret=os.getenv("PLAID_SECRET"),
        request_timeout=request_timeout,
    )
