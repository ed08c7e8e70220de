import json
import logging
import re

from openai import OpenAI

from cfo_insight.config import Settings

logger = logging.getLogger("cfo_insight.llm")

FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def get_client(settings: Settings) -> OpenAI:
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
    )


def parse_json_reply(content: str | None) -> dict:
    """Parse a model reply that should hold a single JSON object.

    Models sometimes wrap the object in a markdown code fence despite being
    told not to, so the fence is stripped first.
    """
    if not content:
        raise ValueError("Empty completion")
    parsed = json.loads(FENCE_RE.sub("", content.strip()))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def complete_json(client, model: str, messages: list[dict], max_tokens: int, **options) -> dict:
    response = client.chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        **options,
    )
    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.warning("Completion from %s was empty", model)
    return parse_json_reply(content)
