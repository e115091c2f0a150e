import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..config import Settings, get_settings
from ..models import DailyInsight

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
ANTHROPIC_VERSION = "2023-06-01"

INSIGHT_PROMPT = """You are a GeoGuessr expert helping players improve their skills. Generate a unique daily insight about something specific to look out for when playing GeoGuessr.

The insight should cover ONE specific, actionable clue about a country, region, or area, such as road markings, bollards, language on signs, vegetation, vehicles, infrastructure, camera artifacts, phone number formats, architecture, driving side, or sun position.
{previous}
Respond in this exact JSON format (no markdown wrapping):
{{
  "title": "Short catchy title (max 60 chars)",
  "body": "2-3 paragraphs of detailed, specific, actionable advice naming the country or region.",
  "imageSearchQuery": "A very specific image search query that would find a good example photo of the clue"
}}"""


class InsightGenerationError(RuntimeError):
    pass


@dataclass
class GeneratedInsight:
    title: str
    body: str
    image_search_query: str | None = None
    image_url: str | None = None
    image_caption: str | None = None


def build_prompt(previous_bodies: Sequence[str]) -> str:
    previous = ""
    if previous_bodies:
        listed = "\n".join(f"{index}. {body}" for index, body in enumerate(previous_bodies, start=1))
        previous = (
            "\nIMPORTANT: Here are ALL previous daily insights. Your new insight MUST be completely "
            "different from all of these: different country/region, different topic, different clues:\n\n"
            f"{listed}\n"
        )
    return INSIGHT_PROMPT.format(previous=previous)


def parse_insight_response(text: str) -> GeneratedInsight:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = JSON_OBJECT_PATTERN.search(text or "")
        if not match:
            raise InsightGenerationError("Failed to parse AI response") from None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise InsightGenerationError("Failed to parse AI response") from exc

    if not isinstance(parsed, dict) or not parsed.get("title") or not parsed.get("body"):
        raise InsightGenerationError("AI response is missing a title or body")
    return GeneratedInsight(
        title=str(parsed["title"]),
        body=str(parsed["body"]),
        image_search_query=parsed.get("imageSearchQuery") or None,
    )


class InsightGenerator:
    """Asks the language model for a tip, then looks up an illustrating image."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self.client = client

    async def generate(self, previous_bodies: Sequence[str]) -> GeneratedInsight:
        # an injected client is shared and stays open
        if self.client is not None:
            return await self._generate(self.client, previous_bodies)
        timeout = httpx.Timeout(self.settings.insight_timeout_seconds, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await self._generate(client, previous_bodies)

    async def _generate(self, client: httpx.AsyncClient, previous_bodies: Sequence[str]) -> GeneratedInsight:
        insight = await self._ask_model(client, build_prompt(previous_bodies))
        if insight.image_search_query:
            insight.image_url, insight.image_caption = await self._find_image(client, insight.image_search_query)
        return insight

    async def _ask_model(self, client: httpx.AsyncClient, prompt: str) -> GeneratedInsight:
        try:
            response = await client.post(
                self.settings.anthropic_api_url,
                headers={
                    "x-api-key": self.settings.anthropic_api_key or "",
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                json={
                    "model": self.settings.anthropic_model,
                    "max_tokens": 1024,
                    "messages": [{"role": "user", "content": prompt}],
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise InsightGenerationError(f"Insight request failed: {exc}") from exc

        try:
            blocks = response.json().get("content") or []
            text = next((block.get("text", "") for block in blocks if block.get("type") == "text"), "")
        except (ValueError, AttributeError, TypeError) as exc:
            raise InsightGenerationError("Failed to parse AI response") from exc
        return parse_insight_response(text)

    async def _find_image(self, client: httpx.AsyncClient, query: str) -> tuple[Optional[str], Optional[str]]:
        api_key = self.settings.google_custom_search_api_key
        engine_id = self.settings.google_custom_search_engine_id
        if not api_key or not engine_id:
            return None, None
        try:
            response = await client.get(
                GOOGLE_SEARCH_URL,
                params={
                    "key": api_key,
                    "cx": engine_id,
                    "q": f"{query} GeoGuessr clue",
                    "searchType": "image",
                    "num": 1,
                    "safe": "active",
                },
            )
            response.raise_for_status()
            items = response.json().get("items") or []
            if not items:
                return None, None
            return items[0].get("link"), items[0].get("title") or query
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as exc:
            logger.warning("Image search failed for %r: %s", query, exc)
            return None, None


def get_insight_generator() -> InsightGenerator | None:
    settings = get_settings()
    if not settings.insights_enabled:
        return None
    return InsightGenerator(settings)


class InsightService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, date_key: str) -> Optional[DailyInsight]:
        return await self.session.get(DailyInsight, date_key)

    async def list_all(self) -> Sequence[DailyInsight]:
        result = await self.session.execute(select(DailyInsight).order_by(DailyInsight.date.desc()))
        return result.scalars().all()

    async def previous_bodies(self) -> list[str]:
        result = await self.session.execute(select(DailyInsight.body).order_by(DailyInsight.date))
        return list(result.scalars().all())

    async def save(self, date_key: str, generated: GeneratedInsight) -> tuple[DailyInsight, bool]:
        """Store the day's insight; returns ``(insight, created)``."""
        insight = DailyInsight(
            date=date_key,
            title=generated.title,
            body=generated.body,
            image_url=generated.image_url,
            image_caption=generated.image_caption,
        )
        self.session.add(insight)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            existing = await self.get(date_key)
            if existing is None:
                raise
            return existing, False
        await self.session.refresh(insight)
        return insight, True
