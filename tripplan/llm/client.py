"""LLM completion client for itinerary generation.

Security: Reads API key from settings/environment only, never hardcoded.
Provides a deterministic stub when no key is present, for local runs and tests.

Clients return the raw chat-completion envelope as a plain dict; decoding is
the ResponseDecoder's job. SDK-level retries are disabled so retry policy is
owned by the RetryingRequestExecutor.
"""

import json
import logging
from datetime import timedelta
from typing import Any, Protocol

from openai import AsyncOpenAI

from tripplan.config import Settings, get_settings
from tripplan.models.request import TripRequest

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a professional travel planning assistant who builds personalized itineraries.

Rules:
1. Generate exactly as many days as the user asks for (X days -> X day objects).
2. Schedule several attractions per day, balancing size, value, and distance.
3. Take the user's transportation and accommodation into account when ordering visits.
4. Prefer attractions and food matching the user's preference tags.
5. Return strict JSON with every field present and valid.

Return the plan in exactly this JSON structure (the days array length MUST equal the
requested number of days):
{
  "travel_plan": {
    "destination": "destination city",
    "start_date": "YYYY-MM-DD",
    "end_date": "YYYY-MM-DD",
    "duration": number of days (integer),
    "accommodation": "accommodation type",
    "transportation": "transportation mode",
    "days": [
      {
        "day": day number starting at 1,
        "date": "YYYY-MM-DD",
        "activities": [
          {
            "type": "景点",
            "name": "attraction name",
            "description": "100-200 character description",
            "suggested_duration": "suggested visit length in hours",
            "tips": "practical advice"
          }
        ],
        "meals": {
          "breakfast": "breakfast suggestion",
          "lunch": "lunch suggestion",
          "dinner": "dinner suggestion"
        }
      }
    ]
  }
}"""


def build_user_prompt(request: TripRequest) -> str:
    """Build the user message from a trip request."""
    prefs = ", ".join(request.sorted_preferences()) or "none"
    days = request.travel_days
    return (
        f"Please plan a trip to {request.city} from {request.start_date.isoformat()} "
        f"to {request.end_date.isoformat()}, {days} days in total.\n"
        f"Transportation: {request.transportation}\n"
        f"Accommodation: {request.accommodation}\n"
        f"Preferences: {prefs}\n"
        f"Additional requests: {request.notes}\n\n"
        "Please note:\n"
        f"1. Plan exactly {days} days, no more and no fewer\n"
        "2. Schedule several attractions per day based on type, distance, and visit time\n"
        f"3. Order visits sensibly for my transportation ({request.transportation})\n"
        f"4. Recommend attractions and food that match my preferences ({prefs})\n"
        "5. Return standard JSON, complete and free of syntax errors"
    )


class CompletionClient(Protocol):
    """Protocol for LLM completion client implementations."""

    async def complete(self, request: TripRequest) -> dict[str, Any]:
        """Request an itinerary for ``request``.

        Returns:
            Raw chat-completion envelope ({"choices": [{"message": {"content": ...}}]})
        """
        ...


class DeterministicStubClient:
    """Deterministic stub client (no API key required).

    Produces a well-formed ``travel_plan`` payload derived only from the request.
    """

    async def complete(self, request: TripRequest) -> dict[str, Any]:
        """Generate deterministic stub envelope."""
        days = []
        for i in range(request.travel_days):
            day_date = request.start_date + timedelta(days=i)
            days.append(
                {
                    "day": i + 1,
                    "date": day_date.isoformat(),
                    "activities": [
                        {
                            "type": "景点",
                            "name": f"{request.city} highlight {i + 1}",
                            "description": f"Placeholder attraction for day {i + 1}",
                            "suggested_duration": "2",
                        }
                    ],
                    "meals": {
                        "breakfast": "Hotel breakfast",
                        "lunch": "Local lunch",
                        "dinner": "Local dinner",
                    },
                }
            )

        payload = {
            "travel_plan": {
                "destination": request.city,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "duration": request.travel_days,
                "accommodation": request.accommodation,
                "transportation": request.transportation,
                "days": days,
            }
        }
        return {
            "id": "stub",
            "object": "chat.completion",
            "model": "stub",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": json.dumps(payload)},
                    "finish_reason": "stop",
                }
            ],
        }


class OpenAICompatibleClient:
    """Chat-completions client for any OpenAI-compatible provider."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout_s: float = 120.0,
        max_tokens: int = 8192,
        temperature: float = 0.6,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize client.

        Args:
            api_key: Provider API key (read from environment)
            base_url: Provider base URL, e.g. https://api.siliconflow.cn/v1
            model: Model name
            timeout_s: Per-request timeout passed to the SDK
            max_tokens: Completion token ceiling
            temperature: Sampling temperature
            client: Optional preconfigured AsyncOpenAI (for testing)
        """
        self.client = client or AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout_s, max_retries=0
        )
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, request: TripRequest) -> dict[str, Any]:
        """Request an itinerary from the provider."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(request)},
            ],
            response_format={"type": "json_object"},
            stream=False,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=0.7,
            frequency_penalty=0.0,
            n=1,
            extra_body={"top_k": 50, "min_p": 0.0, "enable_thinking": False},
        )
        return response.model_dump()


def get_llm_client(settings: Settings | None = None) -> CompletionClient:
    """Factory function to get appropriate LLM client based on config.

    Returns:
        OpenAICompatibleClient if an API key is configured, DeterministicStubClient otherwise
    """
    settings = settings or get_settings()
    api_key = settings.llm_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI-compatible client ({settings.llm_model})")
        return OpenAICompatibleClient(
            api_key=api_key.get_secret_value(),
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            timeout_s=settings.request_timeout_ms / 1000,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
    else:
        logger.warning("No LLM API key configured, using deterministic stub client")
        return DeterministicStubClient()
