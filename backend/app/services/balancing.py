"""Boundary to the external team-balancing service.

The service is a generative model that proposes doubles pairings for the
players attending a session. Nothing here balances teams itself: this
module builds the outbound request, performs one call, and validates what
comes back. Failures are reported, never retried or repaired.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, get_settings
from ..domain import IndividualRanking
from ..exceptions import CollaboratorContractViolation, CollaboratorUnavailable
from ..schemas import BalancingPlayer, TeamSuggestion
from .validation import ValidationError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
MIN_ATTENDANCE = 4

_TEAM_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "player1": {"type": "STRING", "description": "Name of the first player."},
        "player2": {"type": "STRING", "description": "Name of the second player."},
    },
    "required": ["player1", "player2"],
}

SUGGESTION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "matchups": {
            "type": "ARRAY",
            "description": "An array of suggested matchups.",
            "items": {
                "type": "OBJECT",
                "properties": {"teamA": _TEAM_SCHEMA, "teamB": _TEAM_SCHEMA},
                "required": ["teamA", "teamB"],
            },
        },
        "rationale": {
            "type": "STRING",
            "description": "A brief explanation for the suggested pairings and matchups.",
        },
    },
    "required": ["matchups", "rationale"],
}

RANKING_ADVICE_PROMPT = """
Suggest a ranking formula for an amateur beach tennis league that rewards participation but still prioritizes winning.
The goal is to avoid penalizing players who play many more games than others and might accumulate more losses.
Provide a clear formula and a brief explanation of why it's a good approach for a friendly, amateur setting.
Format the response in Markdown.
""".strip()


def _team_prompt(request: Sequence[BalancingPlayer]) -> str:
    roster = json.dumps([p.model_dump() for p in request], ensure_ascii=False)
    return f"""
Act as an expert beach tennis coach and tournament organizer.
You are given a list of amateur players available for today's games, along with their performance score and win rate.
Your task is to create the most balanced and competitive doubles teams possible to ensure fun and exciting matches.

Here are the players available today:
{roster}

Based on this data, please suggest pairs and matchups.
Try to pair stronger players with weaker ones to balance the teams.
Each player may appear in at most one matchup.
Provide a brief rationale for your suggestions.
You MUST return ONLY a JSON object that strictly follows the provided schema.
""".strip()


class BalancingClient(Protocol):
    async def generate(
        self, prompt: str, *, response_schema: Optional[dict[str, Any]] = None
    ) -> str: ...


class GeminiBalancingClient:
    """Calls the Gemini ``generateContent`` REST endpoint once per request."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        timeout: float = 30.0,
        base_url: str = GEMINI_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiBalancingClient":
        if not settings.ai_api_key:
            raise CollaboratorUnavailable(
                CollaboratorUnavailable.NOT_CONFIGURED,
                "GEMINI_API_KEY is not set; team suggestions are disabled.",
            )
        return cls(
            settings.ai_api_key,
            model=settings.ai_model,
            timeout=settings.balancing_timeout,
        )

    async def generate(
        self, prompt: str, *, response_schema: Optional[dict[str, Any]] = None
    ) -> str:
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        url = f"{self._base_url}/models/{self._model}:generateContent"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url, json=body, headers={"x-goog-api-key": self._api_key}
                )
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Balancing call timed out after %.1fs", self._timeout)
            raise CollaboratorUnavailable(
                CollaboratorUnavailable.CALL_FAILED,
                "The balancing service did not answer in time.",
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Balancing call failed with HTTP %s", exc.response.status_code
            )
            raise CollaboratorUnavailable(
                CollaboratorUnavailable.CALL_FAILED,
                f"The balancing service answered HTTP {exc.response.status_code}.",
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Balancing call failed: %s", exc)
            raise CollaboratorUnavailable(
                CollaboratorUnavailable.CALL_FAILED,
                "Could not reach the balancing service.",
            ) from exc

        return _extract_text(response)


def _extract_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
        parts = payload["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
        raise CollaboratorContractViolation(
            "The balancing service returned an unreadable envelope."
        ) from exc
    if not text.strip():
        raise CollaboratorContractViolation("The balancing service returned no content.")
    return text


def build_balancing_request(
    rankings: Iterable[IndividualRanking], attendance: Iterable[str]
) -> list[BalancingPlayer]:
    """Select attending players from the rankings, keeping ranking order."""

    attending = set(attendance)
    request = [
        BalancingPlayer(
            name=r.name,
            performanceScore=round(r.performance_score, 1),
            winRate=round(r.win_rate, 3),
        )
        for r in rankings
        if r.player_id in attending
    ]
    if len(request) < MIN_ATTENDANCE:
        raise ValidationError(
            f"At least {MIN_ATTENDANCE} attending players are needed (got {len(request)})."
        )
    return request


def parse_suggestion(text: str) -> TeamSuggestion:
    try:
        return TeamSuggestion.model_validate_json(text.strip())
    except PydanticValidationError as exc:
        raise CollaboratorContractViolation(
            f"The balancing response does not match the expected shape: {exc.error_count()} error(s)."
        ) from exc


def check_suggestion(
    suggestion: TeamSuggestion, request: Sequence[BalancingPlayer]
) -> TeamSuggestion:
    """Every name must come from the request and appear at most once."""

    allowed = {p.name for p in request}
    seen: set[str] = set()
    for index, matchup in enumerate(suggestion.matchups, start=1):
        for name in matchup.names():
            if name not in allowed:
                raise CollaboratorContractViolation(
                    f"Matchup #{index} names '{name}', who is not attending."
                )
            if name in seen:
                raise CollaboratorContractViolation(
                    f"Matchup #{index} repeats '{name}', who is already placed."
                )
            seen.add(name)
    return suggestion


def _resolve_client(
    client: Optional[BalancingClient], settings: Optional[Settings]
) -> BalancingClient:
    if client is not None:
        return client
    return GeminiBalancingClient.from_settings(settings or get_settings())


async def suggest_teams(
    rankings: Sequence[IndividualRanking],
    attendance: Iterable[str],
    *,
    client: Optional[BalancingClient] = None,
    settings: Optional[Settings] = None,
) -> TeamSuggestion:
    """Ask the balancing service for matchups among the attending players.

    Raises:
        CollaboratorUnavailable: not configured (before any network I/O) or
            the call failed.
        CollaboratorContractViolation: the answer is malformed or names
            players outside the attendance list.
        ValidationError: fewer than four attending players.
    """

    backend = _resolve_client(client, settings)
    request = build_balancing_request(rankings, attendance)
    logger.info("Requesting balanced teams for %d player(s)", len(request))
    text = await backend.generate(_team_prompt(request), response_schema=SUGGESTION_SCHEMA)
    return check_suggestion(parse_suggestion(text), request)


async def suggest_ranking_formula(
    *,
    client: Optional[BalancingClient] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Free-text advice on ranking formulas; never applied automatically."""

    backend = _resolve_client(client, settings)
    return (await backend.generate(RANKING_ADVICE_PROMPT)).strip()
