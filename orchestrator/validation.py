"""
Shape and range validation of capability responses.

Capabilities are allowed to be loose about what they return (a model, a
dict, or a string); these helpers normalise the response into the frozen
domain model and turn any validation problem into MalformedResponse.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from agents.base import AnalystProfile, MatchContext, Turn, Viewpoint
from agents.parsing import extract_json
from agents.signals import argument_strength, extract_data_points
from orchestrator.errors import MalformedResponse

logger = logging.getLogger(__name__)


def _summarize_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(problems)


def coerce_viewpoint(raw: Any, profile: AnalystProfile) -> Viewpoint:
    """
    Validate a generation response and bind it to ``profile``.

    Accepts a Viewpoint, a mapping of its fields, or a JSON string.
    Missing identity fields (analyst_id, analyst_name, methodology) are
    filled from the profile; a conflicting analyst_id is malformed.
    """
    if isinstance(raw, Viewpoint):
        data: dict[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = dict(raw)
    elif isinstance(raw, str):
        try:
            data, repaired = extract_json(raw)
        except ValueError as e:
            raise MalformedResponse(f"{profile.id}: response is not JSON ({e})") from e
        if repaired:
            logger.debug(f"[{profile.id}] viewpoint JSON needed repair")
    else:
        raise MalformedResponse(
            f"{profile.id}: unsupported response type {type(raw).__name__}"
        )

    claimed_id = data.get("analyst_id")
    if claimed_id and claimed_id != profile.id:
        raise MalformedResponse(
            f"{profile.id}: response claims analyst_id '{claimed_id}'"
        )
    data["analyst_id"] = profile.id
    if not data.get("analyst_name"):
        data["analyst_name"] = profile.name
    data.setdefault("methodology", profile.methodology)

    try:
        return Viewpoint.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"{profile.id}: {_summarize_validation_error(e)}") from e


def coerce_turn(raw: Any, context: MatchContext) -> Turn:
    """
    Validate a turn response against the turn that was asked for.

    Accepts a Turn, a mapping, or plain text content. Data points and
    argument strength are derived from the content when the producer
    did not supply them. Side, speaker and exchange must match the context.
    """
    if isinstance(raw, Turn):
        data: dict[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = dict(raw)
    elif isinstance(raw, str):
        data = {"content": raw}
    else:
        raise MalformedResponse(
            f"{context.match_id}: unsupported turn type {type(raw).__name__}"
        )

    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponse(f"{context.match_id}: turn has no content")
    data["content"] = content.strip()

    side = data.setdefault("side", context.side)
    if str(getattr(side, "value", side)) != context.side.value:
        raise MalformedResponse(
            f"{context.match_id}: expected a {context.side.value} turn, got {side}"
        )
    speaker_id = data.setdefault("speaker_id", context.speaker.analyst_id)
    if speaker_id != context.speaker.analyst_id:
        raise MalformedResponse(
            f"{context.match_id}: turn attributed to '{speaker_id}', "
            f"expected '{context.speaker.analyst_id}'"
        )
    data["exchange"] = context.exchange

    if data.get("data_points") is None:
        data["data_points"] = extract_data_points(data["content"])
    if data.get("argument_strength") is None:
        data["argument_strength"] = argument_strength(
            data["content"], context.speaker.methodology
        )

    try:
        return Turn.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(
            f"{context.match_id}: {_summarize_validation_error(e)}"
        ) from e
