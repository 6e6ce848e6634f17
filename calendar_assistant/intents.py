"""Typed intent models for the JSON the model returns.

The model is asked for ``{"action": ..., "params": {...}}``.  ``action`` is
the discriminator; each variant validates the fields it needs, so nothing
downstream has to guess whether a field is present.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _IntentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Parameter payloads ──────────────────────────────────────────────


class CreateEventParams(_IntentModel):
    """One event to write to the calendar."""

    title: str = Field(..., min_length=1)
    start_time: str = Field(..., alias="startTime", min_length=1)
    end_time: str = Field(..., alias="endTime", min_length=1)
    location: str | None = None
    description: str | None = None


class BatchCreateParams(_IntentModel):
    events: list[CreateEventParams]


class QueryParams(_IntentModel):
    time_min: str | None = Field(None, alias="timeMin")
    time_max: str | None = Field(None, alias="timeMax")


class ChatParams(_IntentModel):
    response: str = Field(..., min_length=1)


# ── Intent variants ─────────────────────────────────────────────────


class CreateIntent(_IntentModel):
    action: Literal["create"]
    params: CreateEventParams


class BatchCreateIntent(_IntentModel):
    action: Literal["batch_create"]
    params: BatchCreateParams


class QueryIntent(_IntentModel):
    action: Literal["query"]
    params: QueryParams = Field(default_factory=QueryParams)

    @field_validator("params", mode="before")
    @classmethod
    def _null_params_mean_no_bounds(cls, value: Any) -> Any:
        return {} if value is None else value


class DeleteIntent(_IntentModel):
    action: Literal["delete"]
    params: dict[str, Any] | None = None


class ChatIntent(_IntentModel):
    action: Literal["chat"]
    params: ChatParams


class UnknownIntent(_IntentModel):
    action: Literal["unknown"]
    params: dict[str, Any] | None = None


Intent = Annotated[
    Union[CreateIntent, BatchCreateIntent, QueryIntent, DeleteIntent, ChatIntent, UnknownIntent],
    Field(discriminator="action"),
]

_intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)


def parse_intent_json(raw_json: str) -> Intent:
    """Validate a JSON document into an :data:`Intent`.

    Raises ``pydantic.ValidationError`` for malformed JSON, a missing or
    unrecognized ``action``, or a variant missing its required fields.
    """
    return _intent_adapter.validate_json(raw_json)


__all__ = [
    "BatchCreateIntent",
    "BatchCreateParams",
    "ChatIntent",
    "ChatParams",
    "CreateEventParams",
    "CreateIntent",
    "DeleteIntent",
    "Intent",
    "QueryIntent",
    "QueryParams",
    "UnknownIntent",
    "parse_intent_json",
]
