"""
Common schema types shared by every wire model.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Base for service payloads.

    Accepts camelCase wire keys as well as snake_case field names, ignores
    unknown keys, and is frozen: a snapshot is replaced, never edited.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ApiEnvelope(BaseModel):
    """Standard response envelope: ``{ok, data, error}``."""

    model_config = ConfigDict(extra="ignore")

    ok: bool = False
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ActionAck(WireModel):
    """Body of a mutation response whose fields the client does not need."""

    status: Optional[str] = None
