import json
from typing import Any

import structlog
from pydantic import BaseModel

from utilities.constants import EMPTY_FRAME, HEARTBEAT_FRAME
from utilities.errors import SerializationError

logger = structlog.get_logger()


def serialize_value(value: Any) -> str:
    """Render a published value as compact JSON.

    Raises SerializationError for anything that is not JSON-representable.
    """
    try:
        if isinstance(value, BaseModel):
            return value.model_dump_json()
        return json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(str(e)) from e


# Server -> client frames are built as SSE text blocks
def make_frame(value: Any) -> str:
    """One self-terminated `data:` frame; an empty object if serialization fails."""
    try:
        payload = serialize_value(value)
    except SerializationError as e:
        logger.warning("stream.serialization_failed", error=str(e), value_type=type(value).__name__)
        return EMPTY_FRAME
    return f"data: {payload}\n\n"


def make_heartbeat() -> str:
    return HEARTBEAT_FRAME
