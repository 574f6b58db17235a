"""JSON response class using orjson serialization.

``ORJSONResponse`` is the application's default response class, used by the
JSON endpoints and by every error handler.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ORJSONResponse(JSONResponse):
    """JSON response rendered with orjson, with keys sorted for stable output."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON.

        Args:
            content: The content to serialize, optionally a Pydantic model.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)
