import json
import math
from typing import Any

import numpy as np
from fastapi.responses import JSONResponse


class SafeJSONResponse(JSONResponse):
    """JSONResponse that converts NaN/Infinity to null for JSON compliance."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            sanitize_floats(content),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")


def sanitize_floats(obj):
    """Recursively replace NaN/Infinity with None, unwrapping numpy scalars."""
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, dict):
        return {k: sanitize_floats(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_floats(v) for v in obj]
    return obj
