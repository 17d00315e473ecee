"""JSON serialization of analysis results."""

from __future__ import annotations

import json

from pydantic import BaseModel


def to_json_data(model: BaseModel) -> dict:
    """JSON-compatible dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True)


def format_json(model: BaseModel) -> str:
    """Pretty-printed JSON for a PRAnalysis or any of its parts."""
    return json.dumps(to_json_data(model), indent=2, ensure_ascii=False)
