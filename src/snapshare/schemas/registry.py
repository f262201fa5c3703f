"""Schema registry and JSON Schema export."""

from __future__ import annotations

from typing import Dict, Type

from .event import Event
from .upload import HeaderConfig, UploadTarget

SchemaType = Type


SCHEMA_REGISTRY: Dict[str, SchemaType] = {
    "upload_target": UploadTarget,
    "header_config": HeaderConfig,
    "event": Event,
}


def get_schema_json(name: str) -> Dict:
    """Return JSON Schema for a registered schema name."""
    if name not in SCHEMA_REGISTRY:
        raise KeyError(f"Schema '{name}' is not registered")
    model = SCHEMA_REGISTRY[name]
    return model.model_json_schema(by_alias=True)
