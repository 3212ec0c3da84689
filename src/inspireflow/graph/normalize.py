"""Value normalization between port types.

Every value crossing an edge is coerced to the target port's type:

  text   -> str (or None)
  image  -> ref or list of refs (URL / data URI)
  video  -> single ref
  3d     -> single ref (remote archives accepted)
  any    -> unchanged

Normalization never raises. Anything that cannot be coerced becomes None.
"""

from __future__ import annotations

import json
from typing import Any

from inspireflow.graph.types import HandleType

_REMOTE_PREFIXES = ("http://", "https://", "file://")

_IMAGE_PREFIXES = ("data:image/", *_REMOTE_PREFIXES)
_VIDEO_PREFIXES = ("data:video/", *_REMOTE_PREFIXES)
_MODEL_PREFIXES = (
    "data:model/",
    "data:application/octet-stream",
    "data:application/zip",
    *_REMOTE_PREFIXES,
)

_TEXT_FIELDS = ("text", "content", "message", "output")
_IMAGE_FIELDS = ("image", "url", "src", "output", "data", "result")
_VIDEO_FIELDS = ("video", "url", "src", "output", "data", "result")
_MODEL_FIELDS = ("model", "url", "src", "output", "data", "result", "3d")

# Keys tried when pulling a value out of a node's raw property bag
_EXTRACT_FIELDS: dict[HandleType, tuple[str, ...]] = {
    HandleType.TEXT: ("text", "content", "message", "prompt", "output"),
    HandleType.IMAGE: ("image", "url", "src", "output"),
    HandleType.VIDEO: ("video", "url", "src", "output"),
    HandleType.MODEL_3D: ("model", "3d", "url", "src", "output"),
}


def _dumps(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def normalize_to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return "\n".join(value)
        return _dumps(list(value))
    if isinstance(value, dict):
        for key in _TEXT_FIELDS:
            if key in value and value[key] is not None:
                return normalize_to_text(value[key])
        return _dumps(value)
    return str(value)


def _accepts(value: Any, prefixes: tuple[str, ...]) -> bool:
    return isinstance(value, str) and value.startswith(prefixes)


def _from_mapping(value: dict[str, Any], fields: tuple[str, ...], prefixes: tuple[str, ...],
                  default_mime: str | None) -> str | None:
    for key in fields:
        candidate = value.get(key)
        if _accepts(candidate, prefixes):
            return candidate
        if isinstance(candidate, dict):
            nested = _from_mapping(candidate, fields, prefixes, default_mime)
            if nested:
                return nested
    data = value.get("data")
    if default_mime and isinstance(data, str) and data:
        mime = value.get("mimeType") or value.get("mime_type") or default_mime
        return f"data:{mime};base64,{data}"
    return None


def normalize_to_image(value: Any) -> str | list[str] | None:
    """Image ref, or a flat list of refs when ``value`` is a list."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        refs: list[str] = []
        for item in value:
            normalized = normalize_to_image(item)
            if isinstance(normalized, list):
                refs.extend(normalized)
            elif normalized:
                refs.append(normalized)
        return refs or None
    if isinstance(value, str):
        return value if _accepts(value, _IMAGE_PREFIXES) else None
    if isinstance(value, dict):
        return _from_mapping(value, _IMAGE_FIELDS, _IMAGE_PREFIXES, "image/png")
    return None


def _normalize_single(value: Any, fields: tuple[str, ...], prefixes: tuple[str, ...],
                      default_mime: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        for item in value:
            normalized = _normalize_single(item, fields, prefixes, default_mime)
            if normalized:
                return normalized
        return None
    if isinstance(value, str):
        return value if _accepts(value, prefixes) else None
    if isinstance(value, dict):
        return _from_mapping(value, fields, prefixes, default_mime)
    return None


def normalize_to_video(value: Any) -> str | None:
    return _normalize_single(value, _VIDEO_FIELDS, _VIDEO_PREFIXES, "video/mp4")


def normalize_to_3d(value: Any) -> str | None:
    return _normalize_single(value, _MODEL_FIELDS, _MODEL_PREFIXES, "application/octet-stream")


def normalize(value: Any, handle_type: HandleType | str | None) -> Any:
    """Coerce ``value`` into ``handle_type``. Unknown types pass through."""
    try:
        target = HandleType(handle_type) if handle_type is not None else HandleType.ANY
    except ValueError:
        return value
    match target:
        case HandleType.TEXT:
            return normalize_to_text(value)
        case HandleType.IMAGE:
            return normalize_to_image(value)
        case HandleType.VIDEO:
            return normalize_to_video(value)
        case HandleType.MODEL_3D:
            return normalize_to_3d(value)
        case _:
            return value


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def extract_from_node(data: dict[str, Any], handle_type: HandleType | str | None) -> Any:
    """Best-effort value of ``handle_type`` from a node's raw property bag."""
    if not data:
        return None
    try:
        target = HandleType(handle_type) if handle_type is not None else HandleType.ANY
    except ValueError:
        target = HandleType.ANY

    if "output" in data:
        from_output = normalize(data["output"], target)
        if not is_empty(from_output):
            return from_output

    if target == HandleType.ANY:
        return data.get("output")

    for key in _EXTRACT_FIELDS[target]:
        if key not in data:
            continue
        candidate = normalize(data[key], target)
        if not is_empty(candidate):
            return candidate
    return None
