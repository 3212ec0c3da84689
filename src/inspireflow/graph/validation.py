"""Required-field checks run before a node executes.

A requirement is met either by a connected input port or by a non-empty
literal on the node. Unknown node types have no requirements.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from inspireflow.graph.types import Edge, Node, NodeKind


@dataclass(frozen=True)
class MissingField:
    key: str
    label: str


@dataclass(frozen=True)
class _Requirement:
    key: str
    label: str
    port: str | None = None
    fields: tuple[str, ...] = ()
    strings_only: bool = False


_PROMPT = _Requirement("prompt", "Prompt", port="text", fields=("prompt",), strings_only=True)

REQUIREMENTS: dict[NodeKind, tuple[_Requirement, ...]] = {
    NodeKind.TEXT_GEN: (_PROMPT,),
    NodeKind.IMAGE_GEN: (_PROMPT,),
    NodeKind.VIDEO_GEN: (_PROMPT,),
    NodeKind.GEN_3D: (_PROMPT,),
    NodeKind.TEXT_INPUT: (
        _Requirement("text", "Text", fields=("text", "output"), strings_only=True),
    ),
    NodeKind.IMAGE_INPUT: (_Requirement("image", "Image", fields=("image",)),),
    NodeKind.VIDEO_INPUT: (_Requirement("video", "Video", fields=("video",)),),
    NodeKind.INPUT_3D: (
        _Requirement("url", "3D download URL", fields=("url", "model", "output"), strings_only=True),
    ),
    NodeKind.TEXT_PREVIEW: (
        _Requirement("text", "Upstream text", port="text", fields=("text", "output")),
    ),
    NodeKind.IMAGE_PREVIEW: (
        _Requirement("image", "Upstream image", port="image",
                     fields=("image", "output", "url", "src")),
    ),
    NodeKind.VIDEO_PREVIEW: (
        _Requirement("video", "Upstream video", port="video",
                     fields=("video", "output", "url", "src")),
    ),
    NodeKind.PREVIEW_3D: (
        _Requirement("model", "Upstream 3D", port="model",
                     fields=("model", "3d", "output", "url", "src")),
    ),
    NodeKind.SCRIPT_RUNNER: (
        _Requirement("code", "Code", fields=("code",), strings_only=True),
        _Requirement("language", "Language", fields=("language",), strings_only=True),
    ),
}


def _has_value(value: Any, strings_only: bool) -> bool:
    if strings_only:
        return isinstance(value, str) and bool(value.strip())
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def _connected_ports(node_id: str, edges: Iterable[Edge]) -> set[str]:
    return {e.target_slot for e in edges if e.target == node_id}


def validate_node_required(node: Node, edges: Iterable[Edge]) -> list[MissingField]:
    """Requirements of ``node`` that are neither connected nor filled in."""
    kind = node.kind
    if kind is None:
        return []
    ports = _connected_ports(node.id, edges)
    missing: list[MissingField] = []
    for req in REQUIREMENTS.get(kind, ()):
        if req.port is not None and req.port in ports:
            continue
        if any(_has_value(node.data.get(f), req.strings_only) for f in req.fields):
            continue
        missing.append(MissingField(req.key, req.label))
    return missing


def format_missing_required(missing: Iterable[MissingField]) -> str:
    return ", ".join(m.label for m in missing)
