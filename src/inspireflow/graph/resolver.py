"""Input resolution for a node about to run.

For every edge into the node the value is read from the ExecutionContext
slot named by the edge's source handle, falling back to the source node's
property bag (its ``outputs`` port map, then its other fields). Values are
normalized to the target port type and merged per port: text concatenates
with newlines, everything else collects into a list.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from inspireflow.graph.normalize import extract_from_node, is_empty, normalize
from inspireflow.graph.types import (
    DEFAULT_SLOT,
    OUTPUTS_KEY,
    Edge,
    ExecutionContext,
    HandleType,
    Node,
    NodeKind,
    get_handle_type,
    get_node_schema,
)

# Convenience keys filled by port type for handlers that read by type
LEGACY_KEYS: dict[HandleType, str] = {
    HandleType.TEXT: "text",
    HandleType.IMAGE: "image",
    HandleType.VIDEO: "video",
    HandleType.MODEL_3D: "model",
}


def _copy(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value


def merge_values(existing: Any, incoming: Any, handle_type: HandleType) -> Any:
    """Merge a second edge's value into a port that already has one."""
    if existing is None:
        return _copy(incoming)
    if incoming is None:
        return existing
    if handle_type == HandleType.TEXT:
        return f"{existing}\n{incoming}"
    merged = list(existing) if isinstance(existing, list) else [existing]
    if isinstance(incoming, list):
        merged.extend(incoming)
    else:
        merged.append(incoming)
    return merged


def _target_type(node: Node, edge: Edge) -> HandleType:
    return get_handle_type(node.type, edge.target_slot, "input") or HandleType.ANY


def _source_type(edge: Edge, nodes_by_id: Mapping[str, Node]) -> HandleType | None:
    source = nodes_by_id.get(edge.source)
    schema = get_node_schema(source.type) if source else None
    if schema is None:
        return None
    if edge.source_handle:
        handle = schema.find(edge.source_handle, "output")
        return handle.type if handle else None
    return schema.outputs[0].type if schema.outputs else None


def _source_value(
    edge: Edge,
    nodes_by_id: Mapping[str, Node],
    context: ExecutionContext | None,
    hint: HandleType,
) -> Any:
    if context is not None and context.has(edge.source, edge.source_slot):
        value = context.get(edge.source, edge.source_slot)
        if not is_empty(value):
            return value
    source = nodes_by_id.get(edge.source)
    if source is None:
        return None
    ports = source.data.get(OUTPUTS_KEY)
    if isinstance(ports, dict) and not is_empty(ports.get(edge.source_slot)):
        return ports[edge.source_slot]
    return extract_from_node(source.data, hint)


def resolve_inputs(
    node: Node,
    nodes_by_id: Mapping[str, Node],
    edges: Iterable[Edge],
    context: ExecutionContext | None = None,
) -> dict[str, Any]:
    """Build the ``inputs`` map of ``node`` from its incoming edges.

    Without a context (single-node runs) every value comes from the upstream
    nodes' property bags.
    """
    inputs: dict[str, Any] = {}
    legacy: dict[str, Any] = {}

    for edge in edges:
        if edge.target != node.id:
            continue
        handle_type = _target_type(node, edge)
        source_type = _source_type(edge, nodes_by_id)
        hint = handle_type if handle_type != HandleType.ANY else (source_type or HandleType.ANY)
        raw = _source_value(edge, nodes_by_id, context, hint)
        value = normalize(raw, handle_type)
        if value is None:
            continue
        port = edge.target_slot
        inputs[port] = merge_values(inputs.get(port), value, handle_type)

        key = LEGACY_KEYS.get(hint)
        if key is None or key == port:
            continue
        legacy_value = normalize(value, hint)
        if legacy_value is not None:
            legacy[key] = merge_values(legacy.get(key), legacy_value, hint)

    for key, value in legacy.items():
        if key in inputs:
            continue
        inputs[key] = value

    if "text" in inputs and "prompt" not in inputs:
        inputs["prompt"] = inputs["text"]
    return inputs


def build_output_map(node_type: str | NodeKind, output: Any) -> dict[str, Any]:
    """Per-port values for a node's output, plus legacy type aliases."""
    schema = get_node_schema(node_type)
    if schema is None:
        return {}

    kind = node_type if isinstance(node_type, NodeKind) else NodeKind.parse(node_type)
    if kind == NodeKind.PREVIEW_3D:
        value = normalize(output, HandleType.MODEL_3D)
        return {"model": value, "3d": value}

    result: dict[str, Any] = {}
    for handle in schema.outputs:
        value = normalize(output, handle.type)
        result[handle.id] = value
        alias = LEGACY_KEYS.get(handle.type)
        if alias and alias not in result:
            result[alias] = value
    return result

