"""Workflow graph types.

Core concepts:
  - Node:          one step of the workflow (generator, input, preview, script)
  - Edge:          typed connection from an output port to an input port
  - HandleDef:     a port on a node type's static schema
  - ExecutionContext: per-run store of every node's produced values
  - ExecutionResult:  outcome of one node in a run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal


# ── Constants ────────────────────────────────────────────────────

DEFAULT_SLOT = "default"

# Keys the engine writes into a node's property bag after it runs. Port values
# live under OUTPUTS_KEY so they never overwrite settings such as ``model``.
OUTPUT_KEY = "output"
OUTPUTS_KEY = "outputs"

Direction = Literal["input", "output"]


# ── Enums ────────────────────────────────────────────────────────

class HandleType(StrEnum):
    """Data type carried by a port."""
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    MODEL_3D = "3d"
    ANY = "any"

    @classmethod
    def _missing_(cls, value: object) -> HandleType | None:
        if isinstance(value, str) and value.lower() == "string":
            return cls.TEXT
        return None


class NodeKind(StrEnum):
    """Node types understood by the engine (editor identifiers)."""
    TEXT_GEN = "textGen"
    IMAGE_GEN = "imageGen"
    VIDEO_GEN = "videoGen"
    GEN_3D = "3dGen"
    SCRIPT_RUNNER = "scriptRunner"
    TEXT_INPUT = "textInput"
    IMAGE_INPUT = "imageInput"
    VIDEO_INPUT = "videoInput"
    INPUT_3D = "3dInput"
    TEXT_PREVIEW = "textPreview"
    IMAGE_PREVIEW = "imagePreview"
    VIDEO_PREVIEW = "videoPreview"
    PREVIEW_3D = "3dPreview"

    @classmethod
    def _missing_(cls, value: object) -> NodeKind | None:
        # Accept kebab-case aliases: "text-gen", "3d-preview", ...
        if not isinstance(value, str):
            return None
        flat = value.replace("-", "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == flat:
                return member
        return None

    @classmethod
    def parse(cls, value: str) -> NodeKind | None:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_input(self) -> bool:
        return self in _INPUT_KINDS

    @property
    def is_preview(self) -> bool:
        return self in _PREVIEW_KINDS

    @property
    def is_generator(self) -> bool:
        return self in _GENERATOR_KINDS


_INPUT_KINDS = frozenset({
    NodeKind.TEXT_INPUT, NodeKind.IMAGE_INPUT, NodeKind.VIDEO_INPUT, NodeKind.INPUT_3D,
})
_PREVIEW_KINDS = frozenset({
    NodeKind.TEXT_PREVIEW, NodeKind.IMAGE_PREVIEW, NodeKind.VIDEO_PREVIEW, NodeKind.PREVIEW_3D,
})
_GENERATOR_KINDS = frozenset({
    NodeKind.TEXT_GEN, NodeKind.IMAGE_GEN, NodeKind.VIDEO_GEN, NodeKind.GEN_3D,
})


# ── Node / Edge ──────────────────────────────────────────────────

@dataclass
class Node:
    """A workflow node.

    ``data`` is the editor's property bag. The engine reads typed configs from
    it (see graph.configs) and writes ``output`` and the per-port ``outputs``
    map back after the node runs.
    """
    id: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    skip: bool = False

    @property
    def kind(self) -> NodeKind | None:
        return NodeKind.parse(self.type)

    @property
    def label(self) -> str:
        return str(self.data.get("label") or self.type or self.id)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type, "data": dict(self.data), "skip": self.skip}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Node:
        data = dict(d.get("data") or {})
        skip = bool(d.get("skip", data.get("skip", False)))
        return cls(id=str(d["id"]), type=str(d.get("type", "")), data=data, skip=skip)


@dataclass(frozen=True)
class Edge:
    """Connection from ``source``'s output port to ``target``'s input port."""
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None

    @property
    def source_slot(self) -> str:
        return self.source_handle or DEFAULT_SLOT

    @property
    def target_slot(self) -> str:
        return self.target_handle or DEFAULT_SLOT

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "source_handle": self.source_handle,
            "target_handle": self.target_handle,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Edge:
        return cls(
            source=str(d["source"]),
            target=str(d["target"]),
            source_handle=d.get("source_handle", d.get("sourceHandle")),
            target_handle=d.get("target_handle", d.get("targetHandle")),
        )


# ── Handle schemas ───────────────────────────────────────────────

@dataclass(frozen=True)
class HandleDef:
    """A port declared by a node type."""
    id: str
    type: HandleType
    label: str = ""


@dataclass(frozen=True)
class NodeHandleSchema:
    inputs: tuple[HandleDef, ...] = ()
    outputs: tuple[HandleDef, ...] = ()

    def find(self, handle_id: str, direction: Direction) -> HandleDef | None:
        handles = self.inputs if direction == "input" else self.outputs
        for handle in handles:
            if handle.id == handle_id:
                return handle
        return None


_T, _I, _V, _M, _A = (
    HandleType.TEXT, HandleType.IMAGE, HandleType.VIDEO, HandleType.MODEL_3D, HandleType.ANY,
)

_GEN_INPUTS = (HandleDef("text", _T, "Text"), HandleDef("image", _I, "Image"))

NODE_HANDLE_SCHEMAS: dict[NodeKind, NodeHandleSchema] = {
    NodeKind.TEXT_GEN: NodeHandleSchema(_GEN_INPUTS, (HandleDef("text", _T, "Text"),)),
    NodeKind.IMAGE_GEN: NodeHandleSchema(_GEN_INPUTS, (HandleDef("image", _I, "Image"),)),
    NodeKind.VIDEO_GEN: NodeHandleSchema(_GEN_INPUTS, (HandleDef("video", _V, "Video"),)),
    NodeKind.GEN_3D: NodeHandleSchema(_GEN_INPUTS, (HandleDef("model", _M, "3D model"),)),
    NodeKind.SCRIPT_RUNNER: NodeHandleSchema(
        (HandleDef("input1", _A, "Input 1"), HandleDef("input2", _A, "Input 2")),
        (HandleDef("output", _A, "Output"),),
    ),
    NodeKind.TEXT_INPUT: NodeHandleSchema((), (HandleDef("text", _T, "Text"),)),
    NodeKind.IMAGE_INPUT: NodeHandleSchema((), (HandleDef("image", _I, "Image"),)),
    NodeKind.VIDEO_INPUT: NodeHandleSchema((), (HandleDef("video", _V, "Video"),)),
    NodeKind.INPUT_3D: NodeHandleSchema((), (HandleDef("model", _M, "3D model"),)),
    NodeKind.TEXT_PREVIEW: NodeHandleSchema((HandleDef("text", _T, "Text"),), ()),
    NodeKind.IMAGE_PREVIEW: NodeHandleSchema((HandleDef("image", _I, "Image"),), ()),
    NodeKind.VIDEO_PREVIEW: NodeHandleSchema((HandleDef("video", _V, "Video"),), ()),
    NodeKind.PREVIEW_3D: NodeHandleSchema((HandleDef("model", _M, "3D model"),), ()),
}


def get_node_schema(node_type: str | NodeKind | None) -> NodeHandleSchema | None:
    if node_type is None:
        return None
    kind = node_type if isinstance(node_type, NodeKind) else NodeKind.parse(node_type)
    if kind is None:
        return None
    return NODE_HANDLE_SCHEMAS.get(kind)


def get_handle_type(
    node_type: str | NodeKind | None,
    handle_id: str | None,
    direction: Direction,
) -> HandleType | None:
    """Declared type of a port, or None when the node type or port is unknown."""
    schema = get_node_schema(node_type)
    if schema is None or not handle_id:
        return None
    handle = schema.find(handle_id, direction)
    return handle.type if handle else None


def is_compatible_handle_type(source: HandleType | None, target: HandleType | None) -> bool:
    """Whether an edge from ``source`` to ``target`` may be connected."""
    if source is None or target is None:
        return False
    if source == HandleType.ANY or target == HandleType.ANY:
        return True
    return source == target


# ── Run state ────────────────────────────────────────────────────

class ExecutionContext:
    """Values produced during one run: node id -> port id -> value.

    The ``default`` slot of a node holds its primary output. Written only by
    the orchestrator after a node completes; never shrinks.
    """

    def __init__(self) -> None:
        self._values: dict[str, dict[str, Any]] = {}

    def record(self, node_id: str, output: Any, output_map: dict[str, Any] | None = None) -> None:
        slots = self._values.setdefault(node_id, {})
        slots[DEFAULT_SLOT] = output
        if output_map:
            slots.update(output_map)

    def get(self, node_id: str, slot: str = DEFAULT_SLOT) -> Any:
        return self._values.get(node_id, {}).get(slot)

    def has(self, node_id: str, slot: str = DEFAULT_SLOT) -> bool:
        return slot in self._values.get(node_id, {})

    def slots(self, node_id: str) -> dict[str, Any]:
        return dict(self._values.get(node_id, {}))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._values

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class ExecutionResult:
    """Outcome of one node.

    Completed: ``success`` and no error. Skipped: ``success`` and ``skipped``
    with the pass-through value as ``output``. Failed: ``success`` False with
    ``error`` set and no payload.
    """
    node_id: str
    success: bool
    output: Any = None
    outputs: dict[str, Any] = field(default_factory=dict)
    skipped: bool = False
    error: str = ""
    duration_ms: int = 0

    @classmethod
    def failed(cls, node_id: str, error: str, duration_ms: int = 0) -> ExecutionResult:
        return cls(node_id=node_id, success=False, error=error, duration_ms=duration_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "success": self.success,
            "output": self.output,
            "outputs": dict(self.outputs),
            "skipped": self.skipped,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }
