"""Node dispatch: one handler per node kind.

Handlers are pure translation from a node plus its resolved inputs to an
action the orchestrator performs:

  GenerationRequest  -> provider gateway
  ScriptRequest      -> script runner
  LocalValue         -> used as the node's output directly (inputs, previews)

Handlers apply the per-kind defaults and reject semantically required values
that are missing (a prompt for image generation, a source image for 3D).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from inspireflow.core.errors import UnsupportedTypeError, ValidationError
from inspireflow.graph.configs import (
    Gen3DConfig,
    ImageGenConfig,
    ScriptRunnerConfig,
    TextGenConfig,
    VideoGenConfig,
    parse_node_config,
)
from inspireflow.graph.normalize import is_empty, normalize, normalize_to_image
from inspireflow.graph.types import HandleType, Node, NodeKind
from inspireflow.providers.base import GenerationRequest, OperationKind


# ── Actions ──────────────────────────────────────────────────────

@dataclass
class ScriptRequest:
    """Run user code with the node's inputs."""
    code: str
    language: str
    inputs: dict[str, Any] = field(default_factory=dict)
    timeout_seconds: int | None = None


@dataclass
class LocalValue:
    """Output known without calling anything."""
    value: Any


NodeAction = Union[GenerationRequest, ScriptRequest, LocalValue]
NodeHandler = Callable[[Node, dict[str, Any]], NodeAction]


# ── Registry ─────────────────────────────────────────────────────

class HandlerRegistry:
    """Maps node kinds to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[NodeKind, NodeHandler] = {}

    def register(self, *kinds: NodeKind) -> Callable[[NodeHandler], NodeHandler]:
        def decorator(fn: NodeHandler) -> NodeHandler:
            for kind in kinds:
                self._handlers[kind] = fn
            return fn
        return decorator

    def get(self, kind: NodeKind) -> NodeHandler | None:
        return self._handlers.get(kind)

    def kinds(self) -> list[NodeKind]:
        return list(self._handlers)

    def copy(self) -> HandlerRegistry:
        clone = HandlerRegistry()
        clone._handlers = dict(self._handlers)
        return clone


DEFAULT_REGISTRY = HandlerRegistry()
register_handler = DEFAULT_REGISTRY.register


class NodeDispatcher:
    """Looks up the handler for a node and builds its action."""

    def __init__(self, registry: HandlerRegistry | None = None) -> None:
        self._registry = registry or DEFAULT_REGISTRY

    def dispatch(self, node: Node, inputs: dict[str, Any]) -> NodeAction:
        kind = node.kind
        handler = self._registry.get(kind) if kind else None
        if handler is None:
            raise UnsupportedTypeError(
                f"Node '{node.label}' has unsupported type '{node.type}'",
                details={"node_id": node.id, "type": node.type},
            )
        return handler(node, inputs)


# ── Helpers ──────────────────────────────────────────────────────

def _first_present(*values: Any) -> Any:
    for value in values:
        if not is_empty(value):
            return value
    return None


def _text(*values: Any) -> str:
    value = _first_present(*(normalize(v, HandleType.TEXT) for v in values))
    return value or ""


def _image_list(*values: Any) -> list[str]:
    for value in values:
        normalized = normalize_to_image(value)
        if isinstance(normalized, list):
            return normalized
        if normalized:
            return [normalized]
    return []


# ── Generators ───────────────────────────────────────────────────

@register_handler(NodeKind.TEXT_GEN)
def handle_text_gen(node: Node, inputs: dict[str, Any]) -> GenerationRequest:
    config = parse_node_config(node, TextGenConfig)
    return GenerationRequest(
        kind=OperationKind.TEXT,
        model=config.model,
        prompt=_text(inputs.get("text"), inputs.get("prompt"), config.prompt),
        images=_image_list(inputs.get("image"), config.image),
        params={
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "context": config.context,
        },
    )


@register_handler(NodeKind.IMAGE_GEN)
def handle_image_gen(node: Node, inputs: dict[str, Any]) -> GenerationRequest:
    config = parse_node_config(node, ImageGenConfig)
    prompt = _text(inputs.get("text"), inputs.get("prompt"), config.prompt)
    if not prompt.strip():
        raise ValidationError(
            f"Image generation node '{node.label}' needs a prompt. "
            "Connect a text node or fill in the prompt.",
            missing=["prompt"],
        )
    return GenerationRequest(
        kind=OperationKind.IMAGE,
        model=config.model,
        prompt=prompt,
        images=_image_list(inputs.get("image"), config.image),
        params={
            "aspect_ratio": config.aspect_ratio,
            "quality": config.quality,
            "size": config.size,
        },
    )


@register_handler(NodeKind.VIDEO_GEN)
def handle_video_gen(node: Node, inputs: dict[str, Any]) -> GenerationRequest:
    config = parse_node_config(node, VideoGenConfig)
    prompt = _text(inputs.get("text"), inputs.get("prompt"), config.prompt)
    if not prompt.strip():
        raise ValidationError(
            f"Video generation node '{node.label}' needs a prompt. "
            "Connect a text node or fill in the prompt.",
            missing=["prompt"],
        )
    images = _image_list(inputs.get("image"))
    if not images:
        images = _image_list([config.first_frame, config.last_frame])
    if not images:
        images = _image_list(config.image)
    return GenerationRequest(
        kind=OperationKind.VIDEO,
        model=config.model,
        prompt=prompt,
        images=images,
        params={
            "ratio": config.ratio,
            "duration": config.duration,
            "resolution": config.resolution,
            "generate_audio": config.generate_audio,
            "watermark": config.watermark,
            "seed": config.seed,
            "camera_fixed": config.camera_fixed,
            "return_last_frame": config.return_last_frame,
            "service_tier": config.service_tier,
        },
    )


@register_handler(NodeKind.GEN_3D)
def handle_3d_gen(node: Node, inputs: dict[str, Any]) -> GenerationRequest:
    config = parse_node_config(node, Gen3DConfig)
    images = _image_list(inputs.get("image"), config.image)
    if not images:
        raise ValidationError(
            f"3D generation node '{node.label}' needs a source image. "
            "Connect an image node or set an image.",
            missing=["image"],
        )
    return GenerationRequest(
        kind=OperationKind.MODEL_3D,
        model=config.model,
        prompt=_text(inputs.get("text"), inputs.get("prompt"), config.prompt),
        images=images[:1],
        params={
            "subdivision_level": config.subdivision_level,
            "file_format": config.file_format,
        },
    )


@register_handler(NodeKind.SCRIPT_RUNNER)
def handle_script_runner(node: Node, inputs: dict[str, Any]) -> ScriptRequest:
    config = parse_node_config(node, ScriptRunnerConfig)
    return ScriptRequest(
        code=config.code,
        language=config.language,
        inputs=dict(inputs),
        timeout_seconds=config.timeout_seconds,
    )


# ── Inputs ───────────────────────────────────────────────────────

@register_handler(NodeKind.TEXT_INPUT)
def handle_text_input(node: Node, inputs: dict[str, Any]) -> LocalValue:
    data = node.data
    value = _first_present(data.get("text"), data.get("output"), inputs.get("text"))
    return LocalValue(normalize(value, HandleType.TEXT))


@register_handler(NodeKind.IMAGE_INPUT)
def handle_image_input(node: Node, inputs: dict[str, Any]) -> LocalValue:
    value = _first_present(node.data.get("image"), inputs.get("image"))
    return LocalValue(normalize(value, HandleType.IMAGE))


@register_handler(NodeKind.VIDEO_INPUT)
def handle_video_input(node: Node, inputs: dict[str, Any]) -> LocalValue:
    value = _first_present(node.data.get("video"), inputs.get("video"))
    return LocalValue(normalize(value, HandleType.VIDEO))


@register_handler(NodeKind.INPUT_3D)
def handle_3d_input(node: Node, inputs: dict[str, Any]) -> LocalValue:
    data = node.data
    value = _first_present(data.get("url"), data.get("model"), data.get("output"))
    return LocalValue(normalize(value, HandleType.MODEL_3D))


# ── Previews ─────────────────────────────────────────────────────

def _preview(node: Node, inputs: dict[str, Any], key: str, handle_type: HandleType) -> LocalValue:
    data = node.data
    value = _first_present(
        inputs.get(key), inputs.get("url"), inputs.get("src"), data.get("output"), data.get(key),
    )
    normalized = normalize(value, handle_type)
    return LocalValue(None if is_empty(normalized) else normalized)


@register_handler(NodeKind.TEXT_PREVIEW)
def handle_text_preview(node: Node, inputs: dict[str, Any]) -> LocalValue:
    return _preview(node, inputs, "text", HandleType.TEXT)


@register_handler(NodeKind.IMAGE_PREVIEW)
def handle_image_preview(node: Node, inputs: dict[str, Any]) -> LocalValue:
    return _preview(node, inputs, "image", HandleType.IMAGE)


@register_handler(NodeKind.VIDEO_PREVIEW)
def handle_video_preview(node: Node, inputs: dict[str, Any]) -> LocalValue:
    return _preview(node, inputs, "video", HandleType.VIDEO)


@register_handler(NodeKind.PREVIEW_3D)
def handle_3d_preview(node: Node, inputs: dict[str, Any]) -> LocalValue:
    return _preview(node, inputs, "model", HandleType.MODEL_3D)
