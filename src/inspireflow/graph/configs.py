"""Typed per-node configuration parsed from the editor's property bag.

Each generating node kind gets a pydantic model with its defaults. Keys are
read in camelCase (as the editor writes them) or snake_case. Keys the engine
does not know, such as UI layout state, stay available through ``extra``.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from inspireflow.core.errors import ValidationError
from inspireflow.graph.types import Node, NodeKind


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class NodeConfig(BaseModel):
    """Base: tolerant of UI-only keys, treats None/"" as "not set"."""

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_unset(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class TextGenConfig(NodeConfig):
    model: str = "openai"
    prompt: str = ""
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, validation_alias=_alias("maxTokens", "max_tokens"))
    context: str | None = None
    image: Any = None


class ImageGenConfig(NodeConfig):
    model: str = "nanobanana"
    prompt: str = ""
    aspect_ratio: str = Field(default="1:1", validation_alias=_alias("aspectRatio", "aspect_ratio"))
    quality: str | None = Field(
        default=None, validation_alias=_alias("quality", "imageSize", "image_size"),
    )
    size: str | None = None
    image: Any = None


class VideoGenConfig(NodeConfig):
    model: str = "seedream-video"
    prompt: str = ""
    ratio: str = "adaptive"
    duration: int = 5
    resolution: str | None = None
    generate_audio: bool = Field(
        default=False, validation_alias=_alias("generateAudio", "generate_audio"),
    )
    watermark: bool = False
    seed: int | None = None
    camera_fixed: bool = Field(default=False, validation_alias=_alias("cameraFixed", "camera_fixed"))
    return_last_frame: bool = Field(
        default=False, validation_alias=_alias("returnLastFrame", "return_last_frame"),
    )
    service_tier: str = Field(
        default="default", validation_alias=_alias("serviceTier", "service_tier"),
    )
    first_frame: Any = Field(default=None, validation_alias=_alias("firstFrame", "first_frame"))
    last_frame: Any = Field(default=None, validation_alias=_alias("lastFrame", "last_frame"))
    image: Any = None


class Gen3DConfig(NodeConfig):
    model: str = "seedream-3d"
    prompt: str = ""
    subdivision_level: str = Field(
        default="medium",
        validation_alias=_alias("subdivisionLevel", "subdivision_level", "quality"),
    )
    file_format: str = Field(
        default="glb", validation_alias=_alias("fileFormat", "file_format", "format"),
    )
    image: Any = None


class ScriptRunnerConfig(NodeConfig):
    code: str = ""
    language: str = ""
    timeout_seconds: int | None = Field(
        default=None, validation_alias=_alias("timeoutSeconds", "timeout_seconds", "timeout"),
    )


NODE_CONFIG_MODELS: dict[NodeKind, type[NodeConfig]] = {
    NodeKind.TEXT_GEN: TextGenConfig,
    NodeKind.IMAGE_GEN: ImageGenConfig,
    NodeKind.VIDEO_GEN: VideoGenConfig,
    NodeKind.GEN_3D: Gen3DConfig,
    NodeKind.SCRIPT_RUNNER: ScriptRunnerConfig,
}


def parse_node_config(node: Node, model: type[NodeConfig] | None = None) -> NodeConfig:
    """Parse ``node.data`` into the config model for its kind.

    Raises:
        ValidationError: The bag holds values of the wrong shape.
    """
    if model is None:
        kind = node.kind
        model = NODE_CONFIG_MODELS.get(kind) if kind else None
        if model is None:
            return NodeConfig.model_validate(node.data)
    try:
        return model.model_validate(node.data)
    except pydantic.ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise ValidationError(
            f"Node '{node.label}' has invalid settings: {', '.join(fields)}",
            missing=fields,
            details={"node_id": node.id},
        ) from exc
