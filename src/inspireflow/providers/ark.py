"""ARK adapter (Seedream images, Seedance video, Seed3D, Doubao text).

Video and 3D calls create a task and return its id; the AsyncTaskPoller
drives ``GET /contents/generations/tasks/{id}`` until the task finishes.

Image-to-video mode is selected by the number of images:

  0    text-to-video
  1    first frame (no role)
  2    ``first_frame`` + ``last_frame``
  3-4  ``reference_image`` each (more are truncated to 4)
"""

from __future__ import annotations

import re
from typing import Any

from inspireflow.core.errors import ProviderError
from inspireflow.providers.base import (
    AsyncTask,
    GenerationRequest,
    ProviderAdapter,
    ProviderFamily,
    TaskStatus,
    images_from_data_list,
    to_image_url,
)
from inspireflow.providers.model_mapping import map_model_name
from inspireflow.providers.openai import build_chat_messages, first_choice_content
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)

TASKS_PATH = "/contents/generations/tasks"
MAX_INPUT_IMAGES = 14
MAX_REFERENCE_IMAGES = 4

_ASPECT_RATIO_SIZES = {
    "1:1": "2048x2048",
    "16:9": "2048x1152",
    "9:16": "1152x2048",
    "4:3": "2048x1536",
    "3:4": "1536x2048",
}
_QUALITY_SIZES = {"1K": "1K", "2K": "2K", "4K": "4K", "standard": "2K", "hd": "2K"}
_SIZE_TIERS = ("1K", "2K", "4K")

# Model capabilities (matched against the wire name)
_T2V_LITE = re.compile(r"lite-t2v", re.IGNORECASE)
_PRO_FAST = re.compile(r"1-0-pro-fast", re.IGNORECASE)
_LITE_I2V = re.compile(r"lite-i2v", re.IGNORECASE)
_PRO_15 = re.compile(r"1-5-pro", re.IGNORECASE)


def _is_seedream_45(model: str) -> bool:
    return "4-5" in model or "4.5" in model


def image_size(model: str, params: dict[str, Any]) -> str:
    """``size`` field of an image request."""
    seedream_45 = _is_seedream_45(model)
    size = params.get("size")
    if size:
        # 4.5 has no 1K tier
        result = "2K" if seedream_45 and size == "1K" else size
    elif params.get("aspect_ratio"):
        result = _ASPECT_RATIO_SIZES.get(params["aspect_ratio"], "2048x2048")
    else:
        result = "2K"

    quality = params.get("quality")
    if quality:
        tier = _QUALITY_SIZES.get(quality, quality)
        if seedream_45 and tier == "1K":
            tier = "2K"
        if tier in _SIZE_TIERS:
            result = tier
    return result


def build_video_content(prompt: str, images: list[str]) -> list[dict[str, Any]]:
    """``content[]`` of a video task: the prompt, then images tagged by count."""
    content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    urls = [to_image_url(ref) for ref in images]
    if len(urls) == 1:
        content.append({"type": "image_url", "image_url": {"url": urls[0]}})
    elif len(urls) == 2:
        content.append({"type": "image_url", "image_url": {"url": urls[0]}, "role": "first_frame"})
        content.append({"type": "image_url", "image_url": {"url": urls[1]}, "role": "last_frame"})
    elif len(urls) >= 3:
        for url in urls[:MAX_REFERENCE_IMAGES]:
            content.append({"type": "image_url", "image_url": {"url": url}, "role": "reference_image"})
    return content


def fit_video_images(model: str, images: list[str]) -> list[str]:
    """Drop images the model cannot take."""
    if _T2V_LITE.search(model):
        return []
    if _PRO_FAST.search(model):
        return images[:1]
    # Only lite-i2v supports reference images; others fall back to first/last frame
    if not _LITE_I2V.search(model) and len(images) >= 3:
        return images[:2]
    return list(images)


class ArkAdapter(ProviderAdapter):
    """ARK protocol with ``Authorization: Bearer``."""

    display_name = "ARK"

    @property
    def family(self) -> ProviderFamily:
        return ProviderFamily.ARK

    def _images_path(self) -> str:
        if self._base_url.endswith("/v3"):
            return "/images/generations"
        return "/api/v3/images/generations"

    # ── Text ─────────────────────────────────────────────────────

    async def generate_text(self, request: GenerationRequest) -> str:
        params = request.params
        payload = {
            "model": map_model_name(request.model or "seedream-text", "text"),
            "messages": build_chat_messages(request.prompt, request.images, params.get("context")),
            "temperature": params.get("temperature") or 0.7,
            "max_tokens": params.get("max_tokens") or 2000,
            "thinking": {"type": "disabled"},
        }
        data = await self._post("/chat/completions", payload)
        return first_choice_content(data)

    # ── Images ───────────────────────────────────────────────────

    async def generate_image(self, request: GenerationRequest) -> list[str]:
        model = map_model_name(request.model or "seedream", "image")
        payload: dict[str, Any] = {
            "model": model,
            "prompt": request.prompt,
            "response_format": "url",
            "watermark": False,
            "size": image_size(model, request.params),
        }
        urls = [to_image_url(ref) for ref in request.images[:MAX_INPUT_IMAGES]]
        if len(urls) == 1:
            payload["image"] = urls[0]
        elif urls:
            payload["image"] = urls

        data = await self._post(self._images_path(), payload)
        images = images_from_data_list(data)
        if not images:
            raise ProviderError(
                f"ARK image generation returned no images for model '{model}'",
                provider=self.family.value,
            )
        return images

    # ── Video ────────────────────────────────────────────────────

    def build_video_payload(self, request: GenerationRequest) -> dict[str, Any]:
        model = map_model_name(request.model or "seedream-video", "video")
        params = request.params
        images = fit_video_images(model, request.images)
        is_10_series = not _PRO_15.search(model)
        reference_mode = bool(_LITE_I2V.search(model)) and len(images) >= 3

        payload: dict[str, Any] = {"model": model, "content": build_video_content(request.prompt, images)}

        ratio = params.get("ratio")
        if ratio == "adaptive" and ((not images and is_10_series) or reference_mode):
            ratio = "16:9"
        if ratio and not _T2V_LITE.search(model):
            payload["ratio"] = ratio
        if params.get("duration"):
            payload["duration"] = params["duration"]
        if params.get("resolution"):
            payload["resolution"] = params["resolution"]
        if _PRO_15.search(model) and params.get("generate_audio") is not None:
            payload["generate_audio"] = params["generate_audio"]
        for key in ("watermark", "seed", "camera_fixed", "return_last_frame"):
            if params.get(key) is not None:
                payload[key] = params[key]
        if params.get("service_tier"):
            payload["service_tier"] = params["service_tier"]
        return payload

    async def generate_video(self, request: GenerationRequest) -> str:
        payload = self.build_video_payload(request)
        return await self._create_task(payload, "video")

    # ── 3D ───────────────────────────────────────────────────────

    def build_3d_payload(self, request: GenerationRequest) -> dict[str, Any]:
        if not request.images:
            raise ProviderError("3D generation needs a source image", provider=self.family.value)
        params = request.params
        args = [
            f"--subdivisionlevel {params.get('subdivision_level') or 'medium'}",
            f"--fileformat {params.get('file_format') or 'glb'}",
        ]
        if request.prompt and request.prompt.strip():
            args.append(request.prompt.strip())
        return {
            "model": map_model_name(request.model or "seedream-3d", "3d"),
            "content": [
                {"type": "image_url", "image_url": {"url": to_image_url(request.images[0])}},
                {"type": "text", "text": " ".join(args)},
            ],
        }

    async def generate_3d(self, request: GenerationRequest) -> str:
        payload = self.build_3d_payload(request)
        return await self._create_task(payload, "3d")

    # ── Tasks ────────────────────────────────────────────────────

    async def _create_task(self, payload: dict[str, Any], kind: str) -> str:
        data = await self._post(TASKS_PATH, payload)
        task_id = data.get("id")
        if not task_id:
            raise ProviderError(
                f"ARK did not return a task id for the {kind} job",
                provider=self.family.value,
            )
        log.info("ark_task_created", kind=kind, task_id=task_id, model=payload.get("model"))
        return str(task_id)

    async def get_task(self, task_id: str) -> AsyncTask:
        data = await self._get(f"{TASKS_PATH}/{task_id}")
        try:
            status = TaskStatus(str(data.get("status", "")).lower())
        except ValueError:
            status = TaskStatus.RUNNING
        return AsyncTask(
            id=str(data.get("id") or task_id),
            status=status,
            result=data.get("content") if isinstance(data.get("content"), dict) else None,
            error=data.get("error") if isinstance(data.get("error"), dict) else None,
            raw=data,
        )
