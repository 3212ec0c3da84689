"""Tests for inspireflow.providers.ark: Seedream images, Seedance video and Seed3D payloads."""

from __future__ import annotations

import pytest

from inspireflow.config import ProviderConfig
from inspireflow.core.errors import ProviderError
from inspireflow.providers.ark import (
    TASKS_PATH,
    ArkAdapter,
    build_video_content,
    fit_video_images,
    image_size,
)
from inspireflow.providers.base import GenerationRequest, OperationKind, TaskStatus

IMGS = [f"https://cdn.test/{i}.png" for i in range(6)]

PRO_15 = "doubao-seedance-1-5-pro-251215"
PRO_10 = "doubao-seedance-1-0-pro-250528"
PRO_FAST = "doubao-seedance-1-0-pro-fast-251015"
LITE_T2V = "doubao-seedance-1-0-lite-t2v-250428"
LITE_I2V = "doubao-seedance-1-0-lite-i2v-250428"


@pytest.fixture
def adapter() -> ArkAdapter:
    return ArkAdapter(ProviderConfig(base_url="https://ark.test/api/v3", api_key="ark"))


def _video(model: str, images: list[str], **params) -> GenerationRequest:
    return GenerationRequest(OperationKind.VIDEO, model, "a wave", images=images, params=params)


class TestImageSize:
    def test_default(self) -> None:
        assert image_size("doubao-seedream-4-0", {}) == "2K"

    def test_aspect_ratio(self) -> None:
        assert image_size("doubao-seedream-4-0", {"aspect_ratio": "16:9"}) == "2048x1152"
        assert image_size("doubao-seedream-4-0", {"aspect_ratio": "21:9"}) == "2048x2048"

    def test_seedream_45_has_no_1k(self) -> None:
        assert image_size("doubao-seedream-4-5-251128", {"size": "1K"}) == "2K"
        assert image_size("doubao-seedream-4-5-251128", {"quality": "1K"}) == "2K"

    def test_quality_overrides(self) -> None:
        assert image_size("doubao-seedream-4-0", {"aspect_ratio": "1:1", "quality": "4K"}) == "4K"
        assert image_size("doubao-seedream-4-0", {"aspect_ratio": "1:1", "quality": "hd"}) == "2K"


class TestVideoContent:
    def test_text_only(self) -> None:
        assert build_video_content("p", []) == [{"type": "text", "text": "p"}]

    def test_single_image_has_no_role(self) -> None:
        content = build_video_content("p", IMGS[:1])
        assert content[1] == {"type": "image_url", "image_url": {"url": IMGS[0]}}

    def test_two_images_first_last(self) -> None:
        content = build_video_content("p", IMGS[:2])
        assert [c.get("role") for c in content[1:]] == ["first_frame", "last_frame"]

    def test_reference_images_truncated_to_four(self) -> None:
        content = build_video_content("p", IMGS)
        assert len(content) == 5
        assert {c["role"] for c in content[1:]} == {"reference_image"}


class TestFitVideoImages:
    def test_lite_t2v_drops_images(self) -> None:
        assert fit_video_images(LITE_T2V, IMGS[:2]) == []

    def test_pro_fast_keeps_one(self) -> None:
        assert fit_video_images(PRO_FAST, IMGS[:2]) == IMGS[:1]

    def test_only_lite_i2v_keeps_references(self) -> None:
        assert fit_video_images(LITE_I2V, IMGS[:3]) == IMGS[:3]
        assert fit_video_images(PRO_15, IMGS[:3]) == IMGS[:2]


class TestVideoPayload:
    def test_adaptive_ratio_for_10_text_to_video(self, adapter: ArkAdapter) -> None:
        payload = adapter.build_video_payload(_video("seedream-seedance-1-0-pro", [], ratio="adaptive"))
        assert payload["model"] == PRO_10
        assert payload["ratio"] == "16:9"

    def test_adaptive_kept_for_15(self, adapter: ArkAdapter) -> None:
        payload = adapter.build_video_payload(_video("seedream-video", [], ratio="adaptive"))
        assert payload["ratio"] == "adaptive"

    def test_adaptive_reference_mode(self, adapter: ArkAdapter) -> None:
        payload = adapter.build_video_payload(_video("seedream-seedance-1-0-lite-i2v", IMGS[:3], ratio="adaptive"))
        assert payload["ratio"] == "16:9"

    def test_lite_t2v_has_no_ratio(self, adapter: ArkAdapter) -> None:
        payload = adapter.build_video_payload(_video("seedream-seedance-1-0-lite-t2v", IMGS[:1], ratio="16:9"))
        assert "ratio" not in payload
        assert len(payload["content"]) == 1

    def test_generate_audio_only_for_15_pro(self, adapter: ArkAdapter) -> None:
        with_audio = adapter.build_video_payload(_video("seedream-video", [], generate_audio=True))
        without = adapter.build_video_payload(_video("seedream-seedance-1-0-pro", [], generate_audio=True))
        assert with_audio["generate_audio"] is True
        assert "generate_audio" not in without

    def test_optional_fields(self, adapter: ArkAdapter) -> None:
        payload = adapter.build_video_payload(_video(
            "seedream-video", [], duration=10, resolution="1080p", watermark=False, seed=7,
            camera_fixed=True, return_last_frame=False, service_tier="flex",
        ))
        assert payload["duration"] == 10
        assert payload["resolution"] == "1080p"
        assert payload["watermark"] is False
        assert payload["seed"] == 7
        assert payload["camera_fixed"] is True
        assert payload["service_tier"] == "flex"


class TestGenerate:
    @pytest.mark.asyncio
    async def test_image(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(post=[make_response(200, {"data": [{"url": "https://ark.test/out.png"}]})])

        result = await adapter.generate_image(GenerationRequest(
            OperationKind.IMAGE, "seedream", "a cat", images=IMGS[:2], params={"aspect_ratio": "1:1"},
        ))

        assert result == ["https://ark.test/out.png"]
        assert adapter._client.post.call_args.args[0] == "/images/generations"
        payload = adapter._client.post.call_args.kwargs["json"]
        assert payload["image"] == IMGS[:2]
        assert payload["response_format"] == "url"
        assert payload["watermark"] is False

    @pytest.mark.asyncio
    async def test_image_path_for_bare_host(self, make_response, make_client) -> None:
        adapter = ArkAdapter(ProviderConfig(base_url="https://proxy.test", api_key="k"))
        adapter._client = make_client(post=[make_response(200, {"data": [{"url": "https://p.test/x.png"}]})])
        await adapter.generate_image(GenerationRequest(OperationKind.IMAGE, "seedream", "x"))
        assert adapter._client.post.call_args.args[0] == "/api/v3/images/generations"

    @pytest.mark.asyncio
    async def test_text_disables_thinking(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(post=[make_response(200, {"choices": [{"message": {"content": "ok"}}]})])
        assert await adapter.generate_text(GenerationRequest(OperationKind.TEXT, "seedream-text", "hi")) == "ok"
        payload = adapter._client.post.call_args.kwargs["json"]
        assert payload["thinking"] == {"type": "disabled"}
        assert payload["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_video_returns_task_id(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(post=[make_response(200, {"id": "cgt-123"})])
        assert await adapter.generate_video(_video("seedream-video", IMGS[:2])) == "cgt-123"
        assert adapter._client.post.call_args.args[0] == TASKS_PATH

    @pytest.mark.asyncio
    async def test_missing_task_id(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(post=[make_response(200, {})])
        with pytest.raises(ProviderError, match="task id"):
            await adapter.generate_video(_video("seedream-video", []))

    @pytest.mark.asyncio
    async def test_3d_payload(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(post=[make_response(200, {"id": "cgt-3d"})])
        request = GenerationRequest(
            OperationKind.MODEL_3D, "seedream-3d", " chair ", images=IMGS[:1],
            params={"subdivision_level": "high", "file_format": "obj"},
        )
        assert await adapter.generate_3d(request) == "cgt-3d"
        payload = adapter._client.post.call_args.kwargs["json"]
        assert payload["model"] == "doubao-seed3d-1-0-250928"
        assert payload["content"] == [
            {"type": "image_url", "image_url": {"url": IMGS[0]}},
            {"type": "text", "text": "--subdivisionlevel high --fileformat obj chair"},
        ]

    def test_3d_needs_image(self, adapter: ArkAdapter) -> None:
        with pytest.raises(ProviderError, match="source image"):
            adapter.build_3d_payload(GenerationRequest(OperationKind.MODEL_3D, "seedream-3d"))


class TestGetTask:
    @pytest.mark.asyncio
    async def test_succeeded(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(get=[make_response(200, {
            "id": "cgt-1", "status": "succeeded", "content": {"video_url": "https://ark.test/v.mp4"},
        })])
        task = await adapter.get_task("cgt-1")
        assert task.status is TaskStatus.SUCCEEDED
        assert task.result == {"video_url": "https://ark.test/v.mp4"}
        assert adapter._client.get.call_args.args[0] == f"{TASKS_PATH}/cgt-1"

    @pytest.mark.asyncio
    async def test_unknown_status_is_running(self, adapter: ArkAdapter, make_response, make_client) -> None:
        adapter._client = make_client(get=[make_response(200, {"status": "warming_up"})])
        task = await adapter.get_task("cgt-1")
        assert task.status is TaskStatus.RUNNING
        assert task.id == "cgt-1"
