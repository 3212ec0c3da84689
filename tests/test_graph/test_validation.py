"""Tests for inspireflow.graph.validation."""

from __future__ import annotations

import pytest

from inspireflow.graph.types import Edge, Node
from inspireflow.graph.validation import MissingField, format_missing_required, validate_node_required


class TestGenerators:
    @pytest.mark.parametrize("node_type", ["textGen", "imageGen", "videoGen", "3dGen"])
    def test_prompt_required(self, node_type: str) -> None:
        missing = validate_node_required(Node("g", node_type), [])
        assert missing == [MissingField("prompt", "Prompt")]

    def test_connected_text_port_satisfies(self) -> None:
        edges = [Edge("t", "g", "text", "text")]
        assert validate_node_required(Node("g", "imageGen"), edges) == []

    def test_literal_prompt_satisfies(self) -> None:
        assert validate_node_required(Node("g", "textGen", {"prompt": "hi"}), []) == []

    def test_blank_prompt_missing(self) -> None:
        assert validate_node_required(Node("g", "textGen", {"prompt": "   "}), [])

    def test_image_port_does_not_satisfy_prompt(self) -> None:
        edges = [Edge("i", "g", "image", "image")]
        assert validate_node_required(Node("g", "videoGen"), edges)


class TestInputsAndPreviews:
    def test_text_input_output_counts(self) -> None:
        assert validate_node_required(Node("t", "textInput", {"output": "x"}), []) == []

    def test_image_input(self) -> None:
        assert validate_node_required(Node("i", "imageInput"), []) == [MissingField("image", "Image")]
        assert validate_node_required(Node("i", "imageInput", {"image": ["https://a.test/x.png"]}), []) == []

    def test_3d_input_label(self) -> None:
        assert validate_node_required(Node("m", "3dInput"), [])[0].label == "3D download URL"

    def test_preview_needs_upstream(self) -> None:
        assert validate_node_required(Node("p", "imagePreview"), [])[0].label == "Upstream image"
        assert validate_node_required(Node("p", "imagePreview", {"src": "https://a.test/x.png"}), []) == []
        assert validate_node_required(Node("p", "3dPreview"), [Edge("m", "p", "model", "model")]) == []


class TestScriptRunner:
    def test_code_and_language(self) -> None:
        missing = validate_node_required(Node("s", "scriptRunner"), [])
        assert [m.key for m in missing] == ["code", "language"]

    def test_complete(self) -> None:
        node = Node("s", "scriptRunner", {"code": "print(1)", "language": "python"})
        assert validate_node_required(node, []) == []


def test_unknown_kind_has_no_requirements() -> None:
    assert validate_node_required(Node("x", "audioGen"), []) == []


def test_format_missing_required() -> None:
    missing = [MissingField("code", "Code"), MissingField("language", "Language")]
    assert format_missing_required(missing) == "Code, Language"
