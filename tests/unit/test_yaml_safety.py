"""Tests for YAML loading limits and syntax error positions."""

from __future__ import annotations

import pytest

from pulseconfig.parser.loader import TrackedLoader, YAMLSafetyError, YAMLSyntaxError


class TestLoad:
    def test_plain_values(self, loader: TrackedLoader) -> None:
        data = loader.load_string("targets:\n  - name: a\n    port: 80\n")
        assert data == {"targets": [{"name": "a", "port": 80}]}
        assert type(data) is dict
        assert type(data["targets"]) is list

    def test_empty_document(self, loader: TrackedLoader) -> None:
        assert loader.load_string("") is None
        assert loader.load_string("# only a comment\n") is None


class TestSafety:
    def test_anchor_rejected(self, loader: TrackedLoader) -> None:
        with pytest.raises(YAMLSafetyError, match="anchors"):
            loader.load_string("a: &x 1\nb: *x\n")

    def test_oversized_document(self, loader: TrackedLoader) -> None:
        with pytest.raises(YAMLSafetyError, match="maximum size"):
            loader.load_string("a: " + "x" * 5_000_001)

    def test_deep_nesting(self, loader: TrackedLoader) -> None:
        text = "a: " + "{b: " * 25 + "1" + "}" * 25 + "\n"
        with pytest.raises(YAMLSafetyError, match="nesting depth"):
            loader.load_string(text)

    def test_node_count(self) -> None:
        data = {"items": list(range(100))}
        with pytest.raises(YAMLSafetyError, match="node count"):
            TrackedLoader._check_node_count(data, limit=50)


class TestSyntaxErrors:
    def test_unclosed_flow_sequence(self, loader: TrackedLoader) -> None:
        with pytest.raises(YAMLSyntaxError) as exc_info:
            loader.load_string("targets:\n  - name: [unclosed\n")
        assert exc_info.value.line is not None
        assert exc_info.value.line >= 2
        assert str(exc_info.value).startswith("Invalid YAML")

    def test_bad_indentation(self, loader: TrackedLoader) -> None:
        with pytest.raises(YAMLSyntaxError) as exc_info:
            loader.load_string("a: b\n  c: d\n")
        assert exc_info.value.line == 2
