"""Tests for Gemini response helpers (no network)."""

from types import SimpleNamespace

import pytest

from gemini_llm import GeminiConfig, GeminiLLM, extract_json_payload


def test_extract_fenced_json_block():
    text = 'Sure!\n```json\n{"title": "Ceramic Mug"}\n```\nGood luck.'
    assert extract_json_payload(text) == {"title": "Ceramic Mug"}


def test_extract_fence_without_language_tag():
    assert extract_json_payload('```\n["a", "b"]\n```') == ["a", "b"]


def test_extract_bare_json():
    assert extract_json_payload('["winter gift idea"]') == ["winter gift idea"]
    assert extract_json_payload(' {"keyword": "gold ring"} ') == {"keyword": "gold ring"}


def test_extract_object_surrounded_by_prose():
    text = 'Here it is: {"keyword": "gold ring", "volume": "High"} hope that helps'
    assert extract_json_payload(text) == {"keyword": "gold ring", "volume": "High"}


def test_extract_returns_none_when_nothing_parses():
    assert extract_json_payload("") is None
    assert extract_json_payload("no json here") is None
    assert extract_json_payload("```json\n{broken\n```") is None


def test_config_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        GeminiConfig.from_env()


def test_config_vision_model_defaults_to_text_model(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_TEXT_MODEL", "gemini-2.5-pro")
    monkeypatch.delenv("GEMINI_VISION_MODEL", raising=False)
    config = GeminiConfig.from_env()
    assert config.model == "gemini-2.5-pro"
    assert config.vision_model == "gemini-2.5-pro"


def _response(chunks):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(candidates=[SimpleNamespace(grounding_metadata=metadata)])


def test_extract_sources_keeps_web_chunks_with_uri():
    resp = _response([
        SimpleNamespace(web=SimpleNamespace(uri="https://etsy.com/a", title="etsy.com")),
        SimpleNamespace(web=None),
        SimpleNamespace(web=SimpleNamespace(uri="", title="empty")),
        SimpleNamespace(web=SimpleNamespace(uri="https://b.example", title=None)),
    ])
    assert GeminiLLM._extract_sources(resp) == [
        {"uri": "https://etsy.com/a", "title": "etsy.com"},
        {"uri": "https://b.example", "title": ""},
    ]


def test_extract_sources_without_metadata():
    assert GeminiLLM._extract_sources(SimpleNamespace(candidates=[])) == []
    assert GeminiLLM._extract_sources(_response(None)) == []


def test_extract_text_joins_text_parts():
    parts = [SimpleNamespace(text="Hello"), SimpleNamespace(text=None), SimpleNamespace(text="world")]
    resp = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])
    assert GeminiLLM._extract_text(resp) == "Hello\nworld"
