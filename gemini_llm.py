"""Google Gemini LLM client used by every listing agent.

All calls go through the async client (`client.aio`) so the orchestration can
fan out alternative titles, categories and per-image alt-text concurrently.
Every method returns None on transport failure; agents decide what a missing
response means for their feature.

Requires: pip install google-genai
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types


@dataclass
class GeminiConfig:
    api_key: str
    model: str = "gemini-2.5-flash"          # text, JSON and grounded search
    vision_model: str = "gemini-2.5-flash"   # alt-text from product photos
    timeout_s: int = 120

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        api_key = os.getenv("GEMINI_API_KEY", "")
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is required. Set it in .env")
        model = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")
        return cls(
            api_key=api_key,
            model=model,
            vision_model=os.getenv("GEMINI_VISION_MODEL", model),
        )


@dataclass
class GroundedResponse:
    text: str
    sources: List[Dict[str, str]] = field(default_factory=list)


class GeminiLLM:
    """Async text / JSON / vision generation via Google Gemini."""

    def __init__(self, config: GeminiConfig):
        self.config = config
        self.client = genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=config.timeout_s * 1000),
        )

    @staticmethod
    def _extract_text(resp) -> str:
        """Extract text from Gemini response, skipping thought_signature and other non-text parts."""
        try:
            texts = []
            for candidate in resp.candidates:
                for part in candidate.content.parts:
                    if hasattr(part, 'text') and part.text:
                        texts.append(part.text)
            return "\n".join(texts).strip()
        except Exception:
            try:
                return (resp.text or "").strip()
            except Exception:
                return ""

    @staticmethod
    def _extract_sources(resp) -> List[Dict[str, str]]:
        """Web citations from the grounding metadata of the first candidate."""
        sources: List[Dict[str, str]] = []
        try:
            metadata = resp.candidates[0].grounding_metadata
            chunks = (metadata.grounding_chunks if metadata else None) or []
        except (AttributeError, IndexError, TypeError):
            return sources
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            if web is None or not getattr(web, "uri", None):
                continue
            sources.append({"uri": web.uri, "title": getattr(web, "title", "") or ""})
        return sources

    # ---- public interface ----

    async def test_connection(self) -> bool:
        """Quick health-check: try a trivial generation."""
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents="Say OK",
                config=types.GenerateContentConfig(
                    max_output_tokens=5,
                    temperature=0.0,
                ),
            )
            return bool(resp.text)
        except Exception as e:
            print(f"   ❌ Gemini connection test failed: {e}")
            return False

    async def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> Optional[str]:
        """Plain text generation."""
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
            text = self._extract_text(resp)
            return text if text else None
        except Exception as e:
            print(f"   ❌ Gemini generate error: {e}")
            return None

    async def generate_json(
        self,
        prompt: str,
        schema: types.Schema,
        *,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> Optional[str]:
        """Generation constrained to a JSON response schema. Returns the raw JSON text."""
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
            text = self._extract_text(resp)
            return text if text else None
        except Exception as e:
            print(f"   ❌ Gemini JSON error: {e}")
            return None

    async def generate_with_search(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 8000,
    ) -> Optional[GroundedResponse]:
        """Generation grounded on Google Search; returns text plus web sources.

        Search grounding cannot be combined with a JSON response schema, so
        the prompt itself has to ask for a fenced JSON block.
        """
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
            text = self._extract_text(resp)
            if not text:
                return None
            return GroundedResponse(text=text, sources=self._extract_sources(resp))
        except Exception as e:
            print(f"   ❌ Gemini grounded search error: {e}")
            return None

    async def generate_with_image(
        self,
        prompt: str,
        image_bytes: bytes,
        *,
        temperature: float = 0.4,
        max_tokens: int = 300,
        mime_type: str = "image/jpeg",
    ) -> Optional[str]:
        """Multimodal: text + single image."""
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.config.vision_model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                            types.Part.from_text(text=prompt),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
            text = self._extract_text(resp)
            return text if text else None
        except Exception as e:
            print(f"   ❌ Gemini vision error: {e}")
            return None


_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]+?)\s*```")


def extract_json_payload(text: str) -> Any:
    """Best-effort extraction of a JSON object or array from a model response.

    A fenced code block wins when present; otherwise the outermost object or
    array in the text is parsed. Returns None when nothing parses.
    """
    if not text:
        return None

    match = _FENCED_BLOCK.search(text)
    clean = match.group(1) if match else text.strip()

    try:
        return json.loads(clean)
    except ValueError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start = clean.find(opener)
        end = clean.rfind(closer) + 1
        if start == -1 or end <= start:
            continue
        try:
            return json.loads(clean[start:end])
        except ValueError:
            continue
    return None

