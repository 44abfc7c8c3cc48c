"""Shared pytest fixtures: a fake Gemini client and a valid listing payload."""

import asyncio
import base64
import json
from typing import Any, Dict, List, Optional

import pytest

from gemini_llm import GroundedResponse


def make_listing_payload(**overrides) -> Dict[str, Any]:
    """A listing that passes validate_listing. Keywords and pricing are deliberately out of order."""
    payload = {
        "title": "Handmade Mug, Ceramic Coffee Mug, Pottery Mug Gift",
        "description": (
            "**✨ What It Is**\n"
            "• A handmade mug thrown on the wheel\n"
            "• Stoneware cup with a glossy glaze\n\n"
            "🛒 Add to cart now!"
        ),
        "keywords": [
            {"keyword": "sage green mug", "volume": "Low", "reason": "Colour search"},
            {"keyword": "ceramic coffee mug", "volume": "High", "reason": "Core product term"},
            {"keyword": "stoneware cup", "volume": "Medium", "reason": "Material search"},
            {"keyword": "handmade mug", "volume": "High", "reason": "Handmade intent"},
            {"keyword": "gift for her", "volume": "Medium", "reason": "Recipient"},
            {"keyword": "housewarming gift", "volume": "Low", "reason": "Occasion"},
            {"keyword": "pottery mug", "volume": "High", "reason": "Craft term"},
            {"keyword": "tea lover gift", "volume": "Medium", "reason": "Recipient"},
            {"keyword": "rustic mug", "volume": "Medium", "reason": "Style"},
            {"keyword": "latte mug", "volume": "Medium", "reason": "Usage"},
            {"keyword": "coffee lover gift", "volume": "Low", "reason": "Recipient"},
            {"keyword": "artisan mug", "volume": "Low", "reason": "Craft term"},
            {"keyword": "speckled mug", "volume": "Low", "reason": "Finish"},
        ],
        "category": "Home & Living > Kitchen & Dining > Drink & Barware > Mugs",
        "materials": [
            "Ceramic", "Stoneware", "Clay", "Glaze", "Porcelain", "Kaolin", "Feldspar",
            "Silica", "Iron oxide", "Cobalt", "Food safe glaze", "Kiln fired clay", "Slip",
        ],
        "attributes": {
            "Craft Type": "Pottery",
            "Occasion": "Housewarming",
            "Primary Color": "Green",
            "Style": "Rustic",
            "Theme": "Coffee",
        },
        "colors": ["Sage Green", "Cream", "Oatmeal", "Forest Green", "Charcoal"],
        "storeSections": ["Mugs", "Gifts for Her", "Coffee Lovers", "Tea Time", "New Arrivals"],
        "pricingSuggestions": [
            {"tier": "Premium", "price": 48, "currency": "USD", "reason": "Signed artisan piece"},
            {"tier": "Budget", "price": 22.5, "currency": "USD", "reason": "Entry price"},
            {"tier": "Standard", "price": 34, "currency": "USD", "reason": "Market average"},
        ],
        "checklist": [
            {"element": "Title", "instruction": "Lead with ceramic coffee mug"},
            {"element": "Photos", "instruction": "Show the mug in hand"},
            {"element": "Description", "instruction": "Mention capacity"},
            {"element": "Pricing", "instruction": "Offer a pair discount"},
            {"element": "Tags", "instruction": "Use all 13 tags"},
            {"element": "Attributes", "instruction": "Fill in the colors"},
        ],
    }
    payload.update(overrides)
    return payload


def fenced(payload: Any) -> str:
    return "Here is your listing:\n```json\n" + json.dumps(payload) + "\n```\n"


def make_upload(name: str = "mug.png", content: bytes = b"\x89PNG fake bytes") -> Dict[str, str]:
    return {
        "filename": name,
        "mimeType": "image/png",
        "data": base64.b64encode(content).decode(),
    }


class FakeLLM:
    """Stands in for GeminiLLM. Each response slot holds a value, None, or an exception to raise."""

    def __init__(self):
        self.listings: List[Any] = []        # consumed first, one per listing call
        self.listing: Any = make_listing_payload()
        self.listing_gates: List[Optional[asyncio.Event]] = []
        self.json_gates: Dict[str, List[asyncio.Event]] = {}
        self.sources = [{"uri": "https://www.etsy.com/market/ceramic_mug", "title": "etsy.com"}]
        self.titles: Any = json.dumps([
            "Pottery Mug, Handmade Ceramic Cup, Coffee Lover Gift",
            "Stoneware Coffee Mug, Rustic Tea Cup, Gift for Her",
            "Ceramic Latte Mug, Artisan Pottery, Housewarming Gift",
        ])
        self.categories: Any = json.dumps([
            "Home & Living > Kitchen & Dining > Drink & Barware",
            "Craft Supplies & Tools > Pottery",
            "Gifts > Housewarming",
        ])
        self.seasonal: Any = json.dumps(["winter coffee mug", "holiday gift idea"])
        self.regenerated: List[Any] = []
        self.alt_text: Any = "Handmade ceramic coffee mug in sage green glaze"
        self.alt_text_by_content: Dict[bytes, Any] = {}
        self.calls: List[tuple] = []

    @staticmethod
    def _resolve(value):
        if isinstance(value, BaseException):
            raise value
        return value

    @staticmethod
    def _kind(prompt: str) -> str:
        if "alternative, SEO-optimized titles" in prompt:
            return "titles"
        if "alternative, relevant Etsy categories" in prompt:
            return "categories"
        if "seasonal, high-search-volume" in prompt:
            return "seasonal"
        return "regenerate"

    async def generate_with_search(self, prompt, *, temperature=0.7, max_tokens=8000):
        self.calls.append(("listing", prompt))
        payload = self.listings.pop(0) if self.listings else self.listing
        gate = self.listing_gates.pop(0) if self.listing_gates else None
        if gate is not None:
            await gate.wait()
        payload = self._resolve(payload)
        if payload is None:
            return None
        text = payload if isinstance(payload, str) else fenced(payload)
        return GroundedResponse(text=text, sources=list(self.sources))

    async def generate_json(self, prompt, schema, *, temperature=0.7, max_tokens=2000):
        kind = self._kind(prompt)
        self.calls.append((kind, prompt))
        if kind == "regenerate":
            return self._resolve(self.regenerated.pop(0) if self.regenerated else None)
        value = getattr(self, kind)
        gates = self.json_gates.get(kind)
        if gates:
            await gates.pop(0).wait()
        return self._resolve(value)

    async def generate_with_image(self, prompt, image_bytes, *, temperature=0.4, max_tokens=300, mime_type="image/jpeg"):
        self.calls.append(("alt_text", prompt))
        return self._resolve(self.alt_text_by_content.get(image_bytes, self.alt_text))

    async def generate(self, prompt, *, temperature=0.7, max_tokens=2000):
        self.calls.append(("text", prompt))
        return "OK"

    def prompts(self, kind: str) -> List[str]:
        return [p for k, p in self.calls if k == kind]


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def listing_payload():
    return make_listing_payload()
