"""
LISTING TYPES
=============
Dataclasses for a generated Etsy listing and the images attached to it.

Wire format (what Gemini returns and what the UI receives) uses camelCase
keys; attributes here are snake_case. `from_dict` assumes the payload has
already passed `listing_validators.validate_listing`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

VOLUMES = ("High", "Medium", "Low")
PRICING_TIERS = ("Budget", "Standard", "Premium")

MAX_KEYWORD_CHARS = 20
MAX_TITLE_CHARS = 140
MAX_ALT_TEXT_CHARS = 125


@dataclass(frozen=True)
class Keyword:
    keyword: str
    volume: str
    reason: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Keyword":
        return cls(
            keyword=data["keyword"].strip(),
            volume=data["volume"],
            reason=data["reason"].strip(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"keyword": self.keyword, "volume": self.volume, "reason": self.reason}


@dataclass(frozen=True)
class PricingSuggestion:
    tier: str
    price: float
    reason: str
    currency: str = "USD"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingSuggestion":
        return cls(
            tier=data["tier"],
            price=float(data["price"]),
            reason=data["reason"],
            currency=data["currency"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "price": self.price,
            "currency": self.currency,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ChecklistItem:
    element: str
    instruction: str

    def to_dict(self) -> Dict[str, Any]:
        return {"element": self.element, "instruction": self.instruction}


@dataclass(frozen=True)
class GroundingSource:
    uri: str
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"web": {"uri": self.uri, "title": self.title}}


def _volume_rank(keyword: Keyword) -> int:
    return VOLUMES.index(keyword.volume) if keyword.volume in VOLUMES else len(VOLUMES)


def _tier_rank(suggestion: PricingSuggestion) -> int:
    return PRICING_TIERS.index(suggestion.tier)


@dataclass(frozen=True)
class ListingData:
    title: str
    description: str
    keywords: List[Keyword]
    category: str
    materials: List[str]
    attributes: Dict[str, str]
    colors: List[str]
    store_sections: List[str]
    pricing_suggestions: List[PricingSuggestion]
    checklist: List[ChecklistItem]
    sources: List[GroundingSource] = field(default_factory=list)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        sources: Optional[List[Dict[str, str]]] = None,
    ) -> "ListingData":
        # Stable sorts: the model's own ordering survives inside each volume tier.
        keywords = sorted((Keyword.from_dict(k) for k in data["keywords"]), key=_volume_rank)
        pricing = sorted(
            (PricingSuggestion.from_dict(p) for p in data["pricingSuggestions"]),
            key=_tier_rank,
        )
        return cls(
            title=data["title"].strip(),
            description=data["description"].strip(),
            keywords=keywords,
            category=data["category"].strip(),
            materials=list(data["materials"]),
            attributes=dict(data["attributes"]),
            colors=list(data["colors"]),
            store_sections=list(data["storeSections"]),
            pricing_suggestions=pricing,
            checklist=[ChecklistItem(c["element"], c["instruction"]) for c in data["checklist"]],
            sources=[GroundingSource(s["uri"], s.get("title", "")) for s in (sources or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": [k.to_dict() for k in self.keywords],
            "category": self.category,
            "materials": list(self.materials),
            "attributes": dict(self.attributes),
            "colors": list(self.colors),
            "storeSections": list(self.store_sections),
            "pricingSuggestions": [p.to_dict() for p in self.pricing_suggestions],
            "checklist": [c.to_dict() for c in self.checklist],
            "sources": [s.to_dict() for s in self.sources],
        }

    @property
    def keyword_strings(self) -> List[str]:
        return [k.keyword for k in self.keywords]


@dataclass(frozen=True)
class ImageRecord:
    id: str
    filename: str
    content: bytes = field(repr=False)
    mime_type: str
    alt_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "size": len(self.content),
            "altText": self.alt_text,
        }
