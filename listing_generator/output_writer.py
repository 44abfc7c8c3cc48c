"""
OUTPUT WRITER
=============
Builds the card view-model the browser renders for a listing session:
  title (priority chip + visible/dimmed split), description, alternative
  titles/categories, keyword card (volume filter, in-title / in-description
  markers), Etsy tags, materials, attributes, colors, store sections,
  pricing, checklist, sources and image alt-texts.

Everything here is derived from session state; nothing is stored.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from highlighter import highlight, keywords_in_text
from listing_types import (
    MAX_ALT_TEXT_CHARS,
    MAX_KEYWORD_CHARS,
    MAX_TITLE_CHARS,
    GroundingSource,
    ListingData,
)
from title_display import split_title

MAX_DESCRIPTION_CHARS = 1000
FAVICON_URL = "https://www.google.com/s2/favicons?sz=32&domain_url={hostname}"


def _text_card(text: str, char_limit: int, **extra: Any) -> Dict[str, Any]:
    return {
        "copyText": text,
        "charCount": len(text),
        "charLimit": char_limit,
        **extra,
    }


def _list_card(items: List[str]) -> Optional[Dict[str, Any]]:
    if not items:
        return None
    return {"items": list(items), "copyText": ", ".join(items)}


def build_source_entry(source: GroundingSource) -> Dict[str, Any]:
    hostname = urlparse(source.uri).hostname
    return {
        "uri": source.uri,
        "title": source.title or hostname or "Invalid Source",
        "hostname": hostname,
        "faviconUrl": FAVICON_URL.format(hostname=hostname) if hostname else None,
    }


def build_keyword_card(listing: ListingData, keyword_filter: str = "All") -> Dict[str, Any]:
    keywords = listing.keyword_strings
    in_title = set(keywords_in_text(listing.title, keywords))
    in_description = set(keywords_in_text(listing.description, keywords))

    rows = []
    for index, kw in enumerate(listing.keywords):
        if keyword_filter != "All" and kw.volume != keyword_filter:
            continue
        if kw.keyword in in_title:
            placement = "title"
        elif kw.keyword in in_description:
            placement = "description"
        else:
            placement = None
        rows.append({
            "index": index,
            **kw.to_dict(),
            "length": len(kw.keyword),
            "overLimit": len(kw.keyword) > MAX_KEYWORD_CHARS,
            "placement": placement,
        })

    return {
        "filter": keyword_filter,
        "rows": rows,
        "copyText": ", ".join(keywords),
    }


def build_listing_view(session) -> Optional[Dict[str, Any]]:
    """Card view-model for the session's current listing, or None before the first listing."""
    listing: Optional[ListingData] = session.listing
    if listing is None:
        return None

    keywords = listing.keyword_strings
    priority = session.priority_keyword

    return {
        "checklist": [item.to_dict() for item in listing.checklist],
        "title": _text_card(
            listing.title,
            MAX_TITLE_CHARS,
            display=split_title(listing.title, keywords, priority).to_dict(),
        ),
        "description": _text_card(
            listing.description,
            MAX_DESCRIPTION_CHARS,
            segments=[s.to_dict() for s in highlight(listing.description, keywords)],
        ),
        "alternativeTitles": [
            {"title": t, "display": split_title(t, keywords, priority).to_dict()}
            for t in session.alternative_titles
        ],
        "category": {"value": listing.category, "alternatives": list(session.alternative_categories)},
        "keywords": build_keyword_card(listing, session.keyword_filter),
        "tags": _list_card(keywords),
        "materials": _list_card(listing.materials),
        "attributes": {
            "items": [{"name": k, "value": v} for k, v in listing.attributes.items()],
            "copyText": "\n".join(f"{k}: {v}" for k, v in listing.attributes.items()),
        },
        "colors": _list_card(listing.colors),
        "storeSections": _list_card(listing.store_sections),
        "pricing": [p.to_dict() for p in listing.pricing_suggestions],
        "sources": [build_source_entry(s) for s in listing.sources],
        "altTexts": [
            {
                "imageId": img.id,
                "filename": img.filename,
                **_text_card(img.alt_text, MAX_ALT_TEXT_CHARS),
            }
            for img in session.images
            if img.alt_text is not None
        ],
    }
