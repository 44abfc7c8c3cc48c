"""Tests for the listing card view-model."""

import pytest

from listing_generator.master_pipeline import ListingSession
from listing_generator.output_writer import (
    build_keyword_card,
    build_listing_view,
    build_source_entry,
)
from listing_types import GroundingSource, ListingData


def test_no_view_before_first_listing(fake_llm):
    assert build_listing_view(ListingSession(fake_llm)) is None


def test_keyword_card_placement(listing_payload):
    listing = ListingData.from_dict(listing_payload)
    rows = {row["keyword"]: row for row in build_keyword_card(listing)["rows"]}

    assert rows["handmade mug"]["placement"] == "title"
    assert rows["stoneware cup"]["placement"] == "description"
    assert rows["latte mug"]["placement"] is None
    assert rows["ceramic coffee mug"]["length"] == 18
    assert rows["ceramic coffee mug"]["overLimit"] is False


def test_keyword_card_filter_keeps_original_index(listing_payload):
    listing = ListingData.from_dict(listing_payload)
    card = build_keyword_card(listing, "Low")

    assert card["filter"] == "Low"
    assert [row["index"] for row in card["rows"]] == [8, 9, 10, 11, 12]
    # copy text always holds every keyword
    assert card["copyText"].count(",") == 12


def test_source_entry():
    entry = build_source_entry(GroundingSource("https://www.etsy.com/market/mugs", ""))
    assert entry["hostname"] == "www.etsy.com"
    assert entry["title"] == "www.etsy.com"
    assert "domain_url=www.etsy.com" in entry["faviconUrl"]

    bad = build_source_entry(GroundingSource("not a url"))
    assert bad["title"] == "Invalid Source"
    assert bad["faviconUrl"] is None


@pytest.mark.asyncio
async def test_listing_view_cards(fake_llm):
    session = ListingSession(fake_llm)
    await session.generate("A handmade ceramic coffee mug", priority_keyword="Handmade Mug")
    view = build_listing_view(session)

    title = view["title"]
    assert title["charCount"] == len(session.listing.title)
    assert title["charLimit"] == 140
    assert title["display"]["priorityChip"] == "Handmade Mug"

    segments = view["description"]["segments"]
    assert "".join(s["text"] for s in segments) == session.listing.description
    assert any(s["keyword"] == "stoneware cup" for s in segments)

    assert len(view["alternativeTitles"]) == 3
    assert view["category"]["alternatives"] == session.alternative_categories
    assert view["attributes"]["copyText"].splitlines()[0] == "Craft Type: Pottery"
    assert view["materials"]["copyText"].startswith("Ceramic, Stoneware")
    assert [p["tier"] for p in view["pricing"]] == ["Budget", "Standard", "Premium"]
    assert len(view["checklist"]) == 6
    assert view["sources"][0]["hostname"] == "www.etsy.com"
    assert view["altTexts"] == []
