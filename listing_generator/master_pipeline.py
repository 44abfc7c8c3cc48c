"""
MASTER PIPELINE
===============
Orchestrates one user's listing session:

  Stage 1 → Generate the listing             (ListingAgent, must succeed)
  Stage 2 → Concurrently, settle all:
              a. Alternative titles           (AlternativeTitlesAgent)
              b. Alternative categories       (AlternativeCategoriesAgent)
              c. Alt-text, one per image      (AltTextAgent)
  Stage 3 → Merge whatever succeeded into the session

After that the user refines the listing in place: swap in an alternative
title or category, edit or regenerate a keyword, add/remove images, ask for
seasonal keywords.

Every generation gets a number. Results that come back for an older number
are dropped, so a slow response from a previous click never overwrites a
newer listing.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from errors import AltTextError, GenerationError, ImageLimitError
from listing_types import VOLUMES, ImageRecord, Keyword, ListingData
from telemetry import emit_telemetry

from listing_generator.content_agents import (
    AlternativeCategoriesAgent,
    AlternativeTitlesAgent,
    AltTextAgent,
    KeywordRegenerateAgent,
    ListingAgent,
    SeasonalKeywordsAgent,
)
from listing_generator.image_ingest import (
    MAX_IMAGES,
    IngestResult,
    ingest_uploads,
    ingest_urls,
)

ALT_TEXT_FALLBACK = AltTextError.user_message
KEYWORD_FILTERS = ("All",) + VOLUMES
EMPTY_DESCRIPTION = "Please enter a product description."


class ListingSession:
    """
    State and actions behind one browser session.

    Usage:
        session = ListingSession(GeminiLLM(GeminiConfig.from_env()))
        await session.add_image_urls("https://example.com/mug.jpg")
        listing = await session.generate("A handmade ceramic coffee mug ...")
        session.select_alternative_title(session.alternative_titles[0])

    Collections (`listing`, `images`, alternatives) are always replaced by a
    new value, never mutated in place.
    """

    def __init__(self, llm, *, max_images: int = MAX_IMAGES):
        self.llm = llm
        self.max_images = max_images

        self.listing_agent = ListingAgent(llm)
        self.titles_agent = AlternativeTitlesAgent(llm)
        self.categories_agent = AlternativeCategoriesAgent(llm)
        self.alt_text_agent = AltTextAgent(llm)
        self.regenerate_agent = KeywordRegenerateAgent(llm)
        self.seasonal_agent = SeasonalKeywordsAgent(llm)

        self.description = ""
        self.priority_keyword: Optional[str] = None
        self.purchase_intent: Optional[str] = None
        self.geography: Optional[str] = None

        self.status = "idle"                 # idle | generating | done | error
        self.error: Optional[str] = None
        self.listing: Optional[ListingData] = None
        self.alternative_titles: List[str] = []
        self.alternative_categories: List[str] = []
        self.images: List[ImageRecord] = []
        self.seasonal_keywords: List[str] = []
        self.keyword_filter = "All"

        self._generation = 0

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def generate(
        self,
        description: str,
        priority_keyword: Optional[str] = None,
        purchase_intent: Optional[str] = None,
        geography: Optional[str] = None,
    ) -> Optional[ListingData]:
        """Run the full flow. Returns None if a newer generation superseded this one."""
        if not (description or "").strip():
            raise ValueError(EMPTY_DESCRIPTION)

        self._generation += 1
        generation = self._generation

        self.description = description
        self.priority_keyword = (priority_keyword or "").strip() or None
        self.purchase_intent = purchase_intent or None
        self.geography = geography or None
        self.status = "generating"
        self.error = None
        self.listing = None
        self.alternative_titles = []
        self.alternative_categories = []
        self.keyword_filter = "All"
        self.images = [replace(img, alt_text=None) for img in self.images]

        print(f"\n   🚀 Generation #{generation}: {description[:60]!r}")
        emit_telemetry("ListingSession", "generation_started", {"generation": generation})

        try:
            listing = await self.listing_agent.run(
                description,
                self.priority_keyword,
                self.purchase_intent,
                self.geography,
            )
        except BaseException as e:
            if self._is_current(generation):
                self.status = "error"
                self.error = e.message if isinstance(e, GenerationError) else GenerationError.user_message
            raise

        if not self._is_current(generation):
            print(f"   ⚠️  Dropping stale listing from generation #{generation}")
            return None
        self.listing = listing

        images = list(self.images)
        titles, categories, *alt_results = await asyncio.gather(
            self.titles_agent.run(description, listing.title, listing.keywords, self.priority_keyword),
            self.categories_agent.run(description, listing.category, listing.keywords),
            *(
                self.alt_text_agent.run(description, listing.keywords, img.content, img.mime_type)
                for img in images
            ),
            return_exceptions=True,
        )

        if not self._is_current(generation):
            print(f"   ⚠️  Dropping stale suggestions from generation #{generation}")
            return None

        self.alternative_titles = self._settled_list(titles, "alternative titles")
        self.alternative_categories = self._settled_list(categories, "alternative categories")
        self._merge_alt_texts(images, alt_results)

        self.status = "done"
        print(f"   ✅ Generation #{generation} complete: {listing.title}")
        emit_telemetry("ListingSession", "generation_completed", {
            "generation": generation,
            "alternativeTitles": len(self.alternative_titles),
            "alternativeCategories": len(self.alternative_categories),
            "altTexts": len(images),
        })
        return listing

    @staticmethod
    def _settled_list(result: Any, feature: str) -> List[str]:
        if isinstance(result, BaseException):
            print(f"   ⚠️  {feature} failed: {result}")
            return []
        return list(result or [])

    def _merge_alt_texts(self, images: Sequence[ImageRecord], results: Sequence[Any]) -> None:
        alt_texts: Dict[str, str] = {}
        for img, result in zip(images, results):
            if isinstance(result, str):
                alt_texts[img.id] = result
            else:
                print(f"   ⚠️  Alt-text failed for {img.filename}: {result}")
                alt_texts[img.id] = ALT_TEXT_FALLBACK
        # Images removed while their request was in flight stay removed
        self.images = [
            replace(img, alt_text=alt_texts[img.id]) if img.id in alt_texts else img
            for img in self.images
        ]

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------

    def _require_listing(self) -> ListingData:
        if self.listing is None:
            raise ValueError("No listing has been generated yet.")
        return self.listing

    def select_alternative_title(self, title: str) -> ListingData:
        """Swap `title` in; the current title takes its place among the alternatives."""
        listing = self._require_listing()
        if title not in self.alternative_titles:
            raise ValueError(f"Not an alternative title: {title}")
        self.alternative_titles = [t for t in self.alternative_titles if t != title] + [listing.title]
        self.listing = replace(listing, title=title)
        return self.listing

    def select_alternative_category(self, category: str) -> ListingData:
        listing = self._require_listing()
        if category not in self.alternative_categories:
            raise ValueError(f"Not an alternative category: {category}")
        self.alternative_categories = [c for c in self.alternative_categories if c != category] + [listing.category]
        self.listing = replace(listing, category=category)
        return self.listing

    def save_keyword(self, index: int, keyword: Keyword) -> ListingData:
        listing = self._require_listing()
        if not 0 <= index < len(listing.keywords):
            raise IndexError(f"Keyword index out of range: {index}")
        keywords = list(listing.keywords)
        keywords[index] = keyword
        self.listing = replace(listing, keywords=keywords)
        return self.listing

    async def regenerate_keyword(self, keyword_to_replace: str) -> Keyword:
        """Ask for a replacement keyword. The listing is unchanged until save_keyword."""
        listing = self._require_listing()
        if not self.description.strip():
            raise ValueError(EMPTY_DESCRIPTION)
        return await self.regenerate_agent.run(self.description, listing.keywords, keyword_to_replace)

    def set_keyword_filter(self, volume: str) -> None:
        if volume not in KEYWORD_FILTERS:
            raise ValueError(f"Unknown volume filter: {volume}")
        self.keyword_filter = volume

    @property
    def filtered_keywords(self) -> List[Keyword]:
        if self.listing is None:
            return []
        if self.keyword_filter == "All":
            return list(self.listing.keywords)
        return [k for k in self.listing.keywords if k.volume == self.keyword_filter]

    async def suggest_seasonal_keywords(self, description: Optional[str] = None) -> List[str]:
        description = description if description is not None else self.description
        if not (description or "").strip():
            raise ValueError(EMPTY_DESCRIPTION)
        self.seasonal_keywords = []
        self.seasonal_keywords = await self.seasonal_agent.run(description)
        return self.seasonal_keywords

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _append_images(self, result: IngestResult) -> IngestResult:
        # cap holds even if another batch landed during the fetch
        if len(self.images) + len(result.added) > self.max_images:
            raise ImageLimitError(self.max_images)
        self.images = self.images + result.added
        print(f"   📸 Added {len(result.added)} image(s), {len(self.images)} total")
        return result

    def add_uploads(self, uploads: Sequence[Dict[str, Any]]) -> IngestResult:
        return self._append_images(ingest_uploads(uploads, len(self.images), self.max_images))

    async def add_image_urls(self, raw_urls: str) -> IngestResult:
        result = await ingest_urls(raw_urls, len(self.images), self.max_images)
        return self._append_images(result)

    def remove_image(self, image_id: str) -> None:
        if not any(img.id == image_id for img in self.images):
            raise KeyError(image_id)
        self.images = [img for img in self.images if img.id != image_id]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation": self._generation,
            "status": self.status,
            "error": self.error,
            "description": self.description,
            "priorityKeyword": self.priority_keyword,
            "purchaseIntent": self.purchase_intent,
            "geography": self.geography,
            "listing": self.listing.to_dict() if self.listing else None,
            "alternativeTitles": list(self.alternative_titles),
            "alternativeCategories": list(self.alternative_categories),
            "images": [img.to_dict() for img in self.images],
            "seasonalKeywords": list(self.seasonal_keywords),
            "keywordFilter": self.keyword_filter,
        }
