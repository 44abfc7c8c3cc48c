"""
CONTENT AGENTS
==============
AI agents that generate Etsy listing content with Google Gemini:
  - ListingAgent:                full listing (search-grounded, fenced JSON)
  - AlternativeTitlesAgent:      3 alternative titles
  - AlternativeCategoriesAgent:  3 alternative Etsy category paths
  - AltTextAgent:                ≤125-char alt-text for one product photo
  - KeywordRegenerateAgent:      one replacement keyword
  - SeasonalKeywordsAgent:       5 trending 3-word seasonal keywords

Only ListingAgent, AltTextAgent and KeywordRegenerateAgent raise; the
suggestion agents print what went wrong and return an empty list.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, List, Optional

from google.genai import types

from errors import AltTextError, GenerationError, PartialFeatureError, RegenerateError
from gemini_llm import extract_json_payload
from listing_types import MAX_ALT_TEXT_CHARS, Keyword, ListingData
from listing_validators import validate_keyword, validate_listing, validate_string_list
from telemetry import emit_telemetry


# ---------------------------------------------------------------------------
#  Audience / region blocks
# ---------------------------------------------------------------------------

INTENT_PROMPTS = {
    "professionals": "Target Audience: Professionals and large business owners. Focus on scalability, high quality, efficiency, and commercial value. Tone: Professional, authoritative, and premium.",
    "beginners": "Target Audience: Beginners and small business owners. Focus on ease of use, starter-friendly features, and growth potential. Tone: Encouraging, accessible, and clear.",
    "handicrafts": "Target Audience: Small handicraft makers and DIY artisans. Focus on creativity, uniqueness, craft supplies, and handmade quality. Tone: Creative, inspiring, and supportive.",
    "children": "Target Audience: Children's rooms and parents. Focus on safety, playfulness, education, and whimsical design. Tone: Fun, gentle, and family-oriented.",
    "home_decor": "Target Audience: Home decor enthusiasts and interior styling. Focus on aesthetics, trends, atmosphere, and style. Tone: Stylish, cozy, and aspirational.",
    "commercial": "Target Audience: Shops, cafes, and physical retail spaces. Focus on durability, customer appeal, display value, and commercial utility. Tone: Business-oriented, practical, and inviting.",
}

GEOGRAPHY_PROMPTS = {
    "us": "Target Region: United States. Use US English spelling (color, personalized) and US holidays, sizes and search trends.",
    "europe": "Target Region: Europe. Use UK English spelling (colour, personalised), metric measurements and European search trends.",
    "south_america": "Target Region: South America. Favour terms popular with Latin American shoppers searching in English and regional seasons (southern hemisphere).",
    "asia": "Target Region: Asia. Favour terms popular with Asian shoppers searching in English, including regional festivals and gifting occasions.",
    "north_africa": "Target Region: North Africa. Favour terms popular with North African shoppers searching in English, including regional holidays and gifting occasions.",
}


# ---------------------------------------------------------------------------
#  Listing Agent
# ---------------------------------------------------------------------------

LISTING_PROMPT = """You are an expert Etsy SEO and marketing specialist. Your target audience is professional Etsy sellers in the US and European markets.
Using real-time search data from Google, find the best keywords that customers are currently using to search for a product like this: "{description}".
{priority_block}{audience_block}
Generate a complete, SEO-optimized Etsy product listing based on your findings.

You MUST respond with a valid JSON object enclosed in a single markdown code block (```json ... ```).
The JSON object must have this structure:
{{
  "title": "string",
  "description": "string",
  "keywords": [{{"keyword": "string", "volume": "High | Medium | Low", "reason": "string"}}],
  "category": "string",
  "materials": ["string"],
  "attributes": {{"key1": "value1", "key2": "value2"}},
  "colors": ["string"],
  "storeSections": ["string"],
  "pricingSuggestions": [{{"tier": "Budget | Standard | Premium", "price": 0.0, "currency": "USD", "reason": "string"}}],
  "checklist": [{{"element": "string", "instruction": "string"}}]
}}

CONSTRAINTS:
- Title: high-converting and keyword-rich, optimized for first-page ranking.
  - Strictly 3 to 14 words, max 140 characters.
  - The first 40 characters matter most: put the highest-volume exact-match phrase first.
  - Use 2-3 distinct phrases separated by commas. Do not repeat the same word.
  - Example: "Linen Summer Dress, Sleeveless Midi Sundress, Boho Beach Wear"
  - Do NOT use the words "png", "download", "cute", "instant" or vague adjectives like "nice".
  - {title_start_rule}
- Description: about 800-1000 characters in a strict vertical layout, no long paragraphs.
  - Three sections with Markdown headers: **✨ What It Is**, **💖 Why You'll Love It**, **🛠️ How It's Made / Details**.
  - One point per line with bullet (•) or emoji bullets; blank lines between sections.
  - Weave in the top keywords naturally; tailor to the target audience if one is given.
  - End with a call to action on its own line with an emoji (e.g. "🛒 Add to cart now!").
- Keywords: exactly 13 objects, spread across technical/descriptive, occasion and recipient terms.
  - "keyword": 2 or 3 words, STRICTLY max 20 characters (Etsy tag limit).
  - "volume": estimated search volume, one of "High", "Medium", "Low".
  - "reason": max 100 characters.
  - Sort highest search volume first.
- Category: the single most accurate Etsy category.
- Materials: exactly 13 relevant materials.
- Attributes: 5 to 8 key-value pairs buyers filter on (e.g. "Craft Type", "Occasion", "Holiday", "Primary Color", "Secondary Color", "Style", "Theme", "File Type" for digital items).
- Colors: 5 to 7 searchable color names (e.g. "Forest Green", "Rose Gold").
- Store Sections: 5 to 7 SEO-friendly shop section names (e.g. "Gifts for Her").
- Pricing Suggestions: exactly 3 in USD, ordered Budget, Standard, Premium, based on competitor pricing.
  - "price" is a number, "currency" MUST be "USD", "reason" max 100 characters.
- Checklist: exactly 6 actionable steps specific to this product, one each for Title, Photos, Description, Pricing, Tags, Attributes.
"""

PRIORITY_BLOCK = """A priority keyword has been provided: "{priority_keyword}". You MUST place this exact keyword at the very beginning of the generated title.
"""


def build_listing_prompt(
    description: str,
    priority_keyword: Optional[str] = None,
    purchase_intent: Optional[str] = None,
    geography: Optional[str] = None,
) -> str:
    audience = [INTENT_PROMPTS.get(purchase_intent or ""), GEOGRAPHY_PROMPTS.get(geography or "")]
    audience_block = "".join(f"{block}\n" for block in audience if block)
    if priority_keyword:
        priority_block = PRIORITY_BLOCK.format(priority_keyword=priority_keyword)
        title_start_rule = "It MUST start with the priority keyword."
    else:
        priority_block = ""
        title_start_rule = "It MUST start with the top keyword from your generated list."
    return LISTING_PROMPT.format(
        description=description,
        priority_block=priority_block,
        audience_block=audience_block,
        title_start_rule=title_start_rule,
    )


class ListingAgent:
    """Generates the full listing. Any failure becomes a GenerationError."""

    def __init__(self, llm):
        self.llm = llm

    async def run(
        self,
        description: str,
        priority_keyword: Optional[str] = None,
        purchase_intent: Optional[str] = None,
        geography: Optional[str] = None,
    ) -> ListingData:
        prompt = build_listing_prompt(description, priority_keyword, purchase_intent, geography)
        emit_telemetry("ListingAgent", "started", {"priorityKeyword": priority_keyword})

        response = await self.llm.generate_with_search(prompt, temperature=0.7, max_tokens=8000)
        if response is None:
            print("   ❌ Listing generation returned no response")
            emit_telemetry("ListingAgent", "failed", {"reason": "no_response"})
            raise GenerationError()

        payload = extract_json_payload(response.text)
        if payload is None:
            print(f"   ❌ Could not parse listing JSON. Raw response:\n{response.text[:2000]}")
            emit_telemetry("ListingAgent", "failed", {"reason": "parse_error"})
            raise GenerationError()

        ok, errors = validate_listing(payload)
        if not ok:
            print("   ❌ Generated listing failed validation:")
            for e in errors:
                print(f"      - {e}")
            print(f"      Data: {json.dumps(payload, ensure_ascii=False)[:2000]}")
            emit_telemetry("ListingAgent", "failed", {"reason": "validation", "errors": len(errors)})
            raise GenerationError()

        listing = ListingData.from_dict(payload, sources=response.sources)
        emit_telemetry("ListingAgent", "completed", {"title": listing.title})
        return listing


# ---------------------------------------------------------------------------
#  Suggestion agents (alternative titles / categories, seasonal keywords)
# ---------------------------------------------------------------------------

STRING_ARRAY_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(type=types.Type.STRING),
)

ALT_TITLES_PROMPT = """You are an expert Etsy SEO and marketing specialist for the US market.
Based on the following product details, generate 3 alternative, SEO-optimized titles.

Product Description: "{description}"
Original Title: "{original_title}"
Keywords: "{keywords}"
{priority_line}
Constraints for each new title:
- Unique and different from the original title, highly relevant to the product.
- Strictly 3 to 14 words long, max 140 characters.
- Front-load the main keyword phrase; use distinct, high-value phrases separated by commas.
- Do not repeat words like "Gift" or "Art" multiple times.
- Example: "Linen Summer Dress, Sleeveless Midi Sundress, Boho Beach Wear"
- Do NOT use the words "png", "download", "cute". Avoid subjective adjectives.
- Easy to read and compelling for buyers.
{priority_rule}
You MUST respond with a valid JSON array of exactly 3 title strings."""

ALT_CATEGORIES_PROMPT = """You are an expert Etsy SEO and marketing specialist.
Based on the product description and keywords, generate 3 alternative, relevant Etsy categories.

Product Description: "{description}"
Original Category: "{original_category}"
Keywords: "{keywords}"

Constraints for each new category:
- A valid and specific Etsy category path (e.g. "Art & Collectibles > Painting > Oil").
- Unique and different from the original category.
- Highly relevant to the product.

You MUST respond with a valid JSON array of exactly 3 category strings."""

SEASONAL_PROMPT = """You are an expert Etsy SEO specialist.
The current date is {current_date}.

Based on the product description: "{description}", suggest exactly 5 seasonal, high-search-volume keywords that are trending right now or will be trending within the next 1-2 months.

Constraints:
- Each keyword MUST be exactly 3 words long.
- Keywords must be relevant to the product AND the season or upcoming holidays.
- Keywords must be distinct from each other.

Return ONLY a valid JSON array of strings. Example: ["christmas gift idea", "winter wool scarf", "holiday home decor"]"""


async def _request_string_list(llm, prompt: str, feature: str, limit: int) -> List[str]:
    """Ask for a JSON array of strings; raises PartialFeatureError on any problem."""
    try:
        raw = await llm.generate_json(prompt, STRING_ARRAY_SCHEMA, temperature=0.8, max_tokens=1000)
    except Exception as e:
        raise PartialFeatureError(f"{feature}: {e}") from e
    if raw is None:
        raise PartialFeatureError(f"{feature}: no response")

    payload = extract_json_payload(raw)
    ok, errors = validate_string_list(payload)
    if not ok:
        raise PartialFeatureError(f"{feature}: unexpected format ({'; '.join(errors)})")

    items = [s.strip() for s in payload if s.strip()]
    return items[:limit]


class AlternativeTitlesAgent:
    def __init__(self, llm):
        self.llm = llm

    async def run(
        self,
        description: str,
        original_title: str,
        keywords: List[Keyword],
        priority_keyword: Optional[str] = None,
    ) -> List[str]:
        if priority_keyword:
            priority_line = (
                f'A priority keyword has been provided: "{priority_keyword}". '
                "You MUST place this exact keyword at the very beginning of EACH alternative title.\n"
            )
            priority_rule = "- Each title MUST start with the priority keyword.\n"
        else:
            priority_line = priority_rule = ""

        prompt = ALT_TITLES_PROMPT.format(
            description=description,
            original_title=original_title,
            keywords=", ".join(k.keyword for k in keywords),
            priority_line=priority_line,
            priority_rule=priority_rule,
        )
        try:
            titles = await _request_string_list(self.llm, prompt, "alternative titles", 3)
        except PartialFeatureError as e:
            print(f"   ⚠️  {e}")
            return []
        emit_telemetry("AlternativeTitlesAgent", "completed", {"count": len(titles)})
        return titles


class AlternativeCategoriesAgent:
    def __init__(self, llm):
        self.llm = llm

    async def run(self, description: str, original_category: str, keywords: List[Keyword]) -> List[str]:
        prompt = ALT_CATEGORIES_PROMPT.format(
            description=description,
            original_category=original_category,
            keywords=", ".join(k.keyword for k in keywords),
        )
        try:
            categories = await _request_string_list(self.llm, prompt, "alternative categories", 3)
        except PartialFeatureError as e:
            print(f"   ⚠️  {e}")
            return []
        emit_telemetry("AlternativeCategoriesAgent", "completed", {"count": len(categories)})
        return categories


class SeasonalKeywordsAgent:
    """Optional enhancement: every failure is swallowed."""

    def __init__(self, llm):
        self.llm = llm

    async def run(self, description: str, today: Optional[date] = None) -> List[str]:
        today = today or date.today()
        prompt = SEASONAL_PROMPT.format(
            current_date=today.strftime("%B %Y"),
            description=description,
        )
        try:
            keywords = await _request_string_list(self.llm, prompt, "seasonal keywords", 10)
        except PartialFeatureError as e:
            print(f"   ⚠️  {e}")
            return []
        three_word = [k for k in keywords if len(k.split()) == 3]
        return three_word[:5]


# ---------------------------------------------------------------------------
#  Alt-text Agent
# ---------------------------------------------------------------------------

ALT_TEXT_PROMPT = """Based on the provided image and the following product information, generate a short, descriptive, and SEO-optimized alt-text.
Product Description: "{description}"
Main SEO Keywords: "{main_keywords}"

Follow these rules strictly:
1. The alt-text must be a maximum of 125 characters.
2. It must include 1-2 of the main SEO keywords naturally.
3. It must focus on the product type, material, and main usage.
4. It must be attractive for both search engines and accessibility tools.
5. Do NOT use generic words like "image of" or "photo of".
6. Use buyer-friendly wording that highlights the product's uniqueness.
7. Respond with ONLY the alt-text string, and nothing else."""


def clean_alt_text(raw: str) -> str:
    text = raw.strip().replace('"', "").replace("'", "")
    return text[:MAX_ALT_TEXT_CHARS]


class AltTextAgent:
    def __init__(self, llm):
        self.llm = llm

    async def run(
        self,
        description: str,
        keywords: List[Keyword],
        image_content: bytes,
        mime_type: str,
    ) -> str:
        prompt = ALT_TEXT_PROMPT.format(
            description=description,
            main_keywords=", ".join(k.keyword for k in keywords[:2]),
        )
        raw = await self.llm.generate_with_image(prompt, image_content, mime_type=mime_type)
        alt_text = clean_alt_text(raw or "")
        if not alt_text:
            print("   ⚠️  Alt-text generation returned an empty response")
            raise AltTextError()
        return alt_text


# ---------------------------------------------------------------------------
#  Keyword Regenerate Agent
# ---------------------------------------------------------------------------

KEYWORD_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "keyword": types.Schema(type=types.Type.STRING),
        "volume": types.Schema(type=types.Type.STRING, enum=["High", "Medium", "Low"]),
        "reason": types.Schema(type=types.Type.STRING),
    },
    required=["keyword", "volume", "reason"],
)

REGENERATE_PROMPT = """You are an expert Etsy SEO specialist.
Based on the product description: "{description}".
And considering the existing SEO keywords: "{other_keywords}".

Generate a new, unique, and highly relevant SEO keyword object to replace "{keyword_to_replace}".

Constraints for the new keyword:
- Must be 2 or 3 words.
- Must be a maximum of 20 characters, including spaces (Etsy limit).
- Must be a high-volume search term on Etsy and Google, targeting US and European markets.
- Must NOT be "{keyword_to_replace}" or any of the existing keywords.

You MUST respond with a valid JSON object with the following structure:
{{
  "keyword": "string (the new keyword)",
  "volume": "string (High, Medium, or Low)",
  "reason": "string (a brief explanation for the new keyword, max 100 chars)"
}}"""

MAX_REGENERATE_ATTEMPTS = 3


class KeywordRegenerateAgent:
    """Suggests one replacement keyword that is not already in the listing."""

    def __init__(self, llm):
        self.llm = llm

    async def run(
        self,
        description: str,
        existing_keywords: List[Any],
        keyword_to_replace: str,
    ) -> Keyword:
        existing = [k.keyword if isinstance(k, Keyword) else str(k) for k in existing_keywords]
        taken = {k.strip().lower() for k in existing} | {keyword_to_replace.strip().lower()}

        prompt = REGENERATE_PROMPT.format(
            description=description,
            other_keywords=", ".join(k for k in existing if k != keyword_to_replace),
            keyword_to_replace=keyword_to_replace,
        )

        for attempt in range(MAX_REGENERATE_ATTEMPTS):
            raw = await self.llm.generate_json(prompt, KEYWORD_SCHEMA, temperature=0.9, max_tokens=500)
            if raw is None:
                print("   ❌ Keyword regeneration returned no response")
                raise RegenerateError()

            payload = extract_json_payload(raw)
            ok, errors = validate_keyword(payload)
            if not ok:
                print(f"   ❌ Keyword regeneration returned an invalid object: {'; '.join(errors)}")
                raise RegenerateError()

            keyword = Keyword.from_dict(payload)
            if keyword.keyword.lower() not in taken:
                emit_telemetry("KeywordRegenerateAgent", "completed", {"keyword": keyword.keyword})
                return keyword

            print(f"   ⚠️  Attempt {attempt + 1}/{MAX_REGENERATE_ATTEMPTS}: '{keyword.keyword}' is already in use")
            prompt += (
                f'\n\nAttempt {attempt + 1} returned "{keyword.keyword}", which is already used. '
                "Suggest a DIFFERENT keyword."
            )

        raise RegenerateError()
