"""Error taxonomy for listing generation.

Each error carries a short user-facing message; the raw diagnostic that led
to it is printed where it happens and never travels with the exception.
"""

from __future__ import annotations

from typing import List, Optional


class ListingOptimizerError(Exception):
    """Base exception for the listing optimizer."""

    user_message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class GenerationError(ListingOptimizerError):
    """Primary listing call failed or returned data that did not validate."""

    user_message = "Failed to generate listing. Please check your API key and try again."


class PartialFeatureError(ListingOptimizerError):
    """An optional feature (alternatives, seasonal keywords) failed; callers degrade to empty."""

    user_message = "Optional suggestions are unavailable."


class AltTextError(ListingOptimizerError):
    """Alt-text generation failed for a single image."""

    user_message = "Failed to generate alt-text for this image."


class RegenerateError(ListingOptimizerError):
    """Keyword refine action failed."""

    user_message = "Failed to regenerate keyword. Please try again."


class ImageIngestError(ListingOptimizerError):
    """Problem adding images to the session."""

    user_message = "Please enter at least one URL."


class ImageLimitError(ImageIngestError):
    def __init__(self, limit: int):
        super().__init__(f"You can upload a maximum of {limit} images.")
        self.limit = limit


class ImageFetchError(ImageIngestError):
    """A URL-sourced image could not be fetched or was not an image."""

    user_message = (
        "Could not fetch some images. Please check the URLs and ensure "
        "they are publicly accessible."
    )

    def __init__(self, url: str, reason: str):
        super().__init__(self.user_message)
        self.url = url
        self.reason = reason

    def __str__(self) -> str:
        return f"{self.url}: {self.reason}"


def describe_fetch_failures(failures: List[ImageFetchError]) -> Optional[str]:
    """Count-based warning shown after a URL batch; None when every URL worked."""
    if not failures:
        return None
    return f"{ImageFetchError.user_message} ({len(failures)} failed)"
