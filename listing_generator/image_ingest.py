"""
IMAGE INGEST
============
Turns user uploads (base64 from the browser) and image URLs into
ImageRecords for alt-text generation.

A session holds at most MAX_IMAGES images. The cap is checked before any
work starts and a batch that would exceed it is rejected whole. URL fetches
run concurrently; failed URLs are reported and the rest are kept.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence
from urllib.parse import urlparse

import requests

from errors import ImageFetchError, ImageIngestError, ImageLimitError, describe_fetch_failures
from listing_types import ImageRecord

MAX_IMAGES = 20
DOWNLOAD_TIMEOUT_S = 30


@dataclass
class IngestResult:
    added: List[ImageRecord] = field(default_factory=list)
    failures: List[ImageFetchError] = field(default_factory=list)

    @property
    def warning(self):
        return describe_fetch_failures(self.failures)


def new_image_id() -> str:
    return str(uuid.uuid4())[:8]


def check_capacity(current: int, incoming: int, limit: int = MAX_IMAGES) -> None:
    if current + incoming > limit:
        raise ImageLimitError(limit)


def parse_url_list(raw: str) -> List[str]:
    """One URL per line; blank lines ignored."""
    return [line.strip() for line in (raw or "").split("\n") if line.strip()]


def _filename_from_url(url: str) -> str:
    path = urlparse(url).path
    return path[path.rfind("/") + 1:] or "image.jpg"


def decode_uploads(uploads: Sequence[Dict[str, Any]]) -> List[ImageRecord]:
    """Decode browser uploads ({filename, mimeType, data}); non-image files are skipped."""
    records: List[ImageRecord] = []
    for upload in uploads:
        mime_type = upload.get("mimeType") or ""
        if not mime_type.startswith("image/"):
            print(f"      ⚠️  Skipping non-image upload: {upload.get('filename')} ({mime_type})")
            continue
        try:
            content = base64.b64decode(upload.get("data") or "", validate=True)
        except (binascii.Error, ValueError) as e:
            print(f"      ⚠️  Skipping unreadable upload {upload.get('filename')}: {e}")
            continue
        records.append(ImageRecord(
            id=new_image_id(),
            filename=upload.get("filename") or "image",
            content=content,
            mime_type=mime_type,
        ))
    return records


def _download_image(url: str) -> ImageRecord:
    """Blocking fetch of one image URL. Raises ImageFetchError."""
    try:
        resp = requests.get(url, timeout=DOWNLOAD_TIMEOUT_S)
    except requests.RequestException as e:
        raise ImageFetchError(url, str(e)) from e

    if resp.status_code != 200:
        raise ImageFetchError(url, f"status {resp.status_code}")

    mime_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip().lower()
    if not mime_type.startswith("image/"):
        raise ImageFetchError(url, f"not an image ({mime_type or 'unknown type'})")

    return ImageRecord(
        id=new_image_id(),
        filename=_filename_from_url(url),
        content=resp.content,
        mime_type=mime_type,
    )


async def fetch_images(urls: Sequence[str]) -> IngestResult:
    """Fetch every URL concurrently; keep the successes, collect the failures."""
    results = await asyncio.gather(
        *(asyncio.to_thread(_download_image, url) for url in urls),
        return_exceptions=True,
    )

    outcome = IngestResult()
    for url, result in zip(urls, results):
        if isinstance(result, ImageRecord):
            outcome.added.append(result)
        elif isinstance(result, ImageFetchError):
            print(f"      ⚠️  Download failed for {result}")
            outcome.failures.append(result)
        else:
            print(f"      ⚠️  Download failed for {url}: {result}")
            outcome.failures.append(ImageFetchError(url, str(result)))
    return outcome


async def ingest_urls(raw_urls: str, current_count: int, limit: int = MAX_IMAGES) -> IngestResult:
    urls = parse_url_list(raw_urls)
    if not urls:
        raise ImageIngestError()
    check_capacity(current_count, len(urls), limit)
    return await fetch_images(urls)


def ingest_uploads(
    uploads: Sequence[Dict[str, Any]],
    current_count: int,
    limit: int = MAX_IMAGES,
) -> IngestResult:
    check_capacity(current_count, len(uploads), limit)
    return IngestResult(added=decode_uploads(uploads))
