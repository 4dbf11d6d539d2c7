from __future__ import annotations

import re


_SEGMENT_SEP_RE = re.compile(r"[ _/]+")
_SEGMENT_BAD_RE = re.compile(r"[^a-z0-9-]+")
_MULTI_HYPHEN_RE = re.compile(r"-{2,}")


def normalize_slug(raw: str) -> str:
    slug = (raw or "").strip().lower()
    slug = _SEGMENT_SEP_RE.sub("-", slug)
    slug = _SEGMENT_BAD_RE.sub("-", slug)
    slug = _MULTI_HYPHEN_RE.sub("-", slug)
    return slug.strip("-")


def slug_href(slug: str) -> str:
    return f"/{slug.strip('/')}"
