"""Payload helpers shared by the node handlers.

Payloads are open dictionaries. Producers and consumers agree on keys only
at runtime, so the handlers check a fixed list of alternative keys; the
helpers here keep those lookups in one place and make the error messages name
every key that was checked.
"""

import json
import re
import time
import unicodedata
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from contentflow.core.errors import MissingInputError

RTL_LANGUAGES = frozenset({"he", "ar", "fa", "ur"})

# Keys that carry finished article text, in order of preference
ARTICLE_BODY_KEYS: Tuple[str, ...] = ("processedContent", "synthesizedContent")

# Inputs an AI processor can write from
SOURCE_CONTENT_KEYS: Tuple[str, ...] = (
    "articles", "papers", "synthesizedContent", "research", "scrapedContent", "content",
)

ITEM_LIST_KEYS: Tuple[str, ...] = ("scrapedContent", "articles", "papers")


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def first_text(payload: Mapping[str, Any], keys: Sequence[str]) -> Optional[Tuple[str, str]]:
    """Return ``(key, value)`` for the first key holding a non-empty string."""
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return key, value
    return None


def require_text(payload: Mapping[str, Any], keys: Sequence[str], message: str) -> Tuple[str, str]:
    """Like ``first_text`` but raises MissingInputError naming the keys checked."""
    found = first_text(payload, keys)
    if found is None:
        raise MissingInputError(message, checked=keys)
    return found


def item_lists(payload: Mapping[str, Any]) -> Iterable[Tuple[str, List[Any]]]:
    """Non-empty item lists (scrapedContent, articles, papers) in the payload."""
    for key in ITEM_LIST_KEYS:
        value = payload.get(key)
        if isinstance(value, list) and value:
            yield key, value


def extract_source_content(payload: Any) -> str:
    """Flatten whatever content the payload carries into prompt text.

    Raises:
        MissingInputError: If none of the known content sources is present
    """
    if isinstance(payload, str):
        if payload.strip():
            return payload
        raise MissingInputError("No content found to process", checked=("raw string",))

    data: Mapping[str, Any] = payload or {}
    articles = data.get("articles")
    if isinstance(articles, list) and articles:
        return "\n\n".join(
            f"Title: {item.get('title') or 'Untitled'}\n"
            f"Content: {item.get('description') or item.get('content') or ''}"
            for item in articles if isinstance(item, Mapping)
        )
    papers = data.get("papers")
    if isinstance(papers, list) and papers:
        return "\n\n".join(
            f"Title: {item.get('title') or 'Untitled'}\n"
            f"Abstract: {item.get('abstract') or item.get('content') or ''}"
            for item in papers if isinstance(item, Mapping)
        )
    for key in ("synthesizedContent", "research"):
        if _text(data.get(key)).strip():
            return data[key]
    scraped = data.get("scrapedContent")
    if isinstance(scraped, list) and scraped:
        joined = "\n\n".join(_text(item.get("content")) for item in scraped if isinstance(item, Mapping))
        if joined.strip():
            return joined
    if _text(data.get("content")).strip():
        return data["content"]
    raise MissingInputError(
        "No usable content found. Connect this node to a scraper, feed, search or research node",
        checked=SOURCE_CONTENT_KEYS + ("raw string",),
    )


def collect_sources(payload: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Normalize every content source in the payload to ``{title, url, content}``."""
    sources: List[Dict[str, str]] = []
    for item in payload.get("scrapedContent") or []:
        if isinstance(item, Mapping):
            sources.append({
                "title": item.get("url") or "Scraped Content",
                "url": item.get("url") or "",
                "content": _text(item.get("content")),
            })
    for item in payload.get("articles") or []:
        if isinstance(item, Mapping):
            sources.append({
                "title": item.get("title") or "Article",
                "url": item.get("link") or item.get("url") or "",
                "content": _text(item.get("description") or item.get("content") or item.get("summary")),
            })
    for item in payload.get("papers") or []:
        if isinstance(item, Mapping):
            sources.append({
                "title": item.get("title") or "Research Paper",
                "url": item.get("url") or "",
                "content": _text(item.get("abstract") or item.get("content")),
            })
    if _text(payload.get("research")).strip():
        sources.append({"title": "Research Findings", "url": "", "content": payload["research"]})
    if _text(payload.get("content")).strip():
        sources.append({"title": "Content", "url": "", "content": payload["content"]})
    return sources


def dedupe_references(references: Iterable[Any]) -> List[Dict[str, Any]]:
    """Drop empty references and keep the first reference per url."""
    seen = set()
    unique = []
    for ref in references:
        if not isinstance(ref, Mapping):
            continue
        key = ref.get("url") or json.dumps(dict(ref), sort_keys=True, default=str)
        if key in seen:
            continue
        seen.add(key)
        unique.append(dict(ref))
    return unique


def collect_source_references(payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Gather source references from every place upstream nodes put them."""
    refs: List[Any] = list(payload.get("source_references") or [])
    for _, items in item_lists(payload):
        refs.extend(item.get("source_reference") for item in items if isinstance(item, Mapping))
    if payload.get("source_reference"):
        refs.append(payload["source_reference"])
    return dedupe_references(refs)


_FENCE = re.compile(r"```(?:json|markdown|md)?\s*")
_HEADING = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_HEADING_LINE = re.compile(r"^#[ \t]+.+\n?\n?", re.MULTILINE)


def parse_generated_article(text: str) -> Tuple[str, str]:
    """Split generated text into ``(title, body)``.

    Accepts markdown with a ``# Title`` heading or a JSON envelope with
    ``title`` and ``content``. Text without a heading gets its first
    meaningful line promoted to the title. The title line is removed from
    the body.
    """
    cleaned = text.strip()
    if "```" in cleaned:
        cleaned = _FENCE.sub("", cleaned).strip()

    if cleaned.startswith("{"):
        try:
            envelope = json.loads(cleaned)
        except ValueError:
            envelope = None
        if isinstance(envelope, dict):
            body = envelope.get("content") or envelope.get("text") or ""
            title = (envelope.get("title") or "").strip()
            if title and isinstance(body, str):
                body = _HEADING_LINE.sub("", body, count=1) if body.lstrip().startswith("#") else body
                return title, body.strip()
            if isinstance(body, str) and body:
                cleaned = body.strip()

    if not cleaned.startswith("#"):
        first_line = next(
            (line.strip() for line in cleaned.splitlines() if len(line.strip()) > 10),
            "Generated Article",
        )
        cleaned = f"# {first_line}\n\n{cleaned}"

    match = _HEADING.search(cleaned)
    title = match.group(1).strip() if match else "Untitled Article"
    body = _HEADING_LINE.sub("", cleaned, count=1).strip()
    return title, body


def slugify(text: str) -> str:
    """ASCII-safe slug: lowercase letters, digits and single hyphens."""
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9\s-]", "", folded.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def fallback_slug(language: str) -> str:
    """Slug for titles that leave fewer than three slug characters."""
    suffix = str(int(time.time() * 1000))[-6:]
    return slugify(f"{language or 'xx'}-article-{suffix}")


def is_rtl(language: Optional[str]) -> bool:
    return (language or "") in RTL_LANGUAGES


_PLACEHOLDER = re.compile(r"\{\{\s*(?:article\.)?([A-Za-z_][\w]*)\s*\}\}")


def render_template(template: str, payload: Mapping[str, Any]) -> str:
    """Fill ``{{article.key}}`` / ``{{key}}`` placeholders from the payload.

    Unknown keys render as an empty string.
    """
    def replace(match: "re.Match[str]") -> str:
        value = payload.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(replace, template or "")
