"""
Article model for PostBook.

An article is one markdown file: a front-matter header (title, date,
categories, tags and any extra keys) followed by a free-form body that
usually carries fenced code samples (sql, bash, java ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from . import settings
from .front_matter import (
    FrontMatterError,
    dump_front_matter,
    normalize_front_matter,
    parse_front_matter,
    resolve_timezone,
)

# Fences may be indented by up to three spaces
_FENCE_PATTERN = re.compile(r'^ {0,3}(`{3,}|~{3,})(.*)$')
_HEADING_PATTERN = re.compile(r'^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$')
_MORE_PATTERN = re.compile(r'<!--\s*more\s*-->', re.IGNORECASE)


@dataclass
class CodeBlock:
    """A fenced code sample inside an article body."""
    language: str  # Display hint only, may be empty
    code: str
    line: int  # 1-based line of the opening fence
    end_line: int
    closed: bool = True


@dataclass
class Article:
    """Represents a parsed blog post."""
    title: str
    date: Optional[datetime]
    body: str
    categories: List[str] = None
    tags: List[str] = None
    extra: Dict = None  # Header keys other than title/date/categories/tags
    source: Optional[Path] = None
    slug: str = ""

    def __post_init__(self):
        self.categories = _dedupe(self.categories or [])
        self.tags = _dedupe(self.tags or [])
        if self.extra is None:
            self.extra = {}
        if not self.slug:
            self.slug = self._resolve_slug()

    def _resolve_slug(self) -> str:
        if self.extra.get('slug'):
            return slugify(str(self.extra['slug']))
        if self.source is not None:
            return slugify(Path(self.source).stem)
        return slugify(self.title)

    @property
    def tag_set(self) -> Set[str]:
        return set(self.tags)

    @property
    def draft(self) -> bool:
        return bool(self.extra.get('draft', False))

    @property
    def updated(self) -> Optional[datetime]:
        return self.extra.get('updated')

    @property
    def code_blocks(self) -> List[CodeBlock]:
        return extract_code_blocks(self.body)

    @property
    def code_languages(self) -> List[str]:
        return sorted({block.language.lower() for block in self.code_blocks if block.language})

    @property
    def toc(self) -> List[Dict[str, object]]:
        return parse_toc(self.body)

    @property
    def excerpt(self) -> str:
        return make_excerpt(self.body, settings.EXCERPT_LENGTH)

    @property
    def word_count(self) -> int:
        return len(self.body.split())

    def to_front_matter(self) -> Dict:
        """Header mapping for this article, recognized keys first."""
        header: Dict = {"title": self.title}
        if self.date is not None:
            header["date"] = self.date
        if self.categories:
            header["categories"] = list(self.categories)
        if self.tags:
            header["tags"] = list(self.tags)
        header.update(self.extra)
        return header


def parse_article(text: str, source: Optional[Path] = None,
                  default_tz: Optional[tzinfo] = None) -> Article:
    """Parse a full document into an Article.

    Args:
        text: Document text (header + body)
        source: Path the text was read from, used for the slug
        default_tz: Zone for header dates without an offset

    Returns:
        Article object

    Raises:
        FrontMatterError: If the header is missing or malformed

    Example:
        >>> article = parse_article('---\\ntitle: "X"\\ndate: 2025-01-01\\ntags: [a, b]\\n---\\nHello\\n')
        >>> article.title, sorted(article.tag_set), article.body
        ('X', ['a', 'b'], 'Hello\\n')
    """
    metadata, body = parse_front_matter(text)
    metadata = normalize_front_matter(metadata, default_tz)

    title = metadata.pop('title', '')
    date = metadata.pop('date', None)
    categories = metadata.pop('categories', [])
    tags = metadata.pop('tags', [])

    return Article(
        title=title,
        date=date,
        body=body,
        categories=categories,
        tags=tags,
        extra=metadata,
        source=Path(source) if source is not None else None,
    )


def load_article(path: Path, default_tz: Optional[tzinfo] = None) -> Article:
    """Read and parse an article file.

    Raises:
        FileNotFoundError: If the file does not exist
        FrontMatterError: If the header is missing or malformed (message
            prefixed with the file path)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Article file not found: {path}")

    try:
        text = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as exc:
        raise FrontMatterError(f"{path}: not valid UTF-8: {exc}") from exc

    try:
        return parse_article(text, source=path, default_tz=default_tz)
    except FrontMatterError as exc:
        raise FrontMatterError(f"{path}: {exc}") from exc


def render_article(article: Article) -> str:
    """Serialize an article back to header + body text."""
    return dump_front_matter(article.to_front_matter()) + article.body


def new_article(title: str, categories: Iterable[str] = (), tags: Iterable[str] = (),
                date: Optional[datetime] = None, body: str = "") -> Article:
    """Create a fresh article dated now (in the configured timezone)."""
    if date is None:
        date = datetime.now(resolve_timezone(settings.DEFAULT_TIMEZONE)).replace(microsecond=0)
    return Article(
        title=title,
        date=date,
        body=body,
        categories=list(categories),
        tags=list(tags),
        slug=slugify(title),
    )


def extract_code_blocks(body: str) -> List[CodeBlock]:
    """Extract fenced code blocks from markdown body text.

    Backtick and tilde fences of three or more characters are recognized.
    A fence is closed by a line of the same character that is at least as
    long as the opener. An unclosed fence runs to the end of the body.

    Args:
        body: Markdown body

    Returns:
        List of CodeBlock objects in document order
    """
    blocks = []
    lines = body.splitlines()
    opener = None  # (marker, language, start_line, code_lines)

    for number, line in enumerate(lines, start=1):
        if opener is None:
            match = _FENCE_PATTERN.match(line)
            if not match:
                continue
            marker, info = match.groups()
            # Backtick fences cannot carry backticks in the info string
            if marker[0] == '`' and '`' in info:
                continue
            words = info.split()
            opener = (marker, words[0] if words else '', number, [])
            continue

        marker, language, start, code_lines = opener
        candidate = line.strip()
        indent = len(line) - len(line.lstrip(' '))
        if (indent <= 3 and len(candidate) >= len(marker)
                and candidate == marker[0] * len(candidate)):
            blocks.append(CodeBlock(language, '\n'.join(code_lines), start, number))
            opener = None
        else:
            code_lines.append(line)

    if opener is not None:
        marker, language, start, code_lines = opener
        blocks.append(CodeBlock(language, '\n'.join(code_lines), start, len(lines), closed=False))

    return blocks


def _code_line_numbers(body: str) -> Set[int]:
    numbers = set()
    for block in extract_code_blocks(body):
        numbers.update(range(block.line, block.end_line + 1))
    return numbers


def parse_toc(body: str) -> List[Dict[str, object]]:
    """Extract the heading hierarchy of a body for a table of contents.

    Lines inside code fences are ignored, so shell comments such as
    ``# pg_dump ...`` never show up as headings.
    """
    toc = []
    heading_counts: Dict[str, int] = {}
    code_lines = _code_line_numbers(body)

    for number, line in enumerate(body.splitlines(), start=1):
        if number in code_lines:
            continue
        match = _HEADING_PATTERN.match(line)
        if not match:
            continue

        level = len(match.group(1))
        title = match.group(2).strip()
        heading_id = slugify(title)

        # Handle duplicate IDs
        if heading_id in heading_counts:
            heading_counts[heading_id] += 1
            heading_id = f"{heading_id}-{heading_counts[heading_id]}"
        else:
            heading_counts[heading_id] = 0

        toc.append({
            "level": level,
            "title": title,
            "id": heading_id,
        })

    return toc


def make_excerpt(body: str, limit: int = 200) -> str:
    """Build a plain-text excerpt of an article body.

    Uses everything before a ``<!-- more -->`` marker when present,
    otherwise the first prose paragraph. Code and headings are skipped.
    """
    marker = _MORE_PATTERN.search(body)
    if marker:
        paragraphs = _prose_paragraphs(body[:marker.start()])
        text = ' '.join(paragraphs)
    else:
        paragraphs = _prose_paragraphs(body)
        text = paragraphs[0] if paragraphs else ''

    if len(text) <= limit:
        return text

    cut = text.rfind(' ', 0, limit)
    if cut <= 0:
        cut = limit
    return text[:cut].rstrip() + '...'


def _prose_paragraphs(text: str) -> List[str]:
    code_lines = _code_line_numbers(text)
    paragraphs = []
    current: List[str] = []

    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if number in code_lines or not stripped or _HEADING_PATTERN.match(stripped):
            if current:
                paragraphs.append(' '.join(current))
                current = []
            continue
        current.append(stripped)

    if current:
        paragraphs.append(' '.join(current))
    return paragraphs


def slugify(text: str) -> str:
    """Make a URL-safe identifier, keeping unicode letters."""
    slug = re.sub(r'[^\w\s-]', '', text.lower())
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
