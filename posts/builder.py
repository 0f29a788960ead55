"""
Catalog builder for PostBook.

Builds a file-based catalog from a directory of posts:
- Normalized .md copies of each post in catalog/articles/
- catalog.json for index and metadata (newest first)
- taxonomy.json for tag, category and archive indexes
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .article import Article, load_article, render_article
from .front_matter import FrontMatterError

logger = logging.getLogger(__name__)

CATALOG_VERSION = "1.0"


class CatalogError(RuntimeError):
    """Exception raised when the catalog is missing or unreadable."""
    pass


class PostCatalogBuilder:
    """Builds and queries a file-based post catalog."""

    def __init__(self, catalog_dir: Path):
        """Initialize catalog builder.

        Args:
            catalog_dir: Directory to store catalog (e.g., output/catalog)
        """
        self.catalog_dir = Path(catalog_dir)
        self.articles_dir = self.catalog_dir / "articles"
        self.catalog_file = self.catalog_dir / "catalog.json"
        self.taxonomy_file = self.catalog_dir / "taxonomy.json"

    def build_from_directory(self, posts_dir: Path, clean_existing: bool = False,
                             include_drafts: bool = False, strict: bool = False) -> Dict:
        """Build catalog from every markdown post under a directory.

        Args:
            posts_dir: Directory searched recursively for *.md files
            clean_existing: If True, remove existing catalog first
            include_drafts: If True, posts with ``draft: true`` are kept
            strict: If True, the first malformed header aborts the build

        Returns:
            Dictionary with build statistics

        Raises:
            FileNotFoundError: If posts_dir does not exist
            FrontMatterError: On a malformed header when strict is set

        Example:
            >>> builder = PostCatalogBuilder(Path("output/catalog"))
            >>> stats = builder.build_from_directory(Path("content/posts"))
            >>> print(f"Cataloged {stats['articles_count']} posts")
        """
        posts_dir = Path(posts_dir)
        if not posts_dir.is_dir():
            raise FileNotFoundError(f"Posts directory not found: {posts_dir}")

        if clean_existing:
            self._clean_catalog()
        self.articles_dir.mkdir(parents=True, exist_ok=True)

        articles: List[Article] = []
        failed: List[Dict[str, str]] = []
        skipped: List[Dict[str, str]] = []
        seen_slugs: Dict[str, Path] = {}

        for path in sorted(posts_dir.rglob("*.md")):
            try:
                article = load_article(path)
            except FrontMatterError as exc:
                if strict:
                    raise
                logger.warning(f"Skipping {path}: {exc}")
                failed.append({"file": str(path), "error": str(exc)})
                continue

            if article.draft and not include_drafts:
                logger.info(f"Skipping draft {path}")
                skipped.append({"file": str(path), "reason": "draft"})
                continue

            if not article.slug:
                logger.warning(f"Skipping {path}: cannot derive a slug")
                skipped.append({"file": str(path), "reason": "empty slug"})
                continue

            if article.slug in seen_slugs:
                first = seen_slugs[article.slug]
                logger.warning(f"Skipping {path}: slug '{article.slug}' already used by {first}")
                skipped.append({"file": str(path), "reason": f"duplicate slug (first: {first})"})
                continue

            seen_slugs[article.slug] = path
            articles.append(article)

        articles = sort_articles(articles)

        for article in articles:
            self._save_article(article)

        self._save_json(self.catalog_file, self._build_catalog_data(articles, posts_dir))

        taxonomy = build_taxonomy(articles)
        taxonomy["version"] = CATALOG_VERSION
        taxonomy["created_at"] = datetime.now().isoformat()
        self._save_json(self.taxonomy_file, taxonomy)

        logger.info(f"Cataloged {len(articles)} posts from {posts_dir} "
                    f"({len(failed)} failed, {len(skipped)} skipped)")

        return {
            "articles_count": len(articles),
            "failed": failed,
            "skipped": skipped,
            "source_dir": str(posts_dir),
            "catalog_dir": str(self.catalog_dir),
            "timestamp": datetime.now().isoformat(),
            "by_category": self._count_values(articles, "categories"),
            "by_language": self._count_values(articles, "code_languages"),
        }

    def _save_article(self, article: Article) -> None:
        """Save a normalized copy of the article (header re-serialized)."""
        filepath = self.articles_dir / f"{article.slug}.md"
        filepath.write_text(render_article(article), encoding='utf-8')

    def _build_catalog_data(self, articles: List[Article], source_dir: Path) -> Dict:
        catalog = {
            "version": CATALOG_VERSION,
            "created_at": datetime.now().isoformat(),
            "source_dir": str(source_dir),
            "total_articles": len(articles),
            "articles": {}
        }

        for article in articles:
            catalog["articles"][article.slug] = {
                "title": article.title,
                "date": _isoformat(article.date),
                "updated": _isoformat(article.updated),
                "categories": article.categories,
                "tags": article.tags,
                "file": f"articles/{article.slug}.md",
                "source_file": str(article.source),
                "excerpt": article.excerpt,
                "code_languages": article.code_languages,
                "word_count": article.word_count,
                "char_count": len(article.body),
            }

        return catalog

    def _save_json(self, path: Path, data: Dict) -> None:
        path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding='utf-8'
        )

    def _clean_catalog(self) -> None:
        """Remove existing catalog files."""
        if self.articles_dir.exists():
            shutil.rmtree(self.articles_dir)

        if self.catalog_file.exists():
            self.catalog_file.unlink()

        if self.taxonomy_file.exists():
            self.taxonomy_file.unlink()

    def _count_values(self, articles: List[Article], field: str) -> Dict[str, int]:
        """Count articles per value of a list-valued field."""
        counts: Dict[str, int] = {}
        for article in articles:
            for value in getattr(article, field):
                counts[value] = counts.get(value, 0) + 1
        return counts

    def is_built(self) -> bool:
        return self.catalog_file.exists() and self.taxonomy_file.exists()

    @property
    def catalog(self) -> Dict:
        return self._load_json(self.catalog_file)

    @property
    def taxonomy(self) -> Dict:
        return self._load_json(self.taxonomy_file)

    def _load_json(self, path: Path) -> Dict:
        if not path.exists():
            raise CatalogError(f"Catalog not found at {self.catalog_dir}. Build catalog first.")
        try:
            return json.loads(path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as exc:
            raise CatalogError(f"Corrupt catalog file {path}: {exc}") from exc

    def get_article(self, slug: str) -> Dict:
        """Get a post by slug, including its body and table of contents.

        Raises:
            CatalogError: If the catalog has not been built
            KeyError: If the slug is unknown
        """
        catalog = self.catalog

        if slug not in catalog["articles"]:
            raise KeyError(f"Article '{slug}' not found in catalog")

        article_meta = catalog["articles"][slug]

        article_file = self.catalog_dir / article_meta["file"]
        if not article_file.exists():
            raise CatalogError(f"Article file not found: {article_file}")

        article = load_article(article_file)

        return {
            **article_meta,
            "slug": slug,
            "body": article.body,
            "toc": article.toc,
        }

    def search_articles(self, tag: Optional[str] = None, category: Optional[str] = None,
                        year: Optional[int] = None, text: Optional[str] = None) -> List[Dict]:
        """Search posts by filters, newest first.

        Args:
            tag: Tag to match, case-insensitive
            category: Category to match exactly
            year: Publication year
            text: Case-insensitive substring of title, excerpt or tags

        Example:
            >>> builder.search_articles(tag='postgresql', year=2019)
            [{'slug': 'pg-lob-migration', 'title': 'Moving large objects ...', ...}]
        """
        catalog = self.catalog

        needle = text.lower() if text else None
        wanted_tag = tag.lower() if tag else None

        results = []
        for slug, meta in catalog["articles"].items():
            if wanted_tag and wanted_tag not in (t.lower() for t in meta["tags"]):
                continue
            if category and category not in meta["categories"]:
                continue
            if year is not None and (not meta["date"] or int(meta["date"][:4]) != int(year)):
                continue
            if needle and not _matches_text(meta, needle):
                continue
            results.append({"slug": slug, **meta})

        return results

    def list_tags(self) -> Dict[str, int]:
        """Tag -> number of posts, most used first."""
        return _ranked_counts(self.taxonomy["tags"])

    def list_categories(self) -> Dict[str, int]:
        """Category -> number of posts, most used first."""
        return _ranked_counts(self.taxonomy["categories"])

    def get_archives(self) -> Dict[str, Dict[str, List[str]]]:
        """Year -> month -> slugs, newest first."""
        return self.taxonomy["archives"]


def sort_articles(articles: List[Article]) -> List[Article]:
    """Newest first; undated posts last. Ties keep slug order."""
    by_slug = sorted(articles, key=lambda a: a.slug)
    dated = sorted((a for a in by_slug if a.date is not None), key=lambda a: a.date, reverse=True)
    undated = [a for a in by_slug if a.date is None]
    return dated + undated


def build_taxonomy(articles: List[Article]) -> Dict:
    """Build tag, category and archive indexes.

    Tags are indexed lowercased so that lookups are case-insensitive.
    Archives use each post's own UTC offset for year and month.

    Example:
        {
            "tags": {"postgresql": ["pg-lob-migration"]},
            "categories": {"database": ["pg-lob-migration"]},
            "archives": {"2019": {"03": ["pg-lob-migration"]}}
        }
    """
    taxonomy = {"tags": {}, "categories": {}, "archives": {}}

    for article in articles:
        for tag in article.tags:
            if not tag:
                continue
            slugs = taxonomy["tags"].setdefault(tag.lower(), [])
            if article.slug not in slugs:
                slugs.append(article.slug)

        for category in article.categories:
            taxonomy["categories"].setdefault(category, []).append(article.slug)

        if article.date is not None:
            year = article.date.strftime("%Y")
            month = article.date.strftime("%m")
            taxonomy["archives"].setdefault(year, {}).setdefault(month, []).append(article.slug)

    return taxonomy


def _ranked_counts(index: Dict[str, List[str]]) -> Dict[str, int]:
    ranked = sorted(index.items(), key=lambda item: (-len(item[1]), item[0]))
    return {name: len(slugs) for name, slugs in ranked}


def _matches_text(meta: Dict, needle: str) -> bool:
    haystack = [meta["title"], meta.get("excerpt", "")] + meta["tags"]
    return any(needle in value.lower() for value in haystack)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
