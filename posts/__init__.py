"""
Post catalog module for PostBook.

This module provides functionality for:
- Parsing front-matter headers from markdown posts
- Linting posts against the authoring conventions
- Building a file-based catalog for a static site generator
- Querying posts by tag, category and date

File structure:
    catalog/
        articles/           - Normalized post .md files
        catalog.json        - Post index and metadata
        taxonomy.json       - Tag, category and archive indexes

Front-matter format:
    ---
    title: "Backing up large objects with pg_dump"
    date: 2019-03-11 21:21:48
    categories:
        - database
    tags: [postgresql, lob]
    ---

Usage:
    from posts import PostCatalogBuilder

    # Build catalog from a posts directory
    builder = PostCatalogBuilder(Path("output/catalog"))
    stats = builder.build_from_directory(Path("content/posts"))

    # Query posts
    article = builder.get_article("pg-lob-backup")
    tagged = builder.search_articles(tag="postgresql")
"""

from .front_matter import (
    FrontMatterError,
    dump_front_matter,
    normalize_front_matter,
    parse_front_matter,
    split_front_matter,
)
from .article import (
    Article,
    CodeBlock,
    extract_code_blocks,
    load_article,
    new_article,
    parse_article,
    render_article,
    slugify,
)
from .lint import LintIssue, lint_article, lint_file
from .builder import CatalogError, PostCatalogBuilder

__all__ = [
    "FrontMatterError",
    "dump_front_matter",
    "normalize_front_matter",
    "parse_front_matter",
    "split_front_matter",
    "Article",
    "CodeBlock",
    "extract_code_blocks",
    "load_article",
    "new_article",
    "parse_article",
    "render_article",
    "slugify",
    "LintIssue",
    "lint_article",
    "lint_file",
    "CatalogError",
    "PostCatalogBuilder",
]

__version__ = "1.0.0"
