#!/usr/bin/env python3
"""
Scaffold a new post with a front-matter header.

Usage:
    python Ingress/new_post.py "Squashing commits before a merge" --category git --tag git --tag rebase
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from posts import settings
from posts.article import new_article, render_article


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create a new post")
    parser.add_argument("title", help="Post title")
    parser.add_argument(
        "--category",
        action="append",
        default=[],
        help="Category (repeatable, order is kept)"
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Tag (repeatable, stored lowercase)"
    )
    parser.add_argument(
        "--posts-dir",
        type=Path,
        default=settings.POSTS_DIR,
        help=f"Directory to write into (default: {settings.POSTS_DIR})"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file"
    )
    args = parser.parse_args(argv)

    article = new_article(
        args.title,
        categories=args.category,
        tags=[tag.strip().lower() for tag in args.tag],
    )
    if not article.slug:
        print(f"✗ Cannot derive a file name from title: {args.title!r}")
        return 1

    args.posts_dir.mkdir(parents=True, exist_ok=True)
    target = args.posts_dir / f"{article.slug}.md"

    if target.exists() and not args.force:
        print(f"✗ File already exists: {target} (use --force to overwrite)")
        return 1

    target.write_text(render_article(article), encoding="utf-8")
    print(f"✓ Created {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
