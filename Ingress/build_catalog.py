#!/usr/bin/env python3
"""
Build post catalog from markdown files.

This script:
1. Reads every post (*.md) under the posts directory
2. Parses the front-matter header of each post
3. Saves normalized post files
4. Creates catalog.json index
5. Creates taxonomy.json (tags, categories, archives)

Usage:
    python Ingress/build_catalog.py
    python Ingress/build_catalog.py --posts-dir content/posts
    python Ingress/build_catalog.py --reset
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from posts import settings
from posts.builder import PostCatalogBuilder
from posts.front_matter import FrontMatterError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build post catalog from markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Build catalog from all posts in the default directory
    python Ingress/build_catalog.py

    # Build from a specific directory
    python Ingress/build_catalog.py --posts-dir source/_posts

    # Reset existing catalog first
    python Ingress/build_catalog.py --reset

    # Fail on the first malformed header
    python Ingress/build_catalog.py --strict
        """
    )

    parser.add_argument(
        "--posts-dir",
        type=Path,
        default=settings.POSTS_DIR,
        help=f"Directory containing posts (default: {settings.POSTS_DIR})"
    )

    parser.add_argument(
        "--catalog-dir",
        type=Path,
        default=settings.CATALOG_DIR,
        help=f"Output directory for catalog (default: {settings.CATALOG_DIR})"
    )

    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove existing catalog before building"
    )

    parser.add_argument(
        "--drafts",
        action="store_true",
        help="Include posts marked 'draft: true'"
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first post with a malformed header"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show detailed output"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    print("\n" + "=" * 70)
    print("Post Catalog Builder")
    print("=" * 70)

    if not args.posts_dir.is_dir():
        print(f"\n✗ Error: Directory not found: {args.posts_dir}")
        return 1

    print(f"\nInput: {args.posts_dir}")
    print(f"Output: {args.catalog_dir}")
    print("=" * 70)

    builder = PostCatalogBuilder(args.catalog_dir)

    try:
        stats = builder.build_from_directory(
            args.posts_dir,
            clean_existing=args.reset,
            include_drafts=args.drafts,
            strict=args.strict,
        )
    except FrontMatterError as exc:
        print(f"\n✗ Header error: {exc}")
        return 1

    if stats["articles_count"] == 0:
        print("\n⚠ No posts found")
    else:
        print(f"\n✓ Cataloged {stats['articles_count']} posts")
        if args.verbose:
            print(f"    By Category: {stats['by_category']}")
            print(f"    By Code Language: {stats['by_language']}")

    for skipped in stats["skipped"]:
        print(f"  ⚠ Skipped {skipped['file']}: {skipped['reason']}")

    for failed in stats["failed"]:
        print(f"  ✗ {failed['error']}")

    # Summary
    print("\n" + "=" * 70)
    print("CATALOG BUILD COMPLETE")
    print("=" * 70)
    print(f"  Posts cataloged: {stats['articles_count']}")
    print(f"  Posts skipped: {len(stats['skipped'])}")
    print(f"  Posts failed: {len(stats['failed'])}")
    print(f"\nCatalog location: {args.catalog_dir}")
    print(f"  • catalog.json   - Post index")
    print(f"  • taxonomy.json  - Tags, categories and archives")
    print(f"  • articles/      - Normalized post files ({stats['articles_count']} files)")

    if stats["articles_count"] > 0 and args.verbose:
        tags = builder.list_tags()
        print("\nTop tags:")
        for tag, count in list(tags.items())[:5]:
            print(f"  • {tag} ({count})")

    print("=" * 70 + "\n")

    return 0 if not stats["failed"] else 1


if __name__ == "__main__":
    sys.exit(main())
