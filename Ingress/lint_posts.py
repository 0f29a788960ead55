#!/usr/bin/env python3
"""
Check posts against the authoring conventions.

Reports missing titles or dates, tags that are not lowercase tokens,
duplicate tags and code fences without a language hint. Posts whose
header cannot be parsed are reported as errors.

Usage:
    python Ingress/lint_posts.py
    python Ingress/lint_posts.py content/posts/pg-lob-backup.md
    python Ingress/lint_posts.py --errors-only
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from posts import settings
from posts.lint import ERROR, has_errors, lint_file


def collect_files(paths: List[Path]) -> List[Path]:
    """Expand directories to the *.md files they contain."""
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(path.rglob("*.md")))
        else:
            files.append(path)
    return files


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Lint post front matter and code fences")
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help=f"Post files or directories (default: {settings.POSTS_DIR})"
    )
    parser.add_argument(
        "--errors-only",
        action="store_true",
        help="Hide warnings"
    )
    args = parser.parse_args(argv)

    files = collect_files(args.paths or [settings.POSTS_DIR])
    missing = [path for path in files if not path.exists()]
    if missing:
        for path in missing:
            print(f"✗ File not found: {path}")
        return 1

    files_with_errors = 0
    warning_count = 0

    for path in files:
        issues = lint_file(path)
        if args.errors_only:
            issues = [issue for issue in issues if issue.severity == ERROR]

        if not issues:
            continue

        print(f"\n{path}")
        for issue in issues:
            marker = "✗" if issue.severity == ERROR else "⚠"
            print(f"  {marker} {issue.code}: {issue.message}")

        warning_count += sum(1 for issue in issues if issue.severity != ERROR)
        if has_errors(issues):
            files_with_errors += 1

    print(f"\nChecked {len(files)} post(s): "
          f"{files_with_errors} with errors, {warning_count} warning(s)")

    return 1 if files_with_errors else 0


if __name__ == "__main__":
    sys.exit(main())
