#!/usr/bin/env python3
"""
End-to-end pipeline runner for PostBook.

WORKFLOW:
1. Lint posts (front matter and code fences)
2. Build the catalog (catalog.json, taxonomy.json, normalized posts)
3. Optionally start the read-only API server

Usage:
    python run_pipeline.py [options]

Options:
    --skip-lint         Skip the lint step
    --strict-lint       Stop when lint reports errors
    --reset             Remove the existing catalog before building
    --drafts            Include draft posts in the catalog
    --start-server      Start the web server after pipeline completes

Examples:
    # Lint, build and serve
    python run_pipeline.py --start-server

    # Rebuild from scratch without linting
    python run_pipeline.py --skip-lint --reset
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from posts import settings

BASE_DIR = Path(__file__).resolve().parent
INGRESS_DIR = BASE_DIR / "Ingress"
BACKEND_DIR = BASE_DIR / "Backend"


def run_command(cmd: List[str], description: str, cwd: Optional[Path] = None) -> bool:
    """Run a command and return success status."""
    print(f"\n{'='*70}")
    print(f"STEP: {description}")
    print(f"{'='*70}")
    print(f"Running: {' '.join(str(c) for c in cmd)}")
    print()

    try:
        subprocess.run(
            cmd,
            cwd=cwd or BASE_DIR,
            check=True,
            capture_output=False,
            text=True,
        )
        print(f"\n✓ {description} completed successfully")
        return True
    except subprocess.CalledProcessError as exc:
        print(f"\n✗ {description} failed with exit code {exc.returncode}")
        return False
    except FileNotFoundError:
        print(f"\n✗ Command not found: {cmd[0]}")
        print("Make sure Python is in your PATH")
        return False


def check_prerequisites(posts_dir: Path) -> bool:
    """Check if required directories and files exist."""
    print("Checking prerequisites...")

    checks = [
        (posts_dir.is_dir(), f"Posts directory exists: {posts_dir}"),
        ((INGRESS_DIR / "lint_posts.py").exists(), "lint_posts.py exists"),
        ((INGRESS_DIR / "build_catalog.py").exists(), "build_catalog.py exists"),
        ((BACKEND_DIR / "app.py").exists(), "app.py exists"),
    ]

    all_passed = True
    for check, message in checks:
        status = "✓" if check else "✗"
        print(f"  {status} {message}")
        if not check:
            all_passed = False

    print()
    return all_passed


def count_files(directory: Path, pattern: str) -> int:
    """Count files matching pattern in directory (recursively)."""
    if not directory.exists():
        return 0
    return len(list(directory.rglob(pattern)))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run the complete PostBook pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--posts-dir",
        type=Path,
        default=settings.POSTS_DIR,
        help="Directory containing posts",
    )
    parser.add_argument(
        "--skip-lint",
        action="store_true",
        help="Skip the lint step",
    )
    parser.add_argument(
        "--strict-lint",
        action="store_true",
        help="Stop the pipeline when lint reports errors",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove existing catalog before building",
    )
    parser.add_argument(
        "--drafts",
        action="store_true",
        help="Include draft posts",
    )
    parser.add_argument(
        "--start-server",
        action="store_true",
        help="Start the web server after pipeline completes",
    )
    args = parser.parse_args(argv)

    print("\n" + "="*70)
    print("PostBook Pipeline Runner")
    print("="*70)

    if not check_prerequisites(args.posts_dir):
        print("\n✗ Prerequisite check failed. Please fix the issues above.")
        return 1

    post_count = count_files(args.posts_dir, "*.md")
    if post_count == 0:
        print(f"\n✗ No posts found in {args.posts_dir}")
        return 1
    print(f"Found {post_count} post file(s)")

    # Step 1: Lint
    if not args.skip_lint:
        cmd = [sys.executable, str(INGRESS_DIR / "lint_posts.py"), str(args.posts_dir)]
        if not run_command(cmd, "Lint posts") and args.strict_lint:
            return 1

    # Step 2: Build catalog
    cmd = [sys.executable, str(INGRESS_DIR / "build_catalog.py"), "--posts-dir", str(args.posts_dir)]
    if args.reset:
        cmd.append("--reset")
    if args.drafts:
        cmd.append("--drafts")
    if not run_command(cmd, "Build post catalog"):
        return 1

    # Final summary
    print("\n" + "="*70)
    print("PIPELINE COMPLETE!")
    print("="*70)
    print("\nSummary:")
    print(f"  • Post files: {post_count}")
    print(f"  • Cataloged posts: {count_files(settings.CATALOG_DIR / 'articles', '*.md')}")
    print(f"  • Catalog: {settings.CATALOG_DIR}")

    # Step 3: Start server (optional)
    if args.start_server:
        print("\n" + "="*70)
        print("Starting Web Server")
        print("="*70)
        print(f"\nThe server will run at http://localhost:{settings.DEFAULT_PORT}")
        print("Press Ctrl+C to stop\n")

        cmd = [sys.executable, str(BACKEND_DIR / "app.py")]
        try:
            subprocess.run(cmd, cwd=BACKEND_DIR, check=True)
        except KeyboardInterrupt:
            print("\n\nServer stopped by user")
        except subprocess.CalledProcessError as exc:
            print(f"\n✗ Server failed with exit code {exc.returncode}")
            return 1
    else:
        print("\nTo start the web server, run:")
        print(f"  cd {BACKEND_DIR}")
        print("  python app.py")
        print("\nOr run this script with --start-server flag")

    return 0


if __name__ == "__main__":
    sys.exit(main())
