#!/usr/bin/env python3
"""TrendStudio - CLI entrypoint for turning a trending topic into a published post."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from .auth import InstalledAppTokenProvider, StaticTokenProvider
from .chains import ContentClient
from .config import DEFAULT_CATEGORY, DEFAULT_OUTPUT_DIR, DEFAULT_STORE_PATH, TREND_CATEGORIES
from .controller import StudioController
from .exceptions import StudioError
from .models import BlogStyle
from .rendering import metric_bands
from .storage import JsonFileKeyValueStore, StudioStore
from .utils import generate_filename

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TrendStudio - Trend discovery, AI drafting and Blogger publishing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Categories: {', '.join(TREND_CATEGORIES)}
Styles: {', '.join(s.value for s in BlogStyle)}

Examples:
  # Show today's trending tech topics
  python -m trend_studio --category Technology --list-trends

  # Draft the top trend and save it as HTML
  python -m trend_studio --category Technology

  # Draft a given topic as a how-to, tighten it and publish it
  python -m trend_studio --topic "Pixel 10 launch" --style How-to \\
      --refine "Shorter intro" --publish --blog-id 123 --client-id abc.apps.googleusercontent.com
""",
    )
    parser.add_argument("--category", type=str, default=DEFAULT_CATEGORY, help=f"Trend category (default: {DEFAULT_CATEGORY})")
    parser.add_argument("--keyword", type=str, default=None, help="Keyword narrowing the trend search")
    parser.add_argument("--list-trends", action="store_true", help="List trending topics and exit")
    parser.add_argument("--topic", type=str, default=None, help="Topic to write about (default: the top trend)")
    parser.add_argument(
        "--style",
        type=str,
        default=BlogStyle.NEWS.value,
        choices=[s.value for s in BlogStyle],
        help="Style to keep (default: News); rewrites when it is not among the variations",
    )
    parser.add_argument("--refine", type=str, default=None, help="Instruction to apply to the chosen draft")
    parser.add_argument("--extend", type=str, default=None, help="Topic of a section to append")
    parser.add_argument("--restore", action="store_true", help="Continue from the saved draft instead of drafting")
    parser.add_argument("--no-search", action="store_true", help="Do not ground requests in a web search")
    parser.add_argument("--out-dir", type=str, default=DEFAULT_OUTPUT_DIR, help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})")
    parser.add_argument("--store", type=str, default=DEFAULT_STORE_PATH, help=f"Local store file (default: {DEFAULT_STORE_PATH})")
    parser.add_argument("--publish", action="store_true", help="Publish the post to Blogger")
    parser.add_argument("--blog-id", type=str, default=None, help="Blogger blog id (saved for next time)")
    parser.add_argument("--client-id", type=str, default=None, help="OAuth client id (saved for next time)")
    parser.add_argument(
        "--browser-login",
        action="store_true",
        help="Run the Google consent flow in the browser instead of using BLOGGER_ACCESS_TOKEN",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run one discovery-to-publish session. Returns the exit code."""
    store = StudioStore(JsonFileKeyValueStore(args.store))
    auth = InstalledAppTokenProvider() if args.browser_login else StaticTokenProvider()
    controller = StudioController(
        content=ContentClient(grounded=not args.no_search),
        store=store,
        auth=auth,
    )

    if args.blog_id is not None or args.client_id is not None:
        controller.save_settings(args.blog_id or store.blog_id, args.client_id or store.client_id)

    if args.restore:
        if not controller.restore_draft():
            print("Error: No saved draft to restore.")
            return 1
        print(f"Restored draft: {controller.current_blog.title}")
    else:
        topic = args.topic
        if not topic or args.list_trends:
            print(f"\n[1/4] Fetching trending topics ({args.category})...")
            trends = await controller.load_trends(args.category, args.keyword)
            if not trends:
                print("No trends found. Try another category or keyword.")
                return 1
            for i, trend in enumerate(trends, 1):
                print(f"  {i:2}. [{trend.source.value}] {trend.title} ({trend.difficulty.value}, {trend.search_volume})")
            if args.list_trends:
                return 0
            topic = trends[0].title

        print(f"\n[2/4] Drafting variations for: {topic}")
        if not await controller.generate(topic):
            print(f"Error: {controller.error}")
            return 1

        for i, variation in enumerate(controller.variations, 1):
            print(f"  {i}. [{variation.style.value}] {variation.title}")

        styles = [v.style.value for v in controller.variations]
        index = styles.index(args.style) if args.style in styles else 0
        controller.select_variation(index)
        if controller.current_blog.style.value != args.style:
            print(f"  Rewriting as {args.style}...")
            if not await controller.rewrite(args.style):
                print(f"Warning: {controller.error}")

    print("\n[3/4] Editing...")
    controller.show_editor()
    if args.refine:
        print(f"  Refining: {args.refine}")
        if not await controller.refine(args.refine):
            print(f"Warning: {controller.error}")
    if args.extend:
        print(f"  Extending with: {args.extend}")
        if not await controller.extend(args.extend):
            print(f"Warning: {controller.error}")

    controller.save_draft()
    blog = controller.current_blog
    badge = controller.word_count()
    metrics = blog.metrics
    bands = metric_bands(metrics)
    print(f"  {badge.label}{'' if badge.in_range else ' - outside target'}")
    print(
        f"  SEO {metrics.seo_score} ({bands['seoScore']}) | Keywords {metrics.keyword_score} ({bands['keywordScore']}) | "
        f"Readability {metrics.readability_score} ({bands['readabilityScore']}) | "
        f"AI {metrics.ai_score} ({bands['aiScore']})"
    )
    for item in controller.seo_checklist():
        print(f"  [{'x' if item.satisfied else ' '}] {item.suggestion}")

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    filepath = out_dir / generate_filename(blog.title, "html")
    try:
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(controller.clipboard_payload().html)
    except (OSError, UnicodeEncodeError) as e:
        print(f"Error: Failed to write post to '{filepath}': {e}")
        return 1

    print("\n[4/4] Publishing..." if args.publish else "\n[4/4] Done.")
    if args.publish:
        outcome = await controller.publish()
        if outcome.success:
            print(f"  Published: {outcome.post.get('url', outcome.post.get('id'))}")
        else:
            print(f"  Publish failed: {outcome.error}")
            for hint in outcome.hints:
                print(f"    - {hint}")
            print(f"  Manual mode: paste {filepath} into {controller.manual_editor_url()}")
            return 1

    print("\n" + "=" * 60)
    print("SUCCESS!")
    print(f"  File: {filepath}")
    print(f"  Title: {blog.title}")
    print(f"  Style: {blog.style.value}")
    print(f"  References: {len(blog.references)}")
    print("=" * 60)
    return 0


def main():
    """Main entry point for the TrendStudio CLI."""
    args = build_parser().parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    if not os.environ.get("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY environment variable is required")
        sys.exit(1)
    if not args.no_search and not os.environ.get("TAVILY_API_KEY"):
        print("Warning: TAVILY_API_KEY not set - requests will not be grounded in a web search")

    print("=" * 60)
    print("TRENDSTUDIO")
    print("=" * 60)

    try:
        sys.exit(asyncio.run(run(args)))
    except StudioError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
