"""Entry point: wires the content store and prints suggestions as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import config
from blog_suggestions.engine import BlogSuggestionEngine
from blog_suggestions.store import ContentStore, GrpcContentStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print blog post suggestions for a reader as JSON."
    )
    parser.add_argument(
        "--user",
        default=config.ANONYMOUS_USER_ID,
        help="Reader ID (default: the anonymous sentinel).",
    )
    parser.add_argument(
        "--store",
        default=config.CONTENT_STORE_ADDRESS,
        help="Content store gRPC address.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    suggest = sub.add_parser("suggest", help="Personalised suggestions.")
    suggest.add_argument("--exclude", default=None, help="Post ID to leave out.")
    suggest.add_argument("--limit", type=int, default=config.DEFAULT_SUGGESTION_LIMIT)

    related = sub.add_parser("related", help="Posts related to one post.")
    related.add_argument("post_id", help="The post to find related posts for.")
    related.add_argument("--limit", type=int, default=config.DEFAULT_RELATED_LIMIT)
    return parser


async def run(args: argparse.Namespace, store: ContentStore) -> list[dict]:
    """Execute the parsed command against *store* and return JSON-ready results."""
    engine = BlogSuggestionEngine(
        store=store,
        user_id=args.user,
        cache_ttl_seconds=config.SUGGESTION_CACHE_TTL_SECONDS,
        history_limit=config.READING_HISTORY_LIMIT,
        checkpoint_seconds=config.TRACKING_CHECKPOINT_SECONDS,
    )

    if args.command == "suggest":
        results = await engine.generate_suggestions(args.exclude, args.limit)
    else:
        posts = await store.list_published_posts()
        current = next((p for p in posts if p.post_id == args.post_id), None)
        if current is None:
            logger.error("Post %r is not a published blog post.", args.post_id)
            return []
        results = await engine.get_related_posts(current, args.limit)

    return [r.to_dict() for r in results]


async def _main(args: argparse.Namespace) -> int:
    logger.info("Connecting to content store at %s", args.store)
    store = GrpcContentStore.connect(
        args.store, timeout_seconds=config.CONTENT_STORE_TIMEOUT_SECONDS
    )
    try:
        results = await run(args, store)
    except Exception:
        logger.exception("Failed to load posts from the content store.")
        return 1
    finally:
        await store.close()
    json.dump(results, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
