"""
CLI Entry Point: Extract Readable Content From a URL

Usage:
    python scripts/extract_url.py https://jobs.example.com/123
    python scripts/extract_url.py https://jobs.example.com/123 --strategy browser
    python scripts/extract_url.py https://jobs.example.com/123 --check
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.logger import setup_logging
from src.services.browser_pool import get_browser_pool
from src.services.content_extraction import ContentExtractor, ExtractionError, ExtractionOptions


async def run(args: argparse.Namespace) -> int:
    extractor = ContentExtractor(max_retries=args.retries)
    try:
        if args.check:
            print(json.dumps(await extractor.check_url_accessibility(args.url), indent=2))
            return 0

        result = await extractor.extract(
            args.url,
            ExtractionOptions(force_strategy=args.strategy, wait_for_selector=args.selector),
        )
    except ExtractionError as e:
        print(f"❌ Extraction failed after {e.attempts} attempts: {e}")
        return 1
    finally:
        await get_browser_pool().close()

    print(f"✓ {result.title or '(untitled)'}")
    print(f"  strategy={result.meta.strategy} status={result.meta.status} "
          f"retries={result.meta.retries} latency_ms={result.meta.latency_ms}")
    print(f"  final_url={result.final_url}\n")
    print(result.clean_text[: args.max_chars])
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Fetch a page through the extraction strategies")
    parser.add_argument("url", help="http(s) URL to fetch")
    parser.add_argument("--strategy", choices=["fetch", "browser"], help="Skip escalation")
    parser.add_argument("--selector", help="CSS selector to wait for in the browser")
    parser.add_argument("--retries", type=int, default=None, help="Retries per HTTP strategy")
    parser.add_argument("--check", action="store_true", help="Only check accessibility")
    parser.add_argument("--max-chars", type=int, default=2000, help="Characters of text to print")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-format", choices=["simple", "json"], default="simple", help="Log line format")
    args = parser.parse_args()

    setup_logging(level=args.log_level, format=args.log_format)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
