"""
CLI Entry Point: Generate One AI Artifact

Usage:
    python scripts/generate_artifact.py --kind resume --user-id u1 --job-id 6650f0c2a1b2c3d4e5f60718
    python scripts/generate_artifact.py --kind prediction --user-id u1 --mock --no-persist
    python scripts/generate_artifact.py --kind cover_letter --user-id u1 --job-id ... --tone warm
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.config import Config, GenerationSettings
from src.common.logger import setup_logging
from src.common.types import GenerationKind, GenerationOptions, GenerationRequest
from src.services.content_extraction import ContentExtractor
from src.services.orchestrator import GenerationOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate one AI artifact for a user")
    parser.add_argument(
        "--kind",
        required=True,
        choices=[kind.value for kind in GenerationKind],
        help="Artifact kind to generate",
    )
    parser.add_argument("--user-id", required=True, help="Owner of the profile and job")
    parser.add_argument("--job-id", help="Target job ObjectId (optional for prediction)")
    parser.add_argument("--tone", help="Writing tone, e.g. professional, warm")
    parser.add_argument("--length", choices=["short", "medium", "long"], help="Target length")
    parser.add_argument("--focus", help="Free-text emphasis")
    parser.add_argument("--model", help="Model override (subject to ALLOWED_AI_MODELS)")
    parser.add_argument("--prompt", help="Extra instructions appended to the prompt")
    parser.add_argument("--force-refresh", action="store_true", help="Bypass research caches")
    parser.add_argument("--mock", action="store_true", help="Use the mock provider")
    parser.add_argument("--no-persist", action="store_true", help="Do not store the artifact")
    parser.add_argument("--no-enrich", action="store_true", help="Skip live web enrichment")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-format", choices=["simple", "json"], default="simple", help="Log line format")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = GenerationSettings.from_config()
    if args.mock:
        settings = replace(settings, mock_mode=True)

    orchestrator = GenerationOrchestrator(
        settings=settings,
        extractor=None if args.no_enrich else ContentExtractor(),
        persist=not args.no_persist,
    )
    request = GenerationRequest(
        kind=GenerationKind(args.kind),
        user_id=args.user_id,
        job_id=args.job_id,
        options=GenerationOptions(
            tone=args.tone,
            length=args.length,
            focus=args.focus,
            model=args.model,
            prompt=args.prompt,
            force_refresh=args.force_refresh,
        ),
    )
    result = await orchestrator.generate(request)
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def main():
    """Main CLI function."""
    args = build_parser().parse_args()
    setup_logging(level=args.log_level, format=args.log_format)

    try:
        Config.validate()
    except ValueError as e:
        if not args.mock:
            print(f"❌ Configuration error: {e}")
            sys.exit(2)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
