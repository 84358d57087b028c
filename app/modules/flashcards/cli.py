from __future__ import annotations

import argparse
import json
from pathlib import Path

from app.core.config import settings
from app.core.rate_limit import RateLimiter
from app.modules.completions import OpenRouterClient
from app.modules.flashcards.errors import GenerationError, InvalidSourceTextError
from app.modules.flashcards.main import FlashcardsGenerator

CLI_CALLER_ID = "cli"


def _load_source(args: argparse.Namespace) -> str:
    if args.text and args.source_file:
        raise SystemExit("Provide either --text or --source-file, not both")
    if args.source_file:
        return Path(args.source_file).read_text(encoding="utf-8")
    if args.text:
        return args.text
    raise SystemExit("--text or --source-file is required")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashcards-gen", description="Flashcard proposals generator CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate flashcard proposals from source text")
    g.add_argument("--text", "-t", help="Source text (1000-10000 characters)")
    g.add_argument("--source-file", help="Path to a file containing the source text")
    g.add_argument("--model", help="Override the configured OpenRouter model")

    args = parser.parse_args(argv)
    if args.cmd == "generate":
        source_text = _load_source(args)
        cfg = settings.openrouter
        if args.model:
            cfg = cfg.model_copy(update={"model": args.model})
        try:
            client = OpenRouterClient.from_settings(cfg)
        except ValueError as e:
            raise SystemExit(str(e))
        svc = FlashcardsGenerator(client, RateLimiter.from_settings(settings.rate_limit))
        try:
            outcome = svc.generate_sync(source_text, CLI_CALLER_ID)
        except InvalidSourceTextError as e:
            raise SystemExit(str(e))
        except GenerationError as e:
            print(
                json.dumps(
                    {
                        "error": {
                            "code": e.code.value,
                            "message": e.message,
                            "model": e.model,
                        }
                    },
                    indent=2,
                )
            )
            return 1
        result = outcome.result
        print(
            json.dumps(
                {
                    "model": result.model,
                    "duration_ms": result.duration_ms,
                    "source_text_hash": outcome.source_text_hash,
                    "proposals": [p.model_dump() for p in result.proposals],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
