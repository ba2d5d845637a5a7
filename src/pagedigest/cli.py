# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Digest CLI: digest, prompt, analyze commands.

Usage:
    python -m pagedigest.cli digest FILE --url URL [--output PATH] [--compact]
    python -m pagedigest.cli prompt FILE --url URL [--max-passages N] [--max-tokens N]
    python -m pagedigest.cli analyze FILE --url URL [--max-tokens N]

FILE is a saved, rendered HTML page; URL is the address it was loaded from.
Exit codes: 0 success or skip, 1 failure, 2 usage error.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pagedigest import SkippedPage
from pagedigest.config import DigestConfig, ReasonerConfig
from pagedigest.digest import build_page_digest
from pagedigest.logging_config import configure
from pagedigest.problem_details import from_exception


class _StdioSink:
    """ResultSink writing reports to stdout and problems to stderr."""

    def data(self, text: str) -> None:
        sys.stdout.write(text)

    def error(self, text: str) -> None:
        print(text, file=sys.stderr)


def _read_html(path_str: str) -> bytes:
    path = Path(path_str)
    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error: cannot read {path.name}: {e.strerror or e}", file=sys.stderr)
        sys.exit(1)


def _write_output(text: str, path_str: str | None) -> None:
    if not path_str:
        print(text)
        return
    path = Path(path_str)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    print(f"Saved to {path}", file=sys.stderr)


def cmd_digest(args: argparse.Namespace) -> None:
    """Print the digest JSON (or the skip notice as JSON)."""
    from pagedigest.serializer import to_json

    result = build_page_digest(_read_html(args.file), args.url, DigestConfig.from_env())
    _write_output(to_json(result, indent=None if args.compact else 2), args.output)


def cmd_prompt(args: argparse.Namespace) -> None:
    """Print the analyst prompt that ``analyze`` would send."""
    from pagedigest.prompt import build_analysis_prompt
    from pagedigest.report import format_skip

    result = build_page_digest(_read_html(args.file), args.url, DigestConfig.from_env())
    if isinstance(result, SkippedPage):
        sys.stdout.write(format_skip(result))
        return
    print(build_analysis_prompt(result, max_passages=args.max_passages, max_prompt_tokens=args.max_tokens))


def cmd_analyze(args: argparse.Namespace) -> None:
    """Run the full pipeline against Gemini and print the report."""
    from pagedigest.host import run_page_analysis
    from pagedigest.reasoner import GeminiReasoner

    reasoner_config = ReasonerConfig.from_env()
    if not reasoner_config.api_key:
        print("Error: GEMINI_API_KEY is not set.\nHint: export GEMINI_API_KEY=...", file=sys.stderr)
        sys.exit(1)
    html = _read_html(args.file)
    with GeminiReasoner(reasoner_config) as reasoner:
        problem = run_page_analysis(
            html,
            args.url,
            _StdioSink(),
            reasoner=reasoner,
            config=DigestConfig.from_env(),
            max_prompt_tokens=args.max_tokens,
        )
    if problem is not None:
        sys.exit(1)


def _add_page_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", metavar="FILE", help="Saved HTML page")
    p.add_argument("--url", type=str, required=True, metavar="URL", help="URL the page was loaded from")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Page Digest CLI", prog="python -m pagedigest.cli")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and tracebacks")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines on stderr")
    parser.add_argument(
        "--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_digest = subparsers.add_parser("digest", help="Print the page digest as JSON")
    _add_page_args(p_digest)
    p_digest.add_argument("-o", "--output", type=str, metavar="PATH", help="Write JSON to PATH instead of stdout")
    p_digest.add_argument("--compact", action="store_true", help="Single-line JSON")

    p_prompt = subparsers.add_parser("prompt", help="Print the analyst prompt")
    _add_page_args(p_prompt)
    p_prompt.add_argument("--max-passages", type=int, default=50, metavar="N", help="Passages in prompt (default: 50)")
    p_prompt.add_argument("--max-tokens", type=int, default=None, metavar="N", help="Prompt token budget")

    p_analyze = subparsers.add_parser(
        "analyze",
        help="Analyze the page with Gemini (needs GEMINI_API_KEY)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s page.html --url https://example.com/guide
  %(prog)s page.html --url https://example.com/guide --max-tokens 30000""",
    )
    _add_page_args(p_analyze)
    p_analyze.add_argument("--max-tokens", type=int, default=None, metavar="N", help="Prompt token budget")
    return parser


_COMMANDS = {"digest": cmd_digest, "prompt": cmd_prompt, "analyze": cmd_analyze}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure(json_output=args.log_json, level="DEBUG" if args.verbose else args.log_level)

    try:
        _COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        problem = from_exception(e, instance=getattr(args, "url", ""))
        print(problem.to_cli_text(), file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
