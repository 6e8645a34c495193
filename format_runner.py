import sys
import asyncio
import argparse

from dotenv import load_dotenv

from linktitles.formats import FORMAT_SETTINGS, MARKDOWN
from linktitles.logging_config import setup_logging
from linktitles.rewrite_engine import rewrite_text
from linktitles.title_resolver import default_resolver

load_dotenv()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Replace bare URLs in note text with titled links."
    )
    parser.add_argument("path", nargs="?", help="file to read (default: stdin)")
    parser.add_argument(
        "--format",
        choices=sorted(FORMAT_SETTINGS),
        default=MARKDOWN,
        help="link syntax to write",
    )
    return parser.parse_args(argv)


async def run(text: str, format_name: str) -> str:
    result = await rewrite_text(text, FORMAT_SETTINGS[format_name], default_resolver().resolve)
    lines = [result.text]
    lines.extend(f"  - {child.content}" for child in result.children)
    return "\n".join(lines)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    if args.path:
        with open(args.path, "r", encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()
    print(asyncio.run(run(text, args.format)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
