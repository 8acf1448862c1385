"""Render markdown files with D2 diagrams to HTML.

Usage:
    d2md docs/intro.md docs/guide.md --cwd . --out build/
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from loguru import logger

from d2md.config import Settings
from d2md.exceptions import D2mdError
from d2md.integration import setup
from d2md.logging_config import configure_logging
from d2md.markdown import DiagramTransformer, parse_markdown, render_html


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="d2md", description=__doc__.splitlines()[0])
    parser.add_argument("files", nargs="+", type=Path, help="Markdown files to render")
    parser.add_argument("--cwd", type=Path, default=Path.cwd(), help="Project root (default: current directory)")
    parser.add_argument("--out", type=Path, help="Directory for the HTML output (default: stdout)")
    parser.add_argument("--skip-generation", action="store_true", help="Reuse previously rendered diagrams")
    parser.add_argument(
        "--collect-errors", action="store_true", help="Render every diagram and report all failures at the end"
    )
    return parser.parse_args(argv)


async def render_file(transformer: DiagramTransformer, path: Path, cwd: Path) -> str:
    source = path.read_text(encoding="utf-8")
    tree = parse_markdown(source)
    await transformer.transform(tree, path.resolve(), cwd.resolve(), source)
    return render_html(tree)


def html_output_path(out: Path, path: Path, cwd: Path) -> Path:
    """`src/content/intro.md` under `cwd` becomes `<out>/src/content/intro.html`.

    Files outside `cwd` keep only their name.
    """
    relative = Path(os.path.relpath(path.resolve(), cwd.resolve()))
    if relative.parts[0] == "..":
        relative = Path(relative.name)
    return out / relative.with_suffix(".html")


def plan_outputs(files: list[Path], out: Path, cwd: Path) -> dict[Path, Path]:
    """Map each input to its HTML file, refusing inputs that would overwrite each other."""
    targets: dict[Path, Path] = {}
    for path in files:
        out_path = html_output_path(out, path, cwd)
        clash = next((src for src, dst in targets.items() if dst == out_path), None)
        if clash is not None:
            raise D2mdError(
                f"{clash} and {path} would both be written to {out_path}.",
                hint="Render them in separate runs or move one of them.",
            )
        targets[path] = out_path
    return targets


async def run(args: argparse.Namespace, settings: Settings) -> None:
    targets = plan_outputs(args.files, args.out, args.cwd) if args.out is not None else {}
    transformer = await setup(settings)

    for path in args.files:
        html = await render_file(transformer, path, args.cwd)
        if args.out is None:
            sys.stdout.write(html)
            continue
        out_path = targets[path]
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(html, encoding="utf-8")
        logger.info(f"Wrote {out_path}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    overrides = {}
    if args.skip_generation:
        overrides["skip_generation"] = True
    if args.collect_errors:
        overrides["fail_fast"] = False
    settings = Settings(**overrides)

    configure_logging(settings.log_level, Path(settings.log_dir) if settings.log_dir else None)

    try:
        asyncio.run(run(args, settings))
    except D2mdError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
