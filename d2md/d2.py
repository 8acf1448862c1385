"""Thin async wrapper around the d2 command line tool."""

import asyncio
import re
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from d2md.commands import CommandRunner, run_command
from d2md.exceptions import D2RenderError, D2SizeError, ExecError
from d2md.meta import DiagramMeta

_VIEWBOX_RE = re.compile(r'viewBox="\d+ \d+ (?P<width>\d+) (?P<height>\d+)"')
_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


class D2Size(BaseModel):
    """Natural size of a rendered diagram, from its viewBox."""

    height: int
    width: int


def build_d2_args(meta: DiagramMeta, output_path: Path) -> list[str]:
    args = [
        f"--layout={meta.layout}",
        f"--theme={meta.theme}",
        f"--sketch={str(meta.sketch).lower()}",
        f"--pad={meta.pad}",
    ]

    if meta.dark_theme is not None:
        args.append(f"--dark-theme={meta.dark_theme}")
    if meta.animate_interval:
        args.append(f"--animate-interval={meta.animate_interval}")
    if meta.target is not None:
        args.append(f"--target='{meta.target}'")

    # `-` makes d2 read the diagram from stdin
    args.extend(["-", str(output_path)])
    return args


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


async def get_d2_diagram_size(diagram_path: Path) -> D2Size | None:
    """Read the natural size of an SVG from its viewBox.

    Returns None when the file has no usable viewBox.

    Raises:
        D2SizeError: the file could not be read.
    """
    try:
        content = await asyncio.to_thread(_read_text, diagram_path)
    except (OSError, UnicodeDecodeError) as e:
        raise D2SizeError(diagram_path) from e

    match = _VIEWBOX_RE.search(content)
    if match is None:
        logger.debug(f"No viewBox in {diagram_path}, leaving diagram unsized")
        return None

    return D2Size(height=int(match.group("height")), width=int(match.group("width")))


class D2Renderer:
    """Renders diagrams by shelling out to d2.

    The command runner is injectable so tests can fake the executable.
    """

    def __init__(self, command: str = "d2", runner: CommandRunner = run_command):
        self.command = command
        self._run = runner

    async def get_version(self) -> str:
        lines = await self._run(self.command, ["--version"], None)
        version = lines[0].strip() if lines else ""
        if not _VERSION_RE.match(version):
            raise ExecError(self.command, None, f"Invalid D2 version, got '{version}'.")
        return version

    async def is_installed(self) -> bool:
        try:
            version = await self.get_version()
        except ExecError as e:
            logger.debug(f"D2 is not available: {e}")
            return False
        logger.debug(f"Found D2 {version}")
        return True

    async def generate(self, meta: DiagramMeta, source: str, output_path: Path) -> D2Size | None:
        """Render `source` to `output_path` and return the diagram's natural size.

        Raises:
            D2RenderError: the output directory or d2 failed; the cause is chained.
            D2SizeError: the rendered file could not be read back.
        """
        args = build_d2_args(meta, output_path)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            await self._run(self.command, args, source)
        except (ExecError, OSError) as e:
            raise D2RenderError("Failed to generate D2 diagram.") from e

        logger.debug(f"Rendered {output_path}")
        return await get_d2_diagram_size(output_path)
