"""Output locations for rendered diagrams."""

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from d2md.config import Settings


@dataclass(frozen=True)
class OutputPaths:
    fs_path: Path  # where the SVG is written
    img_path: str  # what the <img> tag points at


def _strip_content_root(relative_path: PurePosixPath, content_roots: list[str]) -> PurePosixPath:
    for root in content_roots:
        root_path = PurePosixPath(root)
        if relative_path != root_path and relative_path.is_relative_to(root_path):
            return relative_path.relative_to(root_path)
    return relative_path


def get_output_paths(settings: Settings, document_path: Path, cwd: Path, index: int) -> OutputPaths:
    """Compute where the `index`-th diagram of a document is written and served from.

    `src/content/docs/guide/intro.md` with output "d2" and index 1 gives
    `<cwd>/public/d2/docs/guide/intro-1.svg`, served as `/d2/docs/guide/intro-1.svg`.
    """
    relative_path = PurePosixPath(Path(os.path.relpath(document_path, cwd)).as_posix())
    relative_path = _strip_content_root(relative_path, settings.content_roots)
    relative_output = relative_path.parent / f"{relative_path.stem}-{index}.svg"

    return OutputPaths(
        fs_path=Path(cwd) / settings.public_dir / settings.output / relative_output,
        img_path=posixpath.join("/", settings.output, str(relative_output)),
    )
