"""Replace D2 fences in a markdown AST with <img> tags pointing at rendered SVGs.

Walks the markdown-it-py SyntaxTreeNode once to find every ```d2 fence, then
renders all of them concurrently. Each fence is swapped in place for an
html_block node, so everything else in the tree keeps its identity and order.
"""

import asyncio
import html
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode

from d2md.config import Settings
from d2md.d2 import D2Renderer, D2Size, get_d2_diagram_size
from d2md.exceptions import D2DiagramsError, D2mdError, D2RenderError
from d2md.meta import DiagramMeta, get_meta
from d2md.paths import get_output_paths
from d2md.sizing import compute_img_size

D2_LANG = "d2"

RENDER_HINT = "Check the D2 error logged above, or run `d2` on the diagram source to reproduce it."


@dataclass(frozen=True)
class Position:
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class DiagramNode:
    """A d2 fence found in the tree, with where it lives."""

    node: SyntaxTreeNode
    parent: SyntaxTreeNode
    index: int

    @property
    def lang(self) -> str:
        return split_info(self.node.info)[0]

    @property
    def meta(self) -> str | None:
        return split_info(self.node.info)[1]


def split_info(info: str) -> tuple[str, str | None]:
    """Split a fence info string into (language, meta)."""
    parts = info.strip().split(maxsplit=1)
    if not parts:
        return "", None
    if len(parts) == 1:
        return parts[0], None
    return parts[0], parts[1]


def find_diagram_nodes(tree: SyntaxTreeNode) -> list[DiagramNode]:
    """Collect d2 fences in document order, with their parent and child index."""
    found: list[DiagramNode] = []

    def visit(parent: SyntaxTreeNode) -> None:
        for index, child in enumerate(parent.children):
            if child.type in ("fence", "code_block"):
                # Code nodes never contain anything worth descending into
                if child.type == "fence" and split_info(child.info)[0] == D2_LANG:
                    found.append(DiagramNode(node=child, parent=parent, index=index))
                continue
            visit(child)

    visit(tree)
    return found


def get_position(node: SyntaxTreeNode, source_lines: list[str] | None) -> Position:
    """1-based line/column of a fence's opening marker."""
    if node.map is None:
        return Position(0, 0)

    line_idx = node.map[0]
    column = 1
    if source_lines is not None and line_idx < len(source_lines):
        marker_idx = source_lines[line_idx].find(node.markup)
        if marker_idx >= 0:
            column = marker_idx + 1
    return Position(line_idx + 1, column)


def make_img_node(meta: DiagramMeta, img_path: str, size: D2Size | None, replaced: SyntaxTreeNode) -> SyntaxTreeNode:
    attributes = {
        "alt": meta.title,
        "decoding": "async",
        "loading": "lazy",
        "src": img_path,
        **compute_img_size(meta, size),
    }
    rendered = " ".join(f'{key}="{html.escape(value, quote=True)}"' for key, value in attributes.items())

    token = Token(
        type="html_block",
        tag="",
        nesting=0,
        map=list(replaced.map) if replaced.map else None,
        level=replaced.level,
        content=f"<img {rendered} />\n",
        block=True,
    )
    node = SyntaxTreeNode([token], create_root=False)
    node.parent = replaced.parent
    return node


class DiagramTransformer:
    """Renders the d2 fences of one document and swaps them for images."""

    def __init__(self, settings: Settings, renderer: D2Renderer | None = None):
        self.settings = settings
        self.renderer = renderer or D2Renderer(settings.d2_command)

    async def transform(
        self,
        tree: SyntaxTreeNode,
        document_path: Path,
        cwd: Path,
        source: str | None = None,
    ) -> int:
        """Transform `tree` in place.

        Args:
            tree: Root of the parsed document
            document_path: Path of the markdown file, used to name output files
            cwd: Project root containing the public directory
            source: Original markdown, only used to report error columns

        Returns:
            Number of diagrams replaced

        Raises:
            D2RenderError: a diagram failed (fail_fast, or only one failure)
            D2DiagramsError: several diagrams failed (collect mode)
        """
        # Indices are fixed here, before any rendering starts
        diagrams = find_diagram_nodes(tree)
        if not diagrams:
            return 0

        source_lines = source.splitlines() if source is not None else None
        logger.info(f"Rendering {len(diagrams)} D2 diagram(s) in {document_path}")

        results = await asyncio.gather(
            *(
                self._replace(diagram, ordinal, document_path, cwd, source_lines)
                for ordinal, diagram in enumerate(diagrams)
            ),
            return_exceptions=not self.settings.fail_fast,
        )

        if not self.settings.fail_fast:
            self._raise_collected(results)

        return len(diagrams)

    async def _replace(
        self,
        diagram: DiagramNode,
        ordinal: int,
        document_path: Path,
        cwd: Path,
        source_lines: list[str] | None,
    ) -> None:
        node = diagram.node
        meta = get_meta(diagram.meta, self.settings)
        output = get_output_paths(self.settings, document_path, cwd, ordinal)
        position = get_position(node, source_lines)

        if self.settings.skip_generation:
            size = await self._read_existing_size(output.fs_path, position)
        else:
            try:
                size = await self.renderer.generate(meta, node.content, output.fs_path)
            except Exception as e:
                # Any runner failure is reported against the block that caused it
                cause = e.__cause__ or e
                logger.error(f"D2 failed for diagram at {document_path}:{position}: {cause}")
                raise D2RenderError(
                    f"Failed to generate the D2 diagram at {position}.",
                    line=position.line,
                    column=position.column,
                    hint=RENDER_HINT,
                ) from e

        diagram.parent.children[diagram.index] = make_img_node(meta, output.img_path, size, node)

    async def _read_existing_size(self, fs_path: Path, position: Position) -> D2Size | None:
        if not fs_path.exists():
            logger.warning(f"No existing diagram at {fs_path} for block at {position}, leaving it unsized")
            return None
        try:
            return await get_d2_diagram_size(fs_path)
        except D2mdError as e:
            raise D2RenderError(
                f"Failed to read the existing D2 diagram at {position}.",
                line=position.line,
                column=position.column,
                hint=f"Delete {fs_path} or disable skip_generation to render it again.",
            ) from e

    @staticmethod
    def _raise_collected(results: list) -> None:
        errors = [r for r in results if isinstance(r, BaseException)]
        if not errors:
            return

        render_errors = [e for e in errors if isinstance(e, D2RenderError)]
        unexpected = [e for e in errors if not isinstance(e, D2RenderError)]
        if unexpected and not render_errors:
            raise unexpected[0]
        if unexpected:
            raise D2DiagramsError(render_errors) from unexpected[0]
        if len(render_errors) == 1:
            raise render_errors[0]
        raise D2DiagramsError(render_errors)


async def transform_diagrams(
    tree: SyntaxTreeNode,
    settings: Settings,
    document_path: Path,
    cwd: Path,
    source: str | None = None,
) -> int:
    """Convenience wrapper around DiagramTransformer.transform."""
    return await DiagramTransformer(settings).transform(tree, document_path, cwd, source)
