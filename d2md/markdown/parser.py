"""Parse markdown into a SyntaxTreeNode and render a transformed tree back to HTML."""

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

_parser: MarkdownIt | None = None


def get_parser() -> MarkdownIt:
    """CommonMark plus GFM tables and strikethrough, built once."""
    global _parser
    if _parser is None:
        _parser = MarkdownIt("commonmark").enable(["table", "strikethrough"])
    return _parser


def parse_markdown(text: str) -> SyntaxTreeNode:
    return SyntaxTreeNode(get_parser().parse(text))


def render_html(tree: SyntaxTreeNode) -> str:
    """Render a (possibly transformed) tree.

    Raw html_block nodes, such as the <img> tags that replace diagrams, are
    emitted verbatim since the commonmark preset allows HTML.
    """
    parser = get_parser()
    return parser.renderer.render(tree.to_tokens(), parser.options, {})
