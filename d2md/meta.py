"""Per-diagram options parsed from a fence's info string.

    ```d2 title="Request flow" sketch pad=20 darkTheme=false
    a -> b
    ```

Everything after the language is a list of `key=value`, `key='value'`,
`key="value"` or bare `key` tokens. Unknown keys and invalid values are
ignored so that a typo never breaks a build; the field falls back to the
document-wide setting instead.
"""

import re

from pydantic import BaseModel, ConfigDict

from d2md.config import Settings

DEFAULT_TITLE = "Diagram"

_ATTRIBUTE_RE = re.compile(
    r"""(?P<key>[^\s"'=]+)=(?:"(?P<double>[^"]*)"|'(?P<single>[^']*)'|(?P<bare>[^\s"']+))|(?P<flag>[^\s"'=]+)(?=\s|$)"""
)


class DiagramMeta(BaseModel):
    """Resolved rendering options for a single diagram block."""

    model_config = ConfigDict(frozen=True)

    title: str = DEFAULT_TITLE
    layout: str
    theme: str
    dark_theme: str | None  # None when the dark variant is disabled
    sketch: bool
    pad: int
    animate_interval: int | None = None
    target: str | None = None
    width: int | None = None
    height: int | None = None


def parse_meta_attributes(meta: str | None) -> dict[str, str]:
    """Split an info string remainder into raw key/value pairs.

    Bare keys map to "true"; a key with nothing after `=` is dropped.
    Later occurrences of a key win.
    """
    if not meta:
        return {}

    attributes: dict[str, str] = {}
    for match in _ATTRIBUTE_RE.finditer(meta):
        if match.group("flag"):
            attributes[match.group("flag")] = "true"
            continue
        value = match.group("double")
        if value is None:
            value = match.group("single")
        if value is None:
            value = match.group("bare")
        attributes[match.group("key")] = value
    return attributes


def _parse_int(value: str | None) -> int | None:
    if value is None or not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _parse_bool(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _resolve_dark_theme(value: str | None, settings: Settings) -> str | None:
    if value == "false":
        return None
    if value:
        return value
    if settings.theme.dark is False:
        return None
    return settings.theme.dark


def get_meta(meta: str | None, settings: Settings) -> DiagramMeta:
    """Resolve a block's options: block attribute > document setting > built-in default.

    Never raises; anything that does not parse is treated as unset.
    """
    attributes = parse_meta_attributes(meta)

    sketch = _parse_bool(attributes.get("sketch"))
    pad = _parse_int(attributes.get("pad"))

    return DiagramMeta(
        title=attributes.get("title") or DEFAULT_TITLE,
        layout=settings.layout,
        theme=attributes.get("theme") or settings.theme.default,
        dark_theme=_resolve_dark_theme(attributes.get("darkTheme"), settings),
        sketch=settings.sketch if sketch is None else sketch,
        pad=settings.pad if pad is None else pad,
        animate_interval=_parse_int(attributes.get("animateInterval")),
        target=attributes.get("target") or None,
        width=_parse_int(attributes.get("width")),
        height=_parse_int(attributes.get("height")),
    )
