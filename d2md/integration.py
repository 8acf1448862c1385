"""Wiring for hosts: check d2 up front and build a transformer."""

from loguru import logger

from d2md.config import Settings
from d2md.d2 import D2Renderer
from d2md.exceptions import D2NotInstalledError
from d2md.markdown.transformer import DiagramTransformer


async def setup(settings: Settings, renderer: D2Renderer | None = None) -> DiagramTransformer:
    """Return a transformer for `settings`.

    Raises:
        D2NotInstalledError: generation is enabled but d2 cannot be run.
    """
    renderer = renderer or D2Renderer(settings.d2_command)

    if settings.skip_generation:
        logger.info("Skipping D2 diagram generation, existing diagrams will be reused")
    elif not await renderer.is_installed():
        raise D2NotInstalledError(settings.d2_command)

    return DiagramTransformer(settings, renderer)
