import math

from d2md.d2 import D2Size
from d2md.meta import DiagramMeta


def compute_img_size(meta: DiagramMeta, size: D2Size | None) -> dict[str, str]:
    """Width/height attributes for the <img> tag.

    An explicit width wins; the height then follows the diagram's aspect ratio
    unless it was given too. Without an explicit width the natural size is used.
    """
    if meta.width is not None:
        attributes = {"width": str(meta.width)}
        if meta.height is not None:
            attributes["height"] = str(meta.height)
        elif size is not None and size.width > 0:
            # Half-up, so 0.5 px never rounds to even
            attributes["height"] = str(math.floor(meta.width * size.height / size.width + 0.5))
        return attributes

    if size is not None:
        return {"width": str(size.width), "height": str(size.height)}

    return {}
