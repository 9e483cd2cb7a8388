"""Deep Zoom Image (.dzi) descriptor rendering and parsing."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from xml.etree.ElementTree import Element, ElementTree, SubElement, fromstring

from dzgen.config import DZI_NAMESPACE

from .types import Size


@dataclass(frozen=True)
class DziDescriptor:
    """Fields of a .dzi descriptor."""

    format: str
    overlap: int
    tile_size: int
    size: Size


def render_dzi(format: str, overlap: int, tile_size: int, size: Size) -> str:
    """Return the XML text of a .dzi descriptor.

    Args:
        format: Tile image format identifier (e.g. 'jpeg', 'png')
        overlap: Overlap in pixels
        tile_size: Tile size in pixels, overlap excluded
        size: Full resolution of the pyramid

    Returns:
        UTF-8 XML document as a string
    """
    image = Element(
        "Image",
        xmlns=DZI_NAMESPACE,
        Format=format,
        Overlap=str(overlap),
        TileSize=str(tile_size),
    )
    SubElement(image, "Size", Width=str(size.width), Height=str(size.height))
    buf = BytesIO()
    ElementTree(element=image).write(buf, encoding="UTF-8", xml_declaration=True)
    return buf.getvalue().decode("UTF-8")


def parse_dzi(text: str) -> DziDescriptor:
    """Read a .dzi descriptor back into its fields.

    Raises:
        ValueError: If the document is not a Deep Zoom image descriptor
    """
    root = fromstring(text)
    ns = f"{{{DZI_NAMESPACE}}}"
    if root.tag not in ("Image", f"{ns}Image"):
        raise ValueError(f"Not a Deep Zoom descriptor: root element {root.tag!r}")
    size = root.find(f"{ns}Size")
    if size is None:
        size = root.find("Size")
    if size is None:
        raise ValueError("Deep Zoom descriptor has no Size element")
    try:
        return DziDescriptor(
            format=root.attrib["Format"],
            overlap=int(root.attrib["Overlap"]),
            tile_size=int(root.attrib["TileSize"]),
            size=Size(int(size.attrib["Width"]), int(size.attrib["Height"])),
        )
    except KeyError as e:
        raise ValueError(f"Deep Zoom descriptor is missing attribute {e}") from e
