"""
RU: Векторная поверхность рисования, которую заполняет генератор символа.
EN: Vector drawing surface populated by the symbol encoder.
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.dom import minidom

logger = logging.getLogger(__name__)

__all__ = ["VectorSurface"]


class VectorSurface:
    """
    Holds the current symbol as an SVG DOM document.

    The surface starts empty; ``populate()`` replaces its content and
    ``clear()`` empties it again (e.g. after a failed render).
    """

    def __init__(self) -> None:
        self._document: Optional[minidom.Document] = None

    @property
    def document(self) -> Optional[minidom.Document]:
        return self._document

    @property
    def is_empty(self) -> bool:
        return self._document is None

    def populate(self, svg: bytes | str) -> None:
        """Parse ``svg`` and make it the surface content."""
        document = minidom.parseString(svg)
        if self._document is not None:
            self._document.unlink()
        self._document = document
        logger.debug("Surface populated (root=%s)", document.documentElement.tagName)

    def clear(self) -> None:
        if self._document is not None:
            self._document.unlink()
        self._document = None

    def svg_element(self) -> Optional[minidom.Element]:
        """Return the ``<svg>`` element, or None when there is none."""
        if self._document is None:
            return None
        root = self._document.documentElement
        if root is not None and root.tagName == "svg":
            return root
        found = self._document.getElementsByTagName("svg")
        return found[0] if found else None
