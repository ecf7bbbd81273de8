"""Content conversion helpers (markdown to HAST trees)."""

from edgepatch.content.hast import element, markdown_to_hast, text_node

__all__ = ["element", "markdown_to_hast", "text_node"]
