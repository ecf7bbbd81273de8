"""
Markdown to HAST conversion.

Parses markdown with mistune v3's AST renderer and maps each token onto a
HAST node (https://github.com/syntax-tree/hast), the tree format the edge
renderer accepts for `valueFormat: hast` patches.
"""

from typing import Any, Optional

import mistune

_parse = mistune.create_markdown(renderer="ast", plugins=["strikethrough", "table"])

# Token types whose children map 1:1 onto a single element
_SIMPLE_TAGS = {
    "paragraph": "p",
    "emphasis": "em",
    "strong": "strong",
    "strikethrough": "del",
    "block_quote": "blockquote",
    "list_item": "li",
    "table": "table",
    "table_head": "thead",
    "table_body": "tbody",
    "table_row": "tr",
}


def text_node(value: str) -> dict[str, Any]:
    return {"type": "text", "value": value}


def element(
    tag_name: str,
    children: Optional[list[dict[str, Any]]] = None,
    properties: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return {
        "type": "element",
        "tagName": tag_name,
        "properties": properties or {},
        "children": children or [],
    }


def markdown_to_hast(markdown: str) -> dict[str, Any]:
    """Convert markdown text to a HAST root node."""
    if not isinstance(markdown, str):
        raise TypeError(f"markdown must be a string, got {type(markdown).__name__}")
    tokens = _parse(markdown)
    return {"type": "root", "children": _convert_all(tokens)}


def _convert_all(tokens: list[dict[str, Any]]) -> list[dict[str, Any]]:
    nodes: list[dict[str, Any]] = []
    for token in tokens or []:
        node = _convert(token)
        if node is None:
            continue
        if isinstance(node, list):
            nodes.extend(node)
        else:
            nodes.append(node)
    return nodes


def _convert(token: dict[str, Any]):
    kind = token.get("type")
    attrs = token.get("attrs") or {}
    children = token.get("children") or []

    if kind in _SIMPLE_TAGS:
        return element(_SIMPLE_TAGS[kind], _convert_all(children))
    if kind == "text":
        return text_node(token.get("raw", ""))
    if kind == "block_text":
        # tight list items: inline content without a wrapping <p>
        return _convert_all(children)
    if kind == "heading":
        return element(f"h{attrs.get('level', 1)}", _convert_all(children))
    if kind == "codespan":
        return element("code", [text_node(token.get("raw", ""))])
    if kind == "block_code":
        info = (attrs.get("info") or "").split()
        props = {"className": [f"language-{info[0]}"]} if info else {}
        code = element("code", [text_node(token.get("raw", ""))], props)
        return element("pre", [code])
    if kind == "link":
        props = {"href": attrs.get("url", "")}
        if attrs.get("title"):
            props["title"] = attrs["title"]
        return element("a", _convert_all(children), props)
    if kind == "image":
        props = {"src": attrs.get("url", ""), "alt": _plain_text(children)}
        if attrs.get("title"):
            props["title"] = attrs["title"]
        return element("img", [], props)
    if kind == "list":
        tag = "ol" if attrs.get("ordered") else "ul"
        props = {}
        start = attrs.get("start")
        if tag == "ol" and start not in (None, 1):
            props["start"] = start
        return element(tag, _convert_all(children), props)
    if kind == "table_cell":
        tag = "th" if attrs.get("head") else "td"
        props = {"align": attrs["align"]} if attrs.get("align") else {}
        return element(tag, _convert_all(children), props)
    if kind == "thematic_break":
        return element("hr")
    if kind == "linebreak":
        return element("br")
    if kind == "softbreak":
        return text_node("\n")
    if kind in ("block_html", "inline_html"):
        return {"type": "raw", "value": token.get("raw", "")}
    if kind == "blank_line":
        return None
    # unknown token types degrade to their text content
    raw = token.get("raw")
    if raw:
        return text_node(raw)
    return _convert_all(children) or None


def _plain_text(tokens: list[dict[str, Any]]) -> str:
    parts = []
    for token in tokens or []:
        if "raw" in token:
            parts.append(token["raw"])
        parts.append(_plain_text(token.get("children") or []))
    return "".join(parts)
