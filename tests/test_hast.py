"""Unit tests for markdown to HAST conversion."""

import pytest

from edgepatch.content import markdown_to_hast


def _tags(nodes: list[dict]) -> list[str]:
    return [n.get("tagName", n["type"]) for n in nodes]


class TestMarkdownToHast:
    """Tests for markdown_to_hast."""

    def test_root_node(self) -> None:
        tree = markdown_to_hast("Hello")
        assert tree["type"] == "root"
        assert tree["children"] == [
            {
                "type": "element",
                "tagName": "p",
                "properties": {},
                "children": [{"type": "text", "value": "Hello"}],
            }
        ]

    def test_inline_formatting(self) -> None:
        paragraph = markdown_to_hast("Plain *em* and **strong** and `code`")["children"][0]
        assert _tags(paragraph["children"]) == ["text", "em", "text", "strong", "text", "code"]

    def test_heading_level(self) -> None:
        assert markdown_to_hast("## Section")["children"][0]["tagName"] == "h2"

    def test_unordered_list(self) -> None:
        lst = markdown_to_hast("- one\n- two\n")["children"][0]
        assert lst["tagName"] == "ul"
        assert _tags(lst["children"]) == ["li", "li"]
        assert lst["children"][0]["children"] == [{"type": "text", "value": "one"}]

    def test_ordered_list_start(self) -> None:
        lst = markdown_to_hast("3. three\n4. four\n")["children"][0]
        assert lst["tagName"] == "ol"
        assert lst["properties"] == {"start": 3}

    def test_link(self) -> None:
        link = markdown_to_hast("[docs](https://example.com)")["children"][0]["children"][0]
        assert link["tagName"] == "a"
        assert link["properties"]["href"] == "https://example.com"
        assert link["children"] == [{"type": "text", "value": "docs"}]

    def test_code_block_language(self) -> None:
        pre = markdown_to_hast("```python\nx = 1\n```\n")["children"][0]
        assert pre["tagName"] == "pre"
        code = pre["children"][0]
        assert code["properties"] == {"className": ["language-python"]}

    def test_multiple_blocks(self) -> None:
        tree = markdown_to_hast("First\n\n---\n\nSecond")
        assert _tags(tree["children"]) == ["p", "hr", "p"]

    def test_empty_string(self) -> None:
        assert markdown_to_hast("") == {"type": "root", "children": []}

    def test_non_string_raises(self) -> None:
        with pytest.raises(TypeError):
            markdown_to_hast(None)
