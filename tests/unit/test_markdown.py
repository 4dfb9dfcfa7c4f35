from __future__ import annotations

from threadanswer.markdown import markdown_to_text


def test_empty_markdown_returns_empty_string() -> None:
    assert markdown_to_text("") == ""


def test_inline_code_keeps_its_text() -> None:
    """Inline code should lose its backticks but keep the command."""
    assert markdown_to_text("Use `curl https://example.com` to test.") == "Use curl https://example.com to test."


def test_fenced_code_block_contents_are_kept_verbatim() -> None:
    """Fence lines are dropped and emphasis rewrites must not touch code."""
    text = markdown_to_text("Run this:\n\n```python\nsome_var = 1 * 2 * 3\n```")
    assert text == "Run this:\n\nsome_var = 1 * 2 * 3"


def test_tilde_fence_is_supported() -> None:
    assert markdown_to_text("~~~\necho hello\n~~~") == "echo hello"


def test_links_and_images_keep_their_urls() -> None:
    assert markdown_to_text("See [the docs](https://x.dev/a) now") == "See the docs (https://x.dev/a) now"
    assert markdown_to_text("![](https://img.example/a.png)") == "image (https://img.example/a.png)"
    assert markdown_to_text("<https://example.com/path>") == "https://example.com/path"


def test_block_markers_and_emphasis_are_removed() -> None:
    assert markdown_to_text("## Install steps") == "Install steps"
    assert markdown_to_text("> quoted text") == "quoted text"
    assert markdown_to_text("**bold** and _it_ and ~~gone~~") == "bold and it and gone"
    assert markdown_to_text("1. first step") == "first step"


def test_blank_lines_are_collapsed() -> None:
    assert markdown_to_text("a   \nb\n\n\n\nc") == "a\nb\n\nc"


def test_placeholder_like_text_without_blocks_is_dropped() -> None:
    """Author text that looks like an internal code-block marker must not fail conversion."""
    assert markdown_to_text("The log said @@CODEBLOCK3@@ and stopped.") == "The log said  and stopped."


def test_placeholder_like_text_beside_real_block() -> None:
    text = markdown_to_text("```\nreal()\n```\n\nthen @@CODEBLOCK7@@ end")

    assert text.startswith("real()")
    assert "@@CODEBLOCK" not in text
