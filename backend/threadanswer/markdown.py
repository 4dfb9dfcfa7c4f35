from __future__ import annotations

import re

_FENCED_BLOCK_RES = (
    re.compile(r"```.*?```", re.DOTALL),
    re.compile(r"~~~.*?~~~", re.DOTALL),
)
_PLACEHOLDER_RE = re.compile(r"@@CODEBLOCK(\d+)@@")
_LINE_SPLIT_RE = re.compile(r"\r?\n")

_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_AUTOLINK_RE = re.compile(r"<((https?://|mailto:)[^>]+)>")

# (pattern, replacement) applied in order after links are flattened.
_LINE_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(r"^\s{0,3}>\s?", re.MULTILINE), ""),
    (re.compile(r"^\s{0,3}([-*+])\s+", re.MULTILINE), ""),
    (re.compile(r"^\s{0,3}\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"__(.*?)__"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"_(.*?)_"), r"\1"),
    (re.compile(r"~~(.*?)~~"), r"\1"),
    (re.compile(r"[ \t]+\n"), "\n"),
    (re.compile(r"\n{3,}"), "\n\n"),
)


def _label_with_url(label: str, url: str) -> str:
    url = url.strip()
    return f"{label} ({url})" if url else label


def markdown_to_text(markdown: str) -> str:
    """Flatten markdown into plain text suitable for evidence snippets.

    Fenced code blocks keep their contents verbatim (the fence lines are
    dropped) and are shielded from the inline rewrites. Links and images
    keep their target URL in parentheses so the model can still see it.

    Args:
        markdown: Raw markdown source. Empty input returns an empty string.

    Returns:
        The plain-text rendering, trimmed.
    """
    if not markdown:
        return ""

    code_blocks: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        lines = _LINE_SPLIT_RE.split(match.group(0))
        code_blocks.append("\n".join(lines[1:-1]))
        return f"\n@@CODEBLOCK{len(code_blocks) - 1}@@\n"

    text = markdown
    for fence_re in _FENCED_BLOCK_RES:
        text = fence_re.sub(_stash, text)

    text = _INLINE_CODE_RE.sub(r"\1", text)
    text = _IMAGE_RE.sub(lambda m: _label_with_url(m.group(1).strip() or "image", m.group(2)), text)
    text = _LINK_RE.sub(lambda m: _label_with_url(m.group(1).strip(), m.group(2)), text)
    text = _AUTOLINK_RE.sub(r"\1", text)
    for pattern, replacement in _LINE_REWRITES:
        text = pattern.sub(replacement, text)
    text = text.strip()

    def _restore(match: re.Match[str]) -> str:
        index = int(match.group(1))
        # Placeholder-like text typed by an author has no stashed block.
        return code_blocks[index] if index < len(code_blocks) else ""

    text = _PLACEHOLDER_RE.sub(_restore, text)
    return text.strip()
