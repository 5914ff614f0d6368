"""
Parsers for structured fragments in free-form model replies.

Tag extraction uses a small scanner instead of regular expressions:

- ``<name>`` must match exactly (case-sensitive, no attributes)
- the FIRST ``</name>`` after the opening tag closes the block (lazy)
- blocks are not nested: ``<item><item>a</item></item>`` yields ``"<item>a"``
- block content is whitespace-trimmed

Example:
    >>> extract_tag("<score>\\n 85 \\n</score>", "score")
    '85'
    >>> extract_all("<item>a</item> <item>b</item>", "item")
    ['a', 'b']
"""

from collections.abc import Iterable, Iterator
import re

_CODE_BLOCK = re.compile(r"```(\w+)\n(.*?)\n```", re.DOTALL)


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def _blocks(text: str, tag_name: str) -> Iterator[str]:
    """Yield raw (untrimmed) contents of successive ``tag_name`` blocks."""
    open_tag = f"<{tag_name}>"
    close_tag = f"</{tag_name}>"
    position = 0

    while True:
        open_at = text.find(open_tag, position)
        if open_at < 0:
            return

        content_start = open_at + len(open_tag)
        close_at = text.find(close_tag, content_start)
        if close_at < 0:
            return

        yield text[content_start:close_at]
        position = close_at + len(close_tag)


def extract_tag(text: str, tag_name: str) -> str | None:
    """
    Extract the trimmed content of the first ``tag_name`` block.

    Returns:
        Block content, or None when no complete block exists
    """
    if not isinstance(text, str) or not isinstance(tag_name, str) or not tag_name:
        return None
    return next((content.strip() for content in _blocks(text, tag_name)), None)


def extract_all(text: str, tag_name: str) -> list[str]:
    """Extract the trimmed contents of every non-overlapping ``tag_name`` block."""
    if not isinstance(text, str) or not isinstance(tag_name, str) or not tag_name:
        return []
    return [content.strip() for content in _blocks(text, tag_name)]


def parse_tags(text: str, tag_names: Iterable[str]) -> dict[str, str]:
    """
    Extract several tags at once; missing tags are left out.

    Example:
        >>> parse_tags("<result>Success</result><score>95</score>", ["result", "score"])
        {'result': 'Success', 'score': '95'}
    """
    found: dict[str, str] = {}
    for tag_name in tag_names:
        content = extract_tag(text, tag_name)
        if content is not None:
            found[tag_name] = content
    return found


def parse_all_tags(text: str) -> dict[str, str]:
    """
    Extract every ``<word>...</word>`` block without knowing tag names up front.

    Scanning resumes after each complete block, so tags inside a matched block
    are not reported separately. A later block with the same name wins.

    Example:
        >>> parse_all_tags("<name>John</name><age>30</age>")
        {'name': 'John', 'age': '30'}
    """
    if not isinstance(text, str):
        return {}

    found: dict[str, str] = {}
    position = 0
    length = len(text)

    while True:
        open_at = text.find("<", position)
        if open_at < 0:
            break

        name_end = open_at + 1
        while name_end < length and _is_name_char(text[name_end]):
            name_end += 1

        if name_end == open_at + 1 or name_end >= length or text[name_end] != ">":
            position = open_at + 1
            continue

        tag_name = text[open_at + 1 : name_end]
        close_tag = f"</{tag_name}>"
        close_at = text.find(close_tag, name_end + 1)
        if close_at < 0:
            position = open_at + 1
            continue

        found[tag_name] = text[name_end + 1 : close_at].strip()
        position = close_at + len(close_tag)

    return found


def parse_code_blocks(text: str) -> list[dict[str, str]]:
    """
    Extract fenced code blocks that declare a language.

    Example:
        >>> parse_code_blocks("```python\\nprint('hi')\\n```")
        [{'language': 'python', 'code': "print('hi')"}]
    """
    if not isinstance(text, str):
        return []
    return [
        {"language": language.strip(), "code": code.strip()}
        for language, code in _CODE_BLOCK.findall(text)
    ]
