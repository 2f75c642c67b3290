"""
HTML → plain text for PDF export.

Rich-text section content arrives as editor HTML. The PDF backend only draws
plain text lines, so block structure is flattened to newlines and tags are
dropped. Heading detection afterwards is a heuristic on the flattened lines.
"""

import re

_BLOCK_TAG = re.compile(r"</?(h1|h2|h3|h4|h5|h6|p|div|li|blockquote)[^>]*>", re.IGNORECASE)
_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_HEADING_LIKE = re.compile(r"^[A-Z][^.!?]*$")

# Decoded in this order (&amp; before &lt; etc.)
_ENTITIES = [
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
]

HEADING_MAX_LENGTH = 60


def contains_html(text: str) -> bool:
    return bool(text) and _ANY_TAG.search(text) is not None


def html_to_plain_text(html: str) -> str:
    """
    Flatten editor HTML to plain text.

    "<h1>Title</h1><p>Hello<br>World</p>" → "Title\\n\\nHello\\nWorld"
    """
    if not html:
        return ""

    text = _BLOCK_TAG.sub("\n", html)
    text = _BR_TAG.sub("\n", text)
    text = _ANY_TAG.sub("", text)

    for entity, char in _ENTITIES:
        text = text.replace(entity, char)

    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = text.replace("\n ", "\n").replace(" \n", "\n")

    text = "\n".join(line.strip() for line in text.split("\n"))
    return text.strip()


def looks_like_heading(line: str) -> bool:
    """Short line that is all caps, or capitalised with no sentence punctuation."""
    if not line or len(line) >= HEADING_MAX_LENGTH:
        return False
    return line == line.upper() or _HEADING_LIKE.match(line.strip()) is not None
