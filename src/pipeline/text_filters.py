# src/pipeline/text_filters.py — v1
"""Post-processing filters for generated text.

Each filter is a pure ``str -> str`` function:
  - clean_fragment: per streamed fragment, removes JSON wrapping artifacts
  - strip_boilerplate: removes analysis banners the model tends to echo
  - clean_document: full clean-up of the synthesized README
"""

from __future__ import annotations

import re

_JSON_PREFIX = re.compile(r'^\s*\{\s*"[A-Za-z_]+"\s*:\s*"')
_JSON_SUFFIX = re.compile(r'"\s*\}\s*$')
_OUTER_FENCE = re.compile(r"^\s*```(?:markdown|md)?\s*\n(.*)\n```\s*$", re.DOTALL | re.IGNORECASE)
_BLANK_RUNS = re.compile(r"\n{3,}")

_BOILERPLATE = re.compile(
    r"^[ \t]*(?:#+[ \t]*)?(?:\*\*)?[ \t]*(?:"
    r"(?:repository|codebase)[ \t]+analysis\b.*"
    r"|analysis[ \t]+of[ \t]+(?:the[ \t]+)?readme\b.*"
    r"|analyzing[ \t]+repository[ \t]+chunk[ \t]+\d+[ \t]*/[ \t]*\d+.*"
    r"|analysis[ \t]*:?[ \t]*(?:\*\*)?[ \t]*"
    r")$\n?",
    re.IGNORECASE | re.MULTILINE,
)


def _unescape(text: str) -> str:
    return text.replace("\\n", "\n").replace('\\"', '"')


def clean_fragment(text: str) -> str:
    """Strip JSON-wrapper prefixes/suffixes and unescape quotes and newlines."""
    text = _JSON_PREFIX.sub("", text, count=1)
    text = _JSON_SUFFIX.sub("", text, count=1)
    return _unescape(text)


def strip_boilerplate(text: str) -> str:
    """Remove repository-analysis banners and bare 'Analysis' headings."""
    return _BOILERPLATE.sub("", text)


def clean_document(text: str) -> str:
    """Normalize a generated document for delivery.

    Removes a JSON wrapper (unescaping its content), an outer markdown
    fence, analysis boilerplate, and collapses runs of blank lines.
    """
    stripped = text.strip()
    if _JSON_PREFIX.match(stripped) and _JSON_SUFFIX.search(stripped):
        stripped = _unescape(_JSON_SUFFIX.sub("", _JSON_PREFIX.sub("", stripped, count=1), count=1))

    fenced = _OUTER_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)

    stripped = strip_boilerplate(stripped)
    stripped = _BLANK_RUNS.sub("\n\n", stripped)
    return stripped.strip()
