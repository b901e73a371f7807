"""
Outbound sanitization.

Agent output may carry ``<internal>...</internal>`` blocks (the upstream
agent sometimes closes them with ``</invoke>`` instead). Nothing inside such
a block may reach an external channel. When in doubt, trailing content is
dropped rather than sent.
"""

import re

OPEN_MARKER = "<internal>"

# Complete block, shortest match, closed by either accepted closer
_BLOCK_RE = re.compile(r"<internal>.*?</(?:internal|invoke)>", re.IGNORECASE | re.DOTALL)
_STRAY_INTERNAL_RE = re.compile(r"</?internal>", re.IGNORECASE)
_STRAY_INVOKE_RE = re.compile(r"</?invoke>", re.IGNORECASE)


def _strip_once(text: str) -> str:
    sanitized = _BLOCK_RE.sub("", text)

    # An unclosed opener means the block was cut off: keep only the prefix.
    unclosed_start = sanitized.lower().find(OPEN_MARKER)
    if unclosed_start != -1:
        sanitized = sanitized[:unclosed_start]

    sanitized = _STRAY_INTERNAL_RE.sub("", sanitized)
    sanitized = _STRAY_INVOKE_RE.sub("", sanitized)
    return sanitized


def strip_internal_tags(text: str) -> str:
    """Remove internal blocks and stray markers, then trim.

    Steps, applied until the text stops changing:
    1. remove every complete block (opener up to the first closer)
    2. truncate at any remaining unclosed opener
    3. remove standalone marker tokens

    Repeating the pass covers markers that only appear once a stray token
    between their halves has been removed (``<in</invoke>ternal>``).

    Args:
        text: Raw agent output

    Returns:
        Text safe to send, possibly empty
    """
    if not text:
        return ""

    sanitized = text
    while True:
        stripped = _strip_once(sanitized)
        if stripped == sanitized:
            break
        sanitized = stripped

    return sanitized.strip()


def format_outbound(raw_text: str) -> str:
    """Prepare agent output for sending.

    Returns an empty string when nothing is left to send; callers treat
    that as "skip", not as an error.
    """
    return strip_internal_tags(raw_text)
