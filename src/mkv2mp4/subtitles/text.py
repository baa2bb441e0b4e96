"""ASS dialogue text cleanup for SRT output.

Only the override codes that SRT players understand survive, rewritten as
HTML-style markers: ``\\b1``/``\\b0`` -> ``<b>``/``</b>``, and the same for
italic (``\\i``) and underline (``\\u``).  Line breaks and tabs become real
whitespace.  Everything else (positioning, colours, karaoke, drawing
commands, unknown escapes) is dropped without translation.
"""

from __future__ import annotations

import re


# An override block ``{...}`` containing the given code anywhere inside it.
# (?!\d) keeps \b1 from matching weights such as \b100.
def _override(code: str) -> re.Pattern[str]:
    return re.compile(r"\{[^}]*\\" + code + r"(?!\d)[^}]*\}")


_STYLE_MARKERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_override("b1"), "<b>"),
    (_override("b0"), "</b>"),
    (_override("i1"), "<i>"),
    (_override("i0"), "</i>"),
    (_override("u1"), "<u>"),
    (_override("u0"), "</u>"),
)

_ANGLE_BRACKETS_RE = re.compile(r"[<>]")
_OVERRIDE_BLOCK_RE = re.compile(r"\{[^}]*\}")
_LINE_BREAKS_RE = re.compile(r"\s*(?:\\[Nn]\s*)+")
_TAB_RE = re.compile(r"\\[Tt]")
_OTHER_ESCAPE_RE = re.compile(r"\\[^\n]?")

TAB_SPACES = " " * 8


def clean_text(text: str) -> str:
    """Return *text* cleaned for SRT, or ``""`` if nothing visible remains."""
    # Literal brackets go first so that only inserted markers remain afterwards.
    text = _ANGLE_BRACKETS_RE.sub("", text)
    for pattern, marker in _STYLE_MARKERS:
        text = pattern.sub(marker, text)
    text = _OVERRIDE_BLOCK_RE.sub("", text)
    text = _LINE_BREAKS_RE.sub("\n", text)
    text = _TAB_RE.sub(TAB_SPACES, text)
    text = _OTHER_ESCAPE_RE.sub("", text)
    return text.strip()
