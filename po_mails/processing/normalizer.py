"""HTML body → flat, whitespace-normalized plain text."""

import html
import re

from bs4 import BeautifulSoup

_WHITESPACE = re.compile(r"\s+")
_DROP_TAGS = ("script", "style")
_ANGLE_BRACKETS = re.compile(r"[<>]")
# Same reference syntax the HTML parser decodes, with or without a trailing ";".
_CHAR_REF = re.compile(r"&(#[0-9]+;?|#[xX][0-9a-fA-F]+;?|[^\t\n\f <&#;]{1,32};?)")


def normalize_text(text: str | None) -> str:
    """Collapse whitespace runs (including U+00A0) to single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", str(text).replace("\u00a0", " ")).strip()


def _defuse_reference(match: re.Match[str]) -> str:
    ref = match.group(0)
    if html.unescape(ref) == ref:
        return ref
    return "& " + ref[1:]


def html_to_text(html_body: str | None) -> str:
    """Strip an HTML body down to normalized plain text.

    ``<script>`` and ``<style>`` elements are dropped with their contents,
    every other tag is replaced by a space, entities (``&nbsp;`` included) are
    decoded.  Decoded angle brackets become spaces and any ``&`` that would
    start another reference is split off, so feeding the result back in
    returns it unchanged.
    """
    if not html_body:
        return ""
    soup = BeautifulSoup(str(html_body), "html.parser")
    for tag in soup(list(_DROP_TAGS)):
        tag.decompose()
    text = _ANGLE_BRACKETS.sub(" ", soup.get_text(separator=" "))
    return normalize_text(_CHAR_REF.sub(_defuse_reference, text))
