"""Display helpers for feature names."""
from __future__ import annotations

import re

_SEPARATORS_RE = re.compile(r"[_-]")
_CAMEL_RE = re.compile(r"([a-z])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SPACES_RE = re.compile(r"\s+")


def format_feature_name(name: str) -> str:
    """Turn ``myHTTPServer_handler`` style names into ``My Http Server Handler``."""
    spaced = _SEPARATORS_RE.sub(" ", name or "")
    spaced = _CAMEL_RE.sub(r"\1 \2", spaced)
    spaced = _ACRONYM_RE.sub(r"\1 \2", spaced)
    words = [word[:1].upper() + word[1:].lower() for word in spaced.split(" ")]
    return _SPACES_RE.sub(" ", " ".join(words)).strip()
