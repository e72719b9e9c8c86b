"""
Inline suppression directives.

A comment containing ``baseline-disable-next-line <feature-id>`` silences
findings for exactly that feature on the construct that follows it. The
identifier must match as a whole token, so a directive for
``style-property.color`` leaves ``style-property.color-mix`` alone.
"""

import re
from functools import lru_cache
from typing import Iterable, Pattern

DIRECTIVE_MARKER = "baseline-disable-next-line"

# the identifier may be followed by a sentence period, but not by more identifier
_TOKEN_END = r"(?![A-Za-z0-9_\-]|\.[A-Za-z0-9_\-])"


@lru_cache(maxsize=512)
def _directive_pattern(feature_id: str) -> Pattern:
    return re.compile(re.escape(DIRECTIVE_MARKER) + r"\s+" + re.escape(feature_id) + _TOKEN_END)


def is_suppressed(preceding_comments: Iterable[str], feature_id: str) -> bool:
    pattern = _directive_pattern(feature_id)
    return any(pattern.search(comment) for comment in preceding_comments if comment)
