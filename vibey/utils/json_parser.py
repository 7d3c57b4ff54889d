"""
JSON Parsing Utilities.

Locates a JSON payload inside free-form model output. Two strategies are
used in order: a fenced ```json block, then a bracket-depth scan anchored at
a known key. The scan tracks double-quoted strings and escapes so braces
inside string values never end the object early.
"""

import json
import logging
import re
from typing import Any, Iterable, Optional, Tuple

from vibey.utils.exceptions import JsonParsingError

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```json[ \t]*[\r\n]+([\s\S]*?)[\r\n]*```", re.IGNORECASE)
# Models sometimes repeat the language tag on the first line inside the fence.
_DOUBLED_TAG = re.compile(r"^\s*json\s*[\r\n]+", re.IGNORECASE)

DEFAULT_ANCHORS = ("thought", "tool_calls")


def extract_fenced_json(text: str) -> Optional[str]:
    """Return the interior of the first ```json fence, or None."""
    match = FENCE_PATTERN.search(text)
    if not match:
        return None
    candidate = _DOUBLED_TAG.sub("", match.group(1), count=1)
    return candidate.strip()


def extract_anchored_json(
    text: str, anchors: Iterable[str] = DEFAULT_ANCHORS
) -> Optional[str]:
    """
    Return the balanced object that opens with one of the anchor keys.

    The scan starts at the first ``{`` followed (after optional whitespace)
    by ``"<anchor>"``. None is returned when no anchor is present or when
    the braces never balance.
    """
    keys = "|".join(re.escape(a) for a in anchors)
    anchor_pattern = re.compile(r'\{\s*"(?:' + keys + r')"')
    match = anchor_pattern.search(text)
    if not match:
        return None
    return _BracketScanner(text, match.start()).scan()


class _BracketScanner:
    """
    Depth counter for a single object starting at ``start``.
    Only double-quoted strings are tracked; a backslash escapes the next char.
    """

    # pylint: disable=too-few-public-methods

    def __init__(self, text: str, start: int):
        self.text = text
        self.start = start
        self._depth = 0
        self._in_string = False
        self._escape = False

    def scan(self) -> Optional[str]:
        for i in range(self.start, len(self.text)):
            if self._process_char(self.text[i]):
                return self.text[self.start : i + 1]
        logger.debug("Unbalanced JSON candidate at %d", self.start)
        return None

    def _process_char(self, char: str) -> bool:
        """Update state; True when the outer object just closed."""
        if self._escape:
            self._escape = False
            return False
        if self._in_string:
            if char == "\\":
                self._escape = True
            elif char == '"':
                self._in_string = False
            return False

        if char == '"':
            self._in_string = True
        elif char == "{":
            self._depth += 1
        elif char == "}":
            self._depth -= 1
            return self._depth == 0
        return False


def load_json(candidate: str) -> Tuple[Optional[Any], Optional[JsonParsingError]]:
    """Deserialize a candidate. Returns (value, None) or (None, error)."""
    try:
        return json.loads(candidate), None
    except json.JSONDecodeError as e:
        error = JsonParsingError(
            f"Failed to parse JSON candidate: {e}",
            original_error=e,
            partial_data=candidate[:200],
            position=e.pos,
        )
        return None, error


def find_json_payload(text: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Locate a JSON payload in model output.

    Returns:
        Tuple of (candidate, method) where method is "fenced" or "bracket".
        Both are None when nothing was found.
    """
    candidate = extract_fenced_json(text)
    if candidate:
        return candidate, "fenced"

    candidate = extract_anchored_json(text)
    if candidate:
        return candidate, "bracket"

    return None, None
