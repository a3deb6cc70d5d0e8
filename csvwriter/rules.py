"""
Default formatting rules and the encodings the writer accepts.

reset_config() restores exactly these values.
"""

from __future__ import annotations

from encodings import normalize_encoding
from encodings.aliases import aliases
from enum import IntEnum
from typing import FrozenSet, Optional

from charset_normalizer.constant import IANA_SUPPORTED


class EnclosureRule(IntEnum):
    NONE = 1  # values joined as-is
    ALL = 2   # every value wrapped in double quotes


DEFAULT_COLUMN_DELIMITER = ","
DEFAULT_LINE_DELIMITER = "\n"
DEFAULT_ENCLOSURE_RULE = EnclosureRule.ALL
DEFAULT_MAX_BUFFERED_ROWS = 0  # 0 => no limit

QUOTE = '"'
PROBE_SUFFIX = b" "
OUTPUT_ENCODING = "utf-8"  # used when no encodings are configured

# utf_8_sig has no alias entry, so IANA_SUPPORTED leaves it out
SUPPORTED_ENCODINGS: FrozenSet[str] = frozenset(IANA_SUPPORTED) | {"utf_8_sig"}


def canonical_encoding(name: str, supported: FrozenSet[str] = SUPPORTED_ENCODINGS) -> Optional[str]:
    """
    Map an encoding label ("UTF-8", "ISO-8859-1", "latin1") to the codec name
    used in `supported`. Returns None when the label is unknown.
    """
    if not isinstance(name, str) or not name.strip():
        return None
    key = normalize_encoding(name.strip()).lower()
    key = aliases.get(key, key)
    return key if key in supported else None
