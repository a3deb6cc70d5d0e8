"""
Encoding conversion for rendered CSV payloads.

Detect first, convert only when needed:
- payload already valid in the target encoding -> returned untouched
- otherwise converted from the source encoding to the target encoding
"""

from __future__ import annotations

import codecs
import logging
from typing import Any, Dict, Tuple

from charset_normalizer import from_bytes

from .rules import PROBE_SUFFIX

logger = logging.getLogger(__name__)


def start_encoder(codec: str) -> Tuple[codecs.IncrementalEncoder, bytes]:
    """
    Incremental encoder for `codec` and the preamble it emits once (the BOM
    for utf-16/utf-32/utf-8-sig, b"" otherwise). Later encode() calls on the
    returned encoder never repeat it.
    """
    encoder = codecs.getincrementalencoder(codec)(errors="replace")
    return encoder, encoder.encode("")


def is_valid_in(payload: bytes, encoding: str) -> bool:
    """True when `payload` decodes strictly as `encoding`."""
    try:
        payload.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return False
    return True


def convert_encoding(payload: bytes, source: str, target: str) -> Tuple[bytes, Dict[str, Any]]:
    """
    Convert `payload` from `source` to `target` unless it already reads as `target`.

    Rules:
    - The payload plus a trailing probe byte is checked against `target`.
      If it decodes cleanly, nothing is converted.
    - Otherwise it is decoded as `source`. If that fails as well the payload
      cannot be classified; the best guess from charset-normalizer goes into
      the report and `source` is used anyway, with replacement characters.
    - Characters the target cannot represent are replaced.
    """
    report: Dict[str, Any] = {
        "source": source,
        "target": target,
        "already_target": False,
        "converted": False,
        "decode_fallback": False,
        "detected": None,
    }

    if is_valid_in(payload + PROBE_SUFFIX, target):
        report["already_target"] = True
        return payload, report

    try:
        text = payload.decode(source)
    except UnicodeDecodeError:
        match = from_bytes(payload).best()
        if match is not None:
            report["detected"] = match.encoding
        logger.warning(
            "payload is neither valid %s nor %s (best guess: %s); decoding as %s with replacement",
            target, source, report["detected"], source,
        )
        text = payload.decode(source, errors="replace")
        report["decode_fallback"] = True

    converted = text.encode(target, errors="replace")
    report["converted"] = True
    logger.debug("converted %d bytes from %s to %s", len(payload), source, target)
    return converted, report
