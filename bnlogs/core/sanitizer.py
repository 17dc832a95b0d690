"""Payload sanitizer — strips terminal control sequences from untrusted bytes.

Log payloads come from remote nodes and are printed straight to a local
terminal, so any escape sequence in them could move the cursor, recolour
output, set the window title, or worse.  Sanitizing is two steps:

1. :func:`strip_control_sequences` removes escape sequences and stray
   control bytes.  It is a total byte-level filter and never fails.
2. :func:`sanitize_payload` decodes the filtered bytes as strict UTF-8.
   Invalid input is rejected as a whole; there is no replacement decoding.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

# Alternatives are tried in order: string-type sequences (OSC, DCS and
# friends) and CSI must be matched before the generic two-byte escape,
# whose final-byte range also covers ``]``, ``P`` and ``[``.  C1 controls
# (U+0080..U+009F) are matched in their two-byte UTF-8 form, ``\xc2`` followed
# by the 8-bit control; ``\xc2\x9c`` is their string terminator.
_CONTROL_SEQUENCE_RE = re.compile(
    rb"""
      \x1b\] [^\x07\x1b]* (?:\x07|\x1b\\)?          # OSC ... BEL | ST
    | \x1b[PX^_] [^\x1b]* (?:\x1b\\)?               # DCS / SOS / PM / APC ... ST
    | \x1b\[ [\x30-\x3f]* [\x20-\x2f]* [\x40-\x7e]  # CSI
    | \x1b [\x20-\x2f]* [\x30-\x7e]                 # nF, Fp, Fe, Fs escapes
    | \x1b                                         # lone ESC
    | [\x00-\x08\x0b\x0c\x0e-\x1f\x7f]             # C0 controls except \t \n \r, and DEL
    | \xc2\x9d (?:[^\x07\x1b\xc2]|\xc2(?!\x9c))* (?:\x07|\xc2\x9c|\x1b\\)?   # 8-bit OSC
    | \xc2[\x90\x98\x9e\x9f] (?:[^\x1b\xc2]|\xc2(?!\x9c))* (?:\xc2\x9c|\x1b\\)?  # 8-bit DCS / SOS / PM / APC
    | \xc2\x9b [\x30-\x3f]* [\x20-\x2f]* [\x40-\x7e]                       # 8-bit CSI
    | \xc2[\x80-\x9f]                                                       # other C1 controls
    """,
    re.VERBOSE,
)


class SanitizedText(BaseModel):
    """A payload that survived sanitizing."""

    model_config = ConfigDict(frozen=True)

    text: str


class DecodeFailure(BaseModel):
    """A payload rejected because it is not valid UTF-8 after stripping."""

    model_config = ConfigDict(frozen=True)

    byte_length: int
    reason: str = ""


def strip_control_sequences(raw: bytes) -> bytes:
    """Remove terminal escape sequences and control bytes from *raw*.

    Tab, line feed and carriage return are kept.  C1 controls are removed in
    their UTF-8 encoding (``\\xc2\\x80`` to ``\\xc2\\x9f``); every other byte
    >= 0x80 is left alone, so multi-byte text passes through intact.

    >>> strip_control_sequences(b"\\x1b[31mred\\x1b[0m")
    b'red'
    """
    return _CONTROL_SEQUENCE_RE.sub(b"", bytes(raw))


def sanitize_payload(raw: bytes) -> SanitizedText | DecodeFailure:
    """Strip *raw* and decode it as strict UTF-8."""
    stripped = strip_control_sequences(raw)
    try:
        return SanitizedText(text=stripped.decode("utf-8", errors="strict"))
    except UnicodeDecodeError as exc:
        return DecodeFailure(byte_length=len(stripped), reason=str(exc))
