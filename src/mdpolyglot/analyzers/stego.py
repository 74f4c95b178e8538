"""Zero-width steganography codec.

Payload bytes are hidden in invisible Unicode characters:

    U+200B  ZERO WIDTH SPACE        bit 0
    U+200C  ZERO WIDTH NON-JOINER   bit 1
    U+200D  ZERO WIDTH JOINER       byte separator
    U+FEFF  ZERO WIDTH NO-BREAK SP  frame marker (start and end)
    U+2060  WORD JOINER             padding, ignored when decoding

A concealed payload renders identically to the carrier text.
"""

import re
from dataclasses import dataclass
from typing import Any

ZWSP = "\u200b"
ZWNJ = "\u200c"
ZWJ = "\u200d"
WORD_JOINER = "\u2060"
BOM = "\ufeff"

ZERO_WIDTH_CHARS: frozenset[str] = frozenset({ZWSP, ZWNJ, ZWJ, WORD_JOINER, BOM})

ZERO_WIDTH_RUN_RE = re.compile("[" + "".join(sorted(ZERO_WIDTH_CHARS)) + "]+")

_BITS = {ZWSP: "0", ZWNJ: "1"}


@dataclass(frozen=True)
class HiddenPayload:
    """A run of zero-width characters found in a document.

    Attributes:
        offset: Character offset of the run in the document
        length: Number of zero-width characters in the run
        data: Decoded bytes, or None if the run is not a valid encoding
    """

    offset: int
    length: int
    data: bytes | None = None

    @property
    def text(self) -> str | None:
        """Decoded payload as text, if it is valid UTF-8."""
        if self.data is None:
            return None
        try:
            return self.data.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "offset": self.offset,
            "length": self.length,
            "valid": self.data is not None,
        }
        if self.data is not None:
            text = self.text
            if text is not None:
                result["text"] = text
            else:
                result["bytes_hex"] = self.data.hex()
        return result


def encode(payload: str | bytes) -> str:
    """Encode a payload as a framed zero-width character string."""
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    body = ZWJ.join(
        "".join(ZWNJ if bit == "1" else ZWSP for bit in f"{byte:08b}") for byte in data
    )
    return f"{BOM}{body}{BOM}"


def decode(run: str) -> bytes | None:
    """Decode a run of zero-width characters.

    Args:
        run: Zero-width characters (frame markers optional)

    Returns:
        Decoded bytes, or None if the run is not a valid encoding
    """
    body = run.replace(WORD_JOINER, "").strip(BOM)
    if not body or BOM in body:
        return None

    out = bytearray()
    for group in body.split(ZWJ):
        if len(group) != 8 or any(ch not in _BITS for ch in group):
            return None
        out.append(int("".join(_BITS[ch] for ch in group), 2))
    return bytes(out)


def conceal(text: str, payload: str | bytes) -> str:
    """Hide a payload at the end of the carrier text."""
    return text + encode(payload)


def find_payloads(text: str) -> list[HiddenPayload]:
    """Find and decode every run of zero-width characters.

    A single byte-order mark at the very start of the document is an encoding
    artifact, not a payload, and is skipped.
    """
    payloads: list[HiddenPayload] = []
    for match in ZERO_WIDTH_RUN_RE.finditer(text):
        run = match.group(0)
        if match.start() == 0 and run == BOM:
            continue
        payloads.append(
            HiddenPayload(offset=match.start(), length=len(run), data=decode(run))
        )
    return payloads


def reveal(text: str) -> list[bytes]:
    """Return all validly encoded payloads hidden in the text."""
    return [p.data for p in find_payloads(text) if p.data is not None]


def strip_zero_width(text: str) -> str:
    """Remove every zero-width character from the text."""
    return ZERO_WIDTH_RUN_RE.sub("", text)
