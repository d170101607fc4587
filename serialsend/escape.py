r"""
Escape decoding for the text given on the command line.

With decoding on, a backslash introduces an escape:

    \\      backslash
    \n      newline (0x0A)
    \r      carriage return (0x0D)
    \xHH    the byte 0xHH, exactly two hex digits, any case

Any other character after a backslash, and a backslash at the very end,
are passed through literally.
"""

import os

from .errors import UsageError

BACKSLASH = ord("\\")
HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    ord("\\"): BACKSLASH,
    ord("n"):  0x0A,
    ord("r"):  0x0D,
}


def decode_payload(text: str, hex_decoding: bool = False) -> bytes:
    # fsencode gives back the exact argv bytes on POSIX, UTF-8 on Windows
    raw = os.fsencode(text)
    if not hex_decoding:
        return raw

    out = bytearray()
    i, n = 0, len(raw)
    while i < n:
        b = raw[i]
        if b != BACKSLASH or i + 1 == n:
            out.append(b)
            i += 1
            continue

        code = raw[i + 1]
        if code in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[code])
            i += 2
        elif code == ord("x"):
            digits = raw[i + 2:i + 4]
            if len(digits) < 2:
                raise UsageError(f"Truncated \\x escape at offset {i}: need two hex digits")
            if not all(d in HEX_DIGITS for d in digits):
                raise UsageError(
                    f"Invalid \\x escape at offset {i}: {digits.decode('ascii', 'replace')!r} is not hex")
            out.append(int(digits, 16))
            i += 4
        else:
            out += raw[i:i + 2]
            i += 2
    return bytes(out)
