#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

"""
Escape helpers shared by the lexer and its tests.

The lexer validates escape sequences while scanning and reports the bad ones.
This module turns the raw literal body (without surrounding quotes) into the
decoded text stored on the token. Malformed escapes are decoded best-effort so
that a literal with a reported error still carries a usable value.
"""

HEX_CHARS = "0123456789abcdefABCDEF"

SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "0": "\0",
}

MAX_ASCII_ESCAPE = 0x7F
MAX_UNICODE_DIGITS = 6


def is_unicode_scalar(value: int) -> bool:
    return 0 <= value <= 0x10FFFF and not (0xD800 <= value <= 0xDFFF)


def decode_literal_body(text: str) -> str:
    """
    Decode a string or char literal body to its value.

    Input is the lexeme text between the quotes, with escapes preserved.
    """
    out: list[str] = []
    i = 0

    while i < len(text):
        ch = text[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        i += 1
        if i >= len(text):
            out.append("\\")
            break

        esc = text[i]

        if esc in SIMPLE_ESCAPES:
            out.append(SIMPLE_ESCAPES[esc])
            i += 1
            continue

        if esc == "x":
            digits = text[i + 1:i + 3]
            if len(digits) == 2 and all(c in HEX_CHARS for c in digits):
                out.append(chr(int(digits, 16)))
                i += 3
                continue
            # Lexer reports this; keep the raw text.
            out.append("\\x")
            i += 1
            continue

        if esc == "u":
            close = text.find("}", i)
            digits = text[i + 2:close] if text[i + 1:i + 2] == "{" and close != -1 else ""
            if (digits and len(digits) <= MAX_UNICODE_DIGITS
                    and all(c in HEX_CHARS for c in digits)
                    and is_unicode_scalar(int(digits, 16))):
                out.append(chr(int(digits, 16)))
                i = close + 1
                continue
            out.append("�")
            i = close + 1 if close != -1 and text[i + 1:i + 2] == "{" else i + 1
            continue

        # Unknown escapes are rejected by the lexer. Preserve best-effort behavior.
        out.append(esc)
        i += 1

    return "".join(out)
