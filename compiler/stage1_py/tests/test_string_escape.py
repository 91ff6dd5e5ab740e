#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from rus_string_escape import decode_literal_body, is_unicode_scalar


def test_decode_simple_ascii():
    assert decode_literal_body("hello") == "hello"


def test_decode_common_escapes():
    assert decode_literal_body(r"Line1\nLine2\t\\\"\'\0\r") == "Line1\nLine2\t\\\"'\0\r"


def test_decode_hex_escape():
    assert decode_literal_body(r"\x41\x7a") == "Az"


def test_decode_unicode_escape():
    assert decode_literal_body(r"\u{20AC}\u{1F600}") == "€\U0001f600"


def test_decode_malformed_hex_keeps_raw_text():
    assert decode_literal_body(r"\xG1") == "\\xG1"


def test_decode_malformed_unicode_yields_replacement_char():
    assert decode_literal_body(r"\u{D800}z") == "�z"
    assert decode_literal_body(r"\u{}z") == "�z"
    assert decode_literal_body(r"\u41") == "�41"


def test_decode_unknown_escape_keeps_char():
    assert decode_literal_body(r"a\qb") == "aqb"


def test_decode_trailing_backslash():
    assert decode_literal_body("abc\\") == "abc\\"


def test_is_unicode_scalar():
    assert is_unicode_scalar(0)
    assert is_unicode_scalar(0x10FFFF)
    assert not is_unicode_scalar(0x110000)
    assert not is_unicode_scalar(0xDFFF)
