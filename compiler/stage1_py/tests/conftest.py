#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from rus_frontend import parse


@pytest.fixture
def parse_src():
    """Parse a (dedented) source string.

    Returns (program, diagnostics).

    Usage:
        def test_something(parse_src):
            program, diags = parse_src('''
                fn main() { return 42; }
            ''')
            assert diags == []
    """

    def _parse(src: str):
        return parse(dedent(src))

    return _parse


def has_error_code(diagnostics, code: str) -> bool:
    """Check if any diagnostic contains the given error code.

    Args:
        diagnostics: List of Diagnostic objects
        code: Error code string like "PAR-0041" or "[PAR-0041]"

    Returns:
        True if any diagnostic message contains the error code
    """
    if not code.startswith("["):
        code = f"[{code}]"
    return any(code in d.message for d in diagnostics)


def codes_of(diagnostics) -> list[str]:
    """Extract the bracketed codes of all diagnostics, in order."""
    return [d.message[1:d.message.index("]")] for d in diagnostics]
