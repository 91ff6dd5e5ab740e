"""
Front-end context for cross-cutting options.

This module defines the CompilationContext dataclass which holds options that
affect both the lexer and the parser (literal limits, diagnostics, logging).
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Hierarchical logging levels for the rus front end."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # Stage progress messages
    DEBUG = 30      # Token and diagnostic counts


@dataclass
class CompilationContext:
    """
    Holds cross-cutting options shared by the lexer and the parser.

    Attributes:
        int_literal_bits:       Width of the unsigned range an integer literal must fit in.
        log_rich_format:        If True, emit logs in rich format: log level and timestamp prefix.
        log_level:              Current logging level.
    """
    int_literal_bits: int = 64
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING

    @staticmethod
    def default() -> 'CompilationContext':
        """Create a CompilationContext with default settings."""
        return CompilationContext(log_level=LogLevel.WARNING)
