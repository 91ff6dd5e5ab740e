"""
Logging utilities for the rus front end.

This module provides logging functions that respect the CompilationContext
log level and format flags. All output goes to stderr.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import sys
import time
from typing import Optional

from rus_context import CompilationContext, LogLevel


def log(context: CompilationContext, log_level: LogLevel, message: str) -> None:
    """
    Log a message if the context's logging level admits `log_level`.

    Args:
        context:    The compilation context containing logging level.
        log_level:  The level of the message to log.
        message:    The message to log.
    """
    if context.log_level < log_level:
        return
    prefix = ""
    if context.log_rich_format:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        prefix = {
            LogLevel.ERROR: f"{timestamp} [ERROR] ",
            LogLevel.WARNING: f"{timestamp} [WARNING] ",
            LogLevel.INFO: f"{timestamp} [INFO] ",
            LogLevel.DEBUG: f"{timestamp} [DEBUG] ",
        }.get(log_level, "")
    print(f"{prefix}{message}", file=sys.stderr)


def log_error(context: CompilationContext, message: str) -> None:
    log(context, LogLevel.ERROR, message)


def log_warning(context: CompilationContext, message: str) -> None:
    log(context, LogLevel.WARNING, message)


def log_info(context: CompilationContext, message: str) -> None:
    log(context, LogLevel.INFO, message)


def log_debug(context: CompilationContext, message: str) -> None:
    log(context, LogLevel.DEBUG, message)


def log_stage(context: CompilationContext, stage: str, filename: Optional[str] = None) -> None:
    """
    Log the start of a front-end stage.

    Args:
        context: The compilation context containing logging flags.
        stage: The name of the stage ("Lexing" or "Parsing").
        filename: Optional name of the source being processed.
    """
    if filename:
        log(context, LogLevel.INFO, f"{stage} '{filename}'")
    else:
        log(context, LogLevel.INFO, f"{stage}...")
