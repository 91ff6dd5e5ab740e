#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import is_dataclass, fields
from typing import List, Any

from rus_ast import Node, Program
from rus_source import Span


def _format_span(span: Span | None) -> str:
    if span is None:
        return ""
    return f" @{span.start_line}:{span.start_column}-{span.end_line}:{span.end_column}"


def format_node(node: Any, indent: int = 0) -> List[str]:
    """
    Generic, reflection-based AST pretty-printer.

    - Shows the node class name.
    - Prints scalar fields inline; `None` and the span are left out.
    - Recursively prints child nodes and lists on new indented lines.
    - Appends a span annotation like `@1:1-3:2` when available.
    """
    ind = "  " * indent

    if isinstance(node, list):
        lines: List[str] = []
        for elem in node:
            lines.extend(format_node(elem, indent))
        return lines

    if not (isinstance(node, Node) and is_dataclass(node)):
        return [ind + repr(node)]

    scalars = []
    children = []
    for f in fields(node):
        if f.name == "span" or not f.repr:
            continue
        value = getattr(node, f.name)
        if value is None:
            continue
        if isinstance(value, Node):
            children.append((f.name, value))
        elif isinstance(value, list) and any(isinstance(elem, Node) for elem in value):
            children.append((f.name, value))
        else:
            scalars.append((f.name, value))

    # Header: ClassName(field=..., ...) @line:col-line:col
    header = node.__class__.__name__
    if scalars:
        header += "(" + ", ".join(f"{name}={value!r}" for name, value in scalars) + ")"
    header += _format_span(node.span)

    lines = [ind + header]
    for name, value in children:
        lines.append(f"{ind}  {name}:")
        lines.extend(format_node(value, indent + 2))
    return lines


def format_program(program: Program) -> str:
    """Pretty-print a whole program as a string."""
    return "\n".join(format_node(program, indent=0))
