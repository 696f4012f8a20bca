from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import List, Optional, Sequence, TextIO

ANSI_RESET = "\033[0m"
ANSI_BOLD = "\033[1m"
ANSI_DIM = "\033[2m"
ANSI_UNDERLINE = "\033[4m"


@dataclass(frozen=True)
class ColumnSpec:
    width: int
    align: str = ">"
    number_format: Optional[str] = None


@dataclass(frozen=True)
class Style:
    prefix: str = ""
    suffix: str = ""


PLAIN = Style()
BOLD = Style(prefix=ANSI_BOLD, suffix=ANSI_RESET)
DIM = Style(prefix=ANSI_DIM, suffix=ANSI_RESET)
UNDERLINE = Style(prefix=ANSI_UNDERLINE, suffix=ANSI_RESET)
HEADER = Style(prefix=f"{ANSI_BOLD}{ANSI_UNDERLINE}", suffix=ANSI_RESET)


def build_layout(columns: Sequence[ColumnSpec], numeric: bool = True) -> str:
    parts: List[str] = []
    for column in columns:
        number_format = column.number_format if numeric else None
        parts.append(f"{{:{column.align}{column.width}{number_format or ''}}}")
    return " ".join(parts)


def apply_style(text: str, style: Style, enabled: bool = True) -> str:
    if not enabled or not text or style == PLAIN:
        return text
    return f"{style.prefix}{text}{style.suffix}"


def print_line(
    text: str = "",
    style: Style = PLAIN,
    enabled: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    print(apply_style(text, style, enabled), file=stream or sys.stdout)
