#!/usr/bin/env python3

"""Timewarrior report that sums tracked time per tag combination."""

from __future__ import annotations

from datetime import timedelta
import sys
from typing import List, Optional, Sequence, TextIO

from tag_summary_common import (
    Data,
    GroupReportRow,
    Interval,
    ReportConfig,
    ReportInputError,
    _debug,
    duration_hours,
    duration_minutes,
    load_data,
    percentage,
    resolve_report_config,
)
from tag_summary_printer import (
    BOLD,
    DIM,
    HEADER,
    PLAIN,
    UNDERLINE,
    ColumnSpec,
    build_layout,
    print_line,
)

HEADERS = ["TAGS", "MINUTES", "HOURS", "%"]
TOTAL_LABEL = "TOTAL"
ANNOTATIONS_LABEL = "annotations"


def compute_title_width(
    rows: Sequence[GroupReportRow],
    annotated: Sequence[Interval],
    minimum: int,
) -> int:
    titles = [row.title for row in rows] + [interval.title for interval in annotated]
    labels = [HEADERS[0], TOTAL_LABEL]
    return max([len(title) for title in titles + labels] + [minimum])


def build_columns(title_width: int) -> List[ColumnSpec]:
    return [
        ColumnSpec(width=title_width),
        ColumnSpec(width=10, number_format="d"),
        ColumnSpec(width=10, number_format=".1f"),
        ColumnSpec(width=4, number_format=".0f"),
    ]


def format_row(
    layout: str, title: str, duration: timedelta, total: timedelta
) -> str:
    return layout.format(
        title,
        duration_minutes(duration),
        duration_hours(duration),
        percentage(duration, total),
    )


def render_report(
    data: Data, config: ReportConfig, stream: Optional[TextIO] = None
) -> None:
    stream = stream or sys.stdout
    color = config.color

    rows = data.sorted_report_rows()
    annotated = data.annotated_intervals()
    total = data.total_duration()
    _debug(f"[tag_summary] groups={len(rows)} annotated={len(annotated)}")

    columns = build_columns(
        compute_title_width(rows, annotated, config.min_title_width)
    )
    header_layout = build_layout(columns, numeric=False)
    layout = build_layout(columns)

    print_line(data.report_title(), DIM, color, stream)
    print_line(stream=stream)
    print_line(header_layout.format(*HEADERS), HEADER, color, stream)

    for index, row in enumerate(rows):
        is_last = index == len(rows) - 1
        print_line(
            format_row(layout, row.title, row.duration, total),
            UNDERLINE if is_last else PLAIN,
            color,
            stream,
        )

    print_line(format_row(layout, TOTAL_LABEL, total, total), BOLD, color, stream)

    if not annotated:
        return

    print_line(stream=stream)
    print_line(ANNOTATIONS_LABEL, stream=stream)
    for interval in annotated:
        line = format_row(layout, interval.title, interval.duration, total)
        print_line(f"{line} {interval.annotation}", DIM, color, stream)


def main() -> None:
    try:
        data = load_data(sys.stdin)
    except ReportInputError as exc:
        sys.stderr.write(f"{exc}\n")
        sys.exit(1)

    config = resolve_report_config(data.settings)
    render_report(data, config)


if __name__ == "__main__":
    main()
