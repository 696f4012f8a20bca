#!/usr/bin/env python3

"""Shared helpers for the tag summary report extension."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import os
import sys
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import json5

TIMEW_DATETIME_FORMAT = "%Y%m%dT%H%M%SZ"
TIMEW_DATETIME_LENGTH = 16
DATE_FORMAT = "%Y-%m-%d"
SETTING_SEPARATOR = ": "
TITLE_SEPARATOR = ", "
INVALID_DATE_LABEL = "Invalid date"

REPORT_START_KEY = "temp.report.start"
REPORT_END_KEY = "temp.report.end"
TIMEW_COLOR_KEY = "color"
COLOR_KEY = "reports.tag_summary.color"
MIN_TITLE_WIDTH_KEY = "reports.tag_summary.min_title_width"

DEBUG_ENV_VAR = "TIMEWARRIOR_EXT_TAG_SUMMARY_DEBUG"

DEFAULT_MIN_TITLE_WIDTH = 12


class ReportInputError(ValueError):
    """Raised when the report stream cannot be turned into intervals."""


@dataclass(frozen=True)
class Setting:
    name: str
    value: str


@dataclass(frozen=True)
class Interval:
    id: int
    start: datetime
    end: datetime
    tags: Tuple[str, ...]
    annotation: Optional[str] = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def title(self) -> str:
        return TITLE_SEPARATOR.join(self.tags)


@dataclass
class GroupReportRow:
    title: str
    duration: timedelta


@dataclass(frozen=True)
class ReportConfig:
    color: bool = True
    min_title_width: int = DEFAULT_MIN_TITLE_WIDTH


@dataclass(frozen=True)
class Data:
    """Settings and intervals of a single report invocation."""

    settings: Tuple[Setting, ...]
    intervals: Tuple[Interval, ...]

    def find_setting(self, name: str) -> Optional[Setting]:
        return find_setting(self.settings, name)

    def report_title(self) -> str:
        """Return the ``start - end`` date label of the report range.

        The end boundary is exclusive, so one second is taken off before the
        date is read: a range ending at ``20240201T000000Z`` is labelled
        ``2024-01-31``.
        """

        start = self.find_setting(REPORT_START_KEY)
        end = self.find_setting(REPORT_END_KEY)
        if start is None or not start.value or end is None:
            return ""
        start_label = setting_date_label(start.value)
        end_label = setting_date_label(end.value, offset=timedelta(seconds=-1))
        return f"{start_label} - {end_label}"

    def grouped_report_rows(self) -> List[GroupReportRow]:
        """Sum interval durations per title, in order of first appearance."""

        rows: Dict[str, GroupReportRow] = {}
        for interval in self.intervals:
            title = interval.title
            row = rows.get(title)
            if row is None:
                rows[title] = GroupReportRow(title=title, duration=interval.duration)
            else:
                row.duration += interval.duration
        return list(rows.values())

    def sorted_report_rows(self) -> List[GroupReportRow]:
        ascending = sorted(self.grouped_report_rows(), key=lambda row: row.duration)
        return list(reversed(ascending))

    def total_duration(self) -> timedelta:
        return sum((interval.duration for interval in self.intervals), timedelta())

    def annotated_intervals(self) -> List[Interval]:
        return [interval for interval in self.intervals if interval.annotation]


def _debug_enabled() -> bool:
    value = os.getenv(DEBUG_ENV_VAR, "").strip().lower()
    return value in {"1", "true", "yes", "on"}


def _debug(message: str) -> None:
    if _debug_enabled():
        sys.stderr.write(message.rstrip() + "\n")


def _warn(message: str) -> None:
    sys.stderr.write(message.rstrip() + "\n")


def find_setting(settings: Sequence[Setting], name: str) -> Optional[Setting]:
    for setting in settings:
        if setting.name == name:
            return setting
    return None


def parse_timew_datetime(value: str) -> datetime:
    """Parse a ``YYYYMMDDTHHMMSSZ`` timestamp as local wall-clock time.

    The trailing ``Z`` is matched literally; the wall-clock fields are kept
    as they are and the current local offset is attached.
    """

    if not isinstance(value, str) or len(value) != TIMEW_DATETIME_LENGTH:
        raise ReportInputError(f"Invalid timestamp: {value!r}")
    try:
        parsed = datetime.strptime(value, TIMEW_DATETIME_FORMAT)
    except ValueError as exc:
        raise ReportInputError(f"Invalid timestamp: {value!r}") from exc
    return parsed.replace(tzinfo=datetime.now().astimezone().tzinfo)


def setting_date_label(value: str, offset: timedelta = timedelta()) -> str:
    try:
        moment = parse_timew_datetime(value)
    except ReportInputError:
        _warn(f"Invalid report range date: {value!r}")
        return INVALID_DATE_LABEL
    return (moment + offset).strftime(DATE_FORMAT)


def read_report_input(stream: Iterable[str]) -> Tuple[List[Setting], str]:
    """Split the report stream into settings and the JSON payload."""

    settings: List[Setting] = []
    interval_lines: List[str] = []
    try:
        for raw_line in stream:
            line = raw_line.rstrip("\r\n")
            name, separator, value = line.partition(SETTING_SEPARATOR)
            if separator:
                settings.append(Setting(name=name, value=value))
            elif line.strip():
                interval_lines.append(line)
    except UnicodeDecodeError as exc:
        raise ReportInputError(f"Unreadable input line: {exc}") from exc

    return settings, "".join(interval_lines)


def _require(raw: Dict[str, object], key: str, expected: type, index: int) -> object:
    if key not in raw:
        raise ReportInputError(f"Interval {index} is missing '{key}'")
    value = raw[key]
    # bool is an int subclass, but never a valid id
    if not isinstance(value, expected) or isinstance(value, bool):
        raise ReportInputError(
            f"Interval {index} has an invalid '{key}': {value!r}"
        )
    return value


def _parse_interval(raw: object, index: int) -> Interval:
    if not isinstance(raw, dict):
        raise ReportInputError(f"Interval {index} is not an object")

    interval_id = _require(raw, "id", int, index)
    start = parse_timew_datetime(_require(raw, "start", str, index))
    end = parse_timew_datetime(_require(raw, "end", str, index))
    tags = _require(raw, "tags", list, index)
    if not all(isinstance(tag, str) for tag in tags):
        raise ReportInputError(f"Interval {index} has non-string tags: {tags!r}")

    annotation = raw.get("annotation")
    if annotation is not None and not isinstance(annotation, str):
        raise ReportInputError(
            f"Interval {index} has an invalid 'annotation': {annotation!r}"
        )

    return Interval(
        id=interval_id,
        start=start,
        end=end,
        tags=tuple(tags),
        annotation=annotation,
    )


def parse_intervals(payload: str) -> List[Interval]:
    """Decode the ``timew export`` payload into intervals, all or nothing."""

    if not payload:
        return []
    try:
        entries = json5.loads(payload)
    except ValueError as exc:
        raise ReportInputError(f"Invalid interval JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise ReportInputError("Interval JSON must be an array")

    return [_parse_interval(entry, index) for index, entry in enumerate(entries)]


def load_data(stream: Iterable[str]) -> Data:
    settings, payload = read_report_input(stream)
    intervals = parse_intervals(payload)
    _debug(f"[tag_summary] settings={len(settings)} intervals={len(intervals)}")
    return Data(settings=tuple(settings), intervals=tuple(intervals))


def duration_minutes(duration: timedelta) -> int:
    return int(duration.total_seconds() / 60)


def duration_hours(duration: timedelta) -> float:
    return duration_minutes(duration) / 60


def percentage(part: timedelta, total: timedelta) -> float:
    total_seconds = total.total_seconds()
    if total_seconds == 0:
        return 0.0
    return part.total_seconds() / total_seconds * 100


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    lower = value.strip().lower()
    if lower in {"1", "true", "yes", "on"}:
        return True
    if lower in {"0", "false", "no", "off"}:
        return False
    return None


def _env_key_for_header(header_key: str) -> str:
    return "TIMEWARRIOR_" + header_key.upper().replace(".", "_")


def _get_env_value(key: str) -> Optional[str]:
    raw = os.getenv(_env_key_for_header(key))
    if raw is None:
        return None
    return raw.strip()


def _resolve_value(
    settings: Sequence[Setting], key: str, default: Optional[str]
) -> Optional[str]:
    value = default
    setting = find_setting(settings, key)
    if setting is not None:
        value = setting.value.strip()
    env_value = _get_env_value(key)
    if env_value is not None:
        value = env_value
    return value


def _resolve_color(settings: Sequence[Setting]) -> bool:
    timew_color = find_setting(settings, TIMEW_COLOR_KEY)
    default = timew_color.value.strip() if timew_color is not None else "on"
    raw = _resolve_value(settings, COLOR_KEY, default)
    parsed = _parse_bool(raw)
    if parsed is None:
        _warn(f"Invalid value for {COLOR_KEY}: {raw!r}. Using color.")
        return True
    return parsed


def _resolve_min_title_width(settings: Sequence[Setting]) -> int:
    raw = _resolve_value(settings, MIN_TITLE_WIDTH_KEY, None)
    if raw is None or raw == "":
        return DEFAULT_MIN_TITLE_WIDTH
    try:
        value = int(raw)
    except ValueError:
        _warn(
            f"Invalid value for {MIN_TITLE_WIDTH_KEY}. "
            f"Using default {DEFAULT_MIN_TITLE_WIDTH}."
        )
        return DEFAULT_MIN_TITLE_WIDTH
    if value < 0:
        _warn(
            f"Negative value for {MIN_TITLE_WIDTH_KEY}. "
            f"Using default {DEFAULT_MIN_TITLE_WIDTH}."
        )
        return DEFAULT_MIN_TITLE_WIDTH
    return value


def resolve_report_config(settings: Sequence[Setting]) -> ReportConfig:
    config = ReportConfig(
        color=_resolve_color(settings),
        min_title_width=_resolve_min_title_width(settings),
    )
    _debug(
        f"[tag_summary] color={config.color} "
        f"min_title_width={config.min_title_width}"
    )
    return config
