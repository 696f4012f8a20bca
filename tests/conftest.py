from __future__ import annotations

import io
import json
from typing import Callable, Dict, List, Optional, Sequence

import pytest

ENV_VARS = [
    "TIMEWARRIOR_EXT_TAG_SUMMARY_DEBUG",
    "TIMEWARRIOR_REPORTS_TAG_SUMMARY_COLOR",
    "TIMEWARRIOR_REPORTS_TAG_SUMMARY_MIN_TITLE_WIDTH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_entry(
    entry_id: int,
    start: str,
    end: str,
    tags: Sequence[str],
    annotation: Optional[str] = None,
) -> Dict[str, object]:
    entry: Dict[str, object] = {
        "id": entry_id,
        "start": start,
        "end": end,
        "tags": list(tags),
    }
    if annotation is not None:
        entry["annotation"] = annotation
    return entry


def build_report_input(
    entries: Sequence[Dict[str, object]], settings: Optional[Dict[str, str]] = None
) -> str:
    header = [f"{name}: {value}" for name, value in (settings or {}).items()]
    body: List[str] = ["["]
    for index, entry in enumerate(entries):
        suffix = "," if index < len(entries) - 1 else ""
        body.append(json.dumps(entry, separators=(",", ":")) + suffix)
    body.append("]")
    return "\n".join(header + [""] + body) + "\n"


@pytest.fixture()
def report_stream() -> Callable[..., io.StringIO]:
    def _factory(
        entries: Sequence[Dict[str, object]],
        settings: Optional[Dict[str, str]] = None,
    ) -> io.StringIO:
        return io.StringIO(build_report_input(entries, settings))

    return _factory
