from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

SAMPLE_CEF = (
    "CEF: 0|Figgity Foo Bar Inc.|ThingyThang|1.0.0|Firewall|"
    "Something Bad Happened|Informative|foo=bar baz=ah Hellz Nah"
)


@pytest.fixture
def sample_cef() -> str:
    return SAMPLE_CEF


@pytest.fixture
def write_cef_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "CEF:0|Security|ThreatManager|1.0|100|Login failed|8|src=1.2.3.4 msg=bad password",
                    "not a cef line",
                    "",
                    "Jan 18 11:07:53 host CEF:0|Security|ThreatManager|1.0|101|Port scan|5|dpt=22",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def write_lines() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")

    return _write
