import logging
from pathlib import Path
from typing import Callable, Iterator, List

import pytest

from loglat.utils.config import get_settings

SCENARIO_LINES = [
    "2024-01-01 10:00:00 GET /api 200 0.120",
    "2024-01-01 10:00:01 POST /api 201 0.340",
    "not a verb line 0.999",
]


@pytest.fixture(autouse=True)
def isolate_logging_and_settings() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    get_settings.cache_clear()
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    get_settings.cache_clear()


@pytest.fixture
def make_log(tmp_path: Path) -> Callable[[List[str]], Path]:
    def write(lines: List[str], name: str = "access.log") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return write


@pytest.fixture
def scenario_log(make_log: Callable[[List[str]], Path]) -> Path:
    return make_log(SCENARIO_LINES)
