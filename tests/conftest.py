from pathlib import Path

import pytest

from d2md.config import Settings
from d2md.exceptions import ExecError

SVG = '<?xml version="1.0" encoding="utf-8"?><svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 640 480"></svg>'


def _make_settings(**kwargs) -> Settings:
    """Settings isolated from any .env file."""
    return Settings(_env_file=None, **kwargs)


class FakeD2:
    """Stands in for the d2 executable: records calls and writes a fixed SVG."""

    def __init__(self, svg: str = SVG, fail_on: str | None = None, version: str = "0.6.5"):
        self.svg = svg
        self.fail_on = fail_on
        self.version = version
        self.calls: list[tuple[str, list[str], str | None]] = []

    async def __call__(self, command: str, args, stdin: str | None) -> list[str]:
        args = list(args)
        self.calls.append((command, args, stdin))
        if args == ["--version"]:
            return [self.version]
        if self.fail_on is not None and stdin is not None and self.fail_on in stdin:
            raise ExecError(command, 1, "err: failed to compile -: 1:1: unexpected text")
        Path(args[-1]).write_text(self.svg, encoding="utf-8")
        return []

    @property
    def render_calls(self) -> list[tuple[str, list[str], str | None]]:
        return [call for call in self.calls if call[1] != ["--version"]]


@pytest.fixture
def settings() -> Settings:
    return _make_settings()


@pytest.fixture
def make_settings():
    return _make_settings


@pytest.fixture
def fake_d2() -> FakeD2:
    return FakeD2()


@pytest.fixture
def make_fake_d2():
    return FakeD2
