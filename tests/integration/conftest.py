"""
Fixtures for integration tests: real subprocesses running small Python scripts.
"""

import os
import stat
import sys
import textwrap

import pytest


@pytest.fixture
def fake_cli(tmp_path):
    """
    Factory for an executable stand-in for an agent CLI.

    The body is Python source; ``sys.argv[1:]`` holds the arguments the
    adapter built.
    """

    def make(body: str, name: str = "fake-cli") -> str:
        path = tmp_path / name
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return make


@pytest.fixture
def python_exe():
    return sys.executable


@pytest.fixture(autouse=True)
def skip_on_windows():
    if os.name == "nt":
        pytest.skip("POSIX process semantics required")
