"""Pytest fixtures.

This file adjusts sys.path for src-layout imports.
"""

# ruff: noqa: E402

import os
import sys

# Ensure `src` is on sys.path so imports like `from queue_fetcher.core...` resolve during tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if os.path.isdir(SRC):
    sys.path.insert(0, SRC)
sys.path.insert(0, ROOT)

import pytest
from rich.traceback import install

from queue_fetcher.core.fetcher import RedisFetcher
from queue_fetcher.core.transcoder import JsonTranscoder
from tests.utils import FakeAsyncRedis

# Enable readable tracebacks in development / test environments.
# Can be disabled with PYTEST_RICH=0
if os.getenv("PYTEST_RICH", "1") == "1":
    install(
        show_locals=True,
        width=None,
        word_wrap=True,
        extra_lines=1,
        suppress=["/usr/lib/python3", "site-packages"],
    )


@pytest.fixture
def fake_redis():
    """Provide an empty in-process Redis stand-in."""
    return FakeAsyncRedis()


@pytest.fixture
def transcoder():
    """Provide the default JSON transcoder for plain JSON payloads."""
    return JsonTranscoder()


@pytest.fixture
def fetcher(fake_redis, transcoder):
    """Provide a fetcher wired to the stand-in with default settings."""
    return RedisFetcher(client=fake_redis, transcoder=transcoder)
