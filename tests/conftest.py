"""
Pytest fixtures for thor_streamer tests. Isolates THOR_* settings from the host environment.
"""

from __future__ import annotations

import os

import pytest


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """
    Remove THOR_* variables and run from an empty tmp dir so no stray .env is loaded.
    Returns the tmp dir.
    """
    for name in list(os.environ):
        if name.startswith("THOR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
