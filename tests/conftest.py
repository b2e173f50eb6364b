"""
conftest.py — shared fixtures for the voc test suite.

1. ENV CLEANUP: snapshot and restore VOC_* environment variables so a test
   that tweaks settings through the environment cannot leak into others.
2. PROJECTS: a factory fixture that lays out a Vocalls project on disk.
"""
import os

import pytest

from project_factory import write_project


# ─── Environment Variable Safety ────────────────────────────────────────────

_ENV_KEYS_TO_PROTECT = [
    "VOC_WORKSPACE_ROOT",
    "VOC_PROJECTS_DIR",
    "VOC_DIST_DIR",
    "VOC_DEFAULT_ENVIRONMENT",
    "VOC_DEFAULT_HTTP_MODE",
    "VOC_DEFAULT_STORAGE_MODE",
    "VOC_SANDBOX_TIMEOUT_MS",
    "VOC_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env_vars():
    """Snapshot and restore critical environment variables after each test."""
    saved = {}
    for key in _ENV_KEYS_TO_PROTECT:
        if key in os.environ:
            saved[key] = os.environ[key]

    yield

    for key in _ENV_KEYS_TO_PROTECT:
        if key in saved:
            os.environ[key] = saved[key]
        else:
            os.environ.pop(key, None)


# ─── Projects ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_project(tmp_path):
    """
    Factory fixture for on-disk projects.

    Usage:
        path = make_project("demo", libraries={"1-core.js": "..."})
    """

    def _make(name="demo", **kwargs):
        return write_project(tmp_path / "projects", name, **kwargs)

    return _make
