"""
Shared fixtures: every test runs against the fast-mode presets.
"""

import pytest

from tldscan.config import Config, config


@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    fast = Config.fast_mode()
    monkeypatch.setattr(config, "probe", fast.probe)
    monkeypatch.setattr(config, "retry", fast.retry)
    monkeypatch.setattr(config, "batch", fast.batch)
    return config
