"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator

import pytest

from dronenet.config import get_settings
from dronenet.model.world import WorldConfig
from dronenet.network.delivery import DeliveryNetwork


@pytest.fixture(autouse=True)
def reset_package_logging() -> Iterator[None]:
    """Undo configure_logging() so caplog sees dronenet records in every test."""
    yield
    package_logger = logging.getLogger("dronenet")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def isolated_env(tmp_path, monkeypatch) -> Iterator[None]:
    """Run in an empty directory with no DRONENET_* variables and fresh settings."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("DRONENET_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def world() -> WorldConfig:
    """Default 100x100 world with Earth gravity."""
    return WorldConfig()


@pytest.fixture
def make_network(tmp_path) -> Iterator[Callable[..., DeliveryNetwork]]:
    """Factory for networks logging into tmp_path, silent by default.

    Every network created through the factory is closed after the test.
    """
    created: list[DeliveryNetwork] = []

    def factory(
        base_latency: float = 1.0,
        jitter: float = 0.0,
        drop_probability: float = 0.0,
        **kwargs,
    ) -> DeliveryNetwork:
        kwargs.setdefault("log_path", tmp_path / "comms_log.csv")
        kwargs.setdefault("echo", False)
        kwargs.setdefault("seed", 42)
        network = DeliveryNetwork(base_latency, jitter, drop_probability, **kwargs)
        created.append(network)
        return network

    yield factory

    for network in created:
        network.close()
