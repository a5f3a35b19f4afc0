"""Pytest configuration and shared fixtures for all tests."""

import pytest
from loguru import logger

from collection_reader.chains import ChainRegistry
from collection_reader.config import Config


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep loguru output out of test runs."""
    logger.remove()
    yield


@pytest.fixture
def config():
    return Config(
        rpc_eth="https://eth.example",
        rpc_base="https://base.example",
        rpc_polygon="https://polygon.example",
    )


@pytest.fixture
def registry(config):
    return ChainRegistry.from_config(config)
