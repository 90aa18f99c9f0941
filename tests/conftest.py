# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest

from filestack_gate.config import FilestackConfig, StoreConfig
from filestack_gate.dotenv_loader import reset_dotenv_state
from filestack_gate.logging import SecretFilter


@pytest.fixture(autouse=True)
def _clean_global_state() -> Iterator[None]:
    """Reset redaction secrets and dotenv state around every test."""
    SecretFilter.clear_secrets()
    reset_dotenv_state()
    yield
    SecretFilter.clear_secrets()
    reset_dotenv_state()


@pytest.fixture
def s3_store() -> StoreConfig:
    """S3 store with a fake key pair in eu-west-1."""
    return StoreConfig(
        location="S3",
        account="AKIDEXAMPLE",
        secret="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        container="previews",
        region="eu-west-1",
        path="docs/",
    )


@pytest.fixture
def config() -> FilestackConfig:
    """Config with an app secret and no external store."""
    return FilestackConfig(api_key="APIKEY", app_secret="app-secret")


@pytest.fixture
def s3_config(s3_store: StoreConfig) -> FilestackConfig:
    """Config with an app secret and an S3 store."""
    return FilestackConfig(
        api_key="APIKEY", app_secret="app-secret", store=s3_store
    )
