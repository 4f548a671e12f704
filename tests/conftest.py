from __future__ import annotations

import os

import pytest


def pytest_sessionstart(session: pytest.Session) -> None:
    # Keep botocore from probing instance metadata during unit test runs.
    os.environ.setdefault("AWS_EC2_METADATA_DISABLED", "true")
