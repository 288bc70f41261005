"""
Pytest fixtures for the swap pipeline tests.
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from solders.keypair import Keypair

from config import SwapConfig
from helpers import FakePool


@pytest.fixture
def kp() -> Keypair:
    return Keypair()


@pytest.fixture
def cfg() -> SwapConfig:
    return SwapConfig(nozomi_uuid="test-uuid", jupiter_url="https://jup.test/v6")


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()
