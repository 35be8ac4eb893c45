"""Fixtures shared by the fetcher tests."""

from typing import AsyncGenerator

import aiohttp
import pytest


@pytest.fixture
async def session() -> AsyncGenerator[aiohttp.ClientSession, None]:
    """Return an aiohttp session; requests are intercepted by aioresponses."""
    async with aiohttp.ClientSession() as client_session:
        yield client_session
