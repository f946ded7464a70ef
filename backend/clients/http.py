"""Shared plumbing for the blocking `requests` clients used from asyncio."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

import requests

T = TypeVar("T")


def build_http_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    return session


def join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


async def run_blocking(func: Callable[..., T], *args: Any, timeout: float, **kwargs: Any) -> T:
    """
    Run a blocking call in a worker thread and wait at most `timeout` seconds.

    Raises asyncio.TimeoutError when the bound is hit. The worker thread is
    not interrupted; its result is simply discarded.
    """
    return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout=timeout)
