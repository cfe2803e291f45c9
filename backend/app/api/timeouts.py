"""Request-level timeout for HTTP calls into the messaging core."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from fastapi import HTTPException, status

from app.obs import metrics as obs_metrics
from app.settings import settings

T = TypeVar("T")


async def run_with_timeout(awaitable: Awaitable[T], *, operation: str, timeout: Optional[float] = None) -> T:
	"""Await ``awaitable`` and surface a 504 instead of hanging the caller."""
	limit = timeout if timeout is not None else settings.request_timeout_seconds
	try:
		return await asyncio.wait_for(awaitable, timeout=limit)
	except asyncio.TimeoutError:
		obs_metrics.request_timeout(operation)
		raise HTTPException(status.HTTP_504_GATEWAY_TIMEOUT, detail="request_timeout") from None
