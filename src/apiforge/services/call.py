"""CallService — execute (or dry-run) one endpoint and wrap the outcome."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from apiforge.domain.errors import ApiForgeError
from apiforge.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from apiforge.pipeline.client import ApiClient

logger = logging.getLogger(__name__)


class CallService:
    """Runs endpoint calls through an :class:`ApiClient`."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def call(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> ServiceResult:
        """Dispatch *path* and return the projected result.

        *timeout* arms the executor's cancellation trigger; a call that is
        cancelled this way fails with code ``CANCELLED``.
        """
        executor = self._client.request(path, payload)
        if timeout is not None:
            executor.cancel_after(timeout)
        try:
            result = await executor
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            message = f"Call to {path} was cancelled after {timeout}s"
            return ServiceResult(
                ok=False,
                op="call",
                error=ServiceError(code="CANCELLED", message=message, detail={"path": path}),
            )
        except ApiForgeError as exc:
            logger.debug("Call to %s failed with %s", path, exc.code)
            return ServiceResult.failure("call", exc)
        return ServiceResult(ok=True, op="call", data={"path": path, "result": result})

    async def dry_run(self, path: str, payload: dict[str, Any]) -> ServiceResult:
        """Run the pre-request hook and build stage without dispatching."""
        try:
            detail = await self._client.build(path, payload)
        except ApiForgeError as exc:
            return ServiceResult.failure("dry_run", exc)
        return ServiceResult(
            ok=True, op="dry_run", data={"path": path, "request": detail.to_dict()}
        )
