"""PipeChain — compose the fixed stages and custom extensions for one endpoint.

A chain is built once per endpoint from static configuration and reused by
every call; each call brings its own :class:`PipeDetail`.

INVARIANT: Fixed stages always run in PRE_HOOK, BUILD, DISPATCH,
SUCCESS_HOOK, PROJECT order. Extensions are inserted around them, never
between a fixed stage and itself.
INVARIANT: Every failure leaves the chain as an ApiForgeError subclass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from apiforge.domain.definitions import ResolvedEndpoint
from apiforge.domain.errors import ApiForgeError, HookError, StageError
from apiforge.domain.types import FIXED_STAGE_ORDER, StageName
from apiforge.pipeline.detail import PipeDetail
from apiforge.pipeline.stages import NextStage, Stage, call_hook, fixed_stages
from apiforge.pipeline.strategies import StrategyRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageExtension:
    """A custom stage anchored before or after one of the fixed stages."""

    stage: Stage
    anchor: StageName
    position: Literal["before", "after"] = "before"
    name: str | None = None

    def __post_init__(self) -> None:
        if self.position not in ("before", "after"):
            msg = f"position must be 'before' or 'after', got {self.position!r}"
            raise ValueError(msg)

    @property
    def label(self) -> str:
        return self.name or getattr(self.stage, "__name__", "custom_stage")


def compose(
    fixed: dict[StageName, Stage],
    extensions: Sequence[StageExtension] = (),
) -> list[tuple[str, Stage]]:
    """Order fixed stages and extensions into one list of ``(name, stage)``."""
    ordered: list[tuple[str, Stage]] = []
    for anchor in FIXED_STAGE_ORDER:
        ordered.extend(
            (ext.label, ext.stage)
            for ext in extensions
            if ext.anchor is anchor and ext.position == "before"
        )
        ordered.append((anchor.value, fixed[anchor]))
        ordered.extend(
            (ext.label, ext.stage)
            for ext in extensions
            if ext.anchor is anchor and ext.position == "after"
        )
    return ordered


class PipeChain:
    """Reusable stage sequence for one resolved endpoint."""

    def __init__(
        self,
        resolved: ResolvedEndpoint,
        strategies: StrategyRegistry,
        extensions: Sequence[StageExtension] = (),
    ) -> None:
        self.resolved = resolved
        self.strategy = strategies.resolve_name(
            resolved.config.request_strategy, path=resolved.path
        )
        self._adapter = strategies.get(self.strategy)
        self._stages = compose(
            fixed_stages(self._adapter, strategies.default_success_hook(self.strategy)),
            extensions,
        )

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self._stages]

    def new_detail(self, payload: dict[str, Any]) -> PipeDetail:
        """Allocate the per-call state for one invocation."""
        return PipeDetail(
            method=self.resolved.method.value,
            payload=payload,
            strategy=self.strategy,
            resolved=self.resolved,
        )

    async def run(self, detail: PipeDetail, *, until: StageName | None = None) -> Any:
        """Run the chain for one call.

        Args:
            detail: Fresh per-call state from :meth:`new_detail`.
            until: Stop after this fixed stage and return ``detail``.

        Raises:
            ApiForgeError: The first failure, after ``on_error`` observed it.
            asyncio.CancelledError: If the call was cancelled.
        """
        stages = self._stages
        if until is not None:
            stop = self.stage_names.index(until.value)
            stages = [*stages[: stop + 1], ("terminal", _return_detail)]

        config = self.resolved.config
        primary: BaseException | None = None
        try:
            return await self._call(stages, 0, detail)
        except asyncio.CancelledError as exc:
            primary = exc
            self._cancelled(detail)
            raise
        except ApiForgeError as exc:
            primary = exc
            logger.debug(
                "request.failed",
                extra={"path": self.resolved.path, "stage": detail.stage, "code": exc.code},
            )
            if config.on_error is not None:
                try:
                    await call_hook("on_error", config.on_error, exc)
                except HookError as hook_exc:
                    hook_exc.detail["original"] = exc.code
                    primary = hook_exc
                    raise
            raise
        finally:
            await self._settle(detail, primary)

    async def settle_cancelled(self, detail: PipeDetail, exc: asyncio.CancelledError) -> None:
        """Clean up a call cancelled before its first stage ran."""
        self._cancelled(detail)
        await self._settle(detail, exc)

    def _cancelled(self, detail: PipeDetail) -> None:
        logger.debug(
            "request.cancelled", extra={"path": self.resolved.path, "stage": detail.stage}
        )
        if not detail.dispatched:
            self._adapter.abort(detail)

    async def _settle(self, detail: PipeDetail, primary: BaseException | None) -> None:
        """Run ``on_finally``; its failure only surfaces when the call succeeded."""
        on_finally = self.resolved.config.on_finally
        if on_finally is None:
            return
        try:
            await call_hook("on_finally", on_finally)
        except HookError as hook_exc:
            if primary is None:
                raise
            logger.warning(
                "on_finally failed after %s: %s",
                type(primary).__name__,
                hook_exc.message,
                extra={"path": self.resolved.path, "stage": detail.stage, "code": hook_exc.code},
            )
            primary.add_note(f"on_finally also failed: {hook_exc.message}")

    async def _call(self, stages: list[tuple[str, Stage]], index: int, detail: PipeDetail) -> Any:
        if index == len(stages):
            return detail.result

        name, stage = stages[index]
        detail.stage = name
        logger.debug("stage.enter", extra={"path": self.resolved.path, "stage": name})

        async def call_next(next_detail: PipeDetail) -> Any:
            return await self._call(stages, index + 1, next_detail)

        try:
            return await stage(detail, call_next)
        except (ApiForgeError, asyncio.CancelledError):
            raise
        except Exception as exc:
            raise StageError(name, exc) from exc


async def _return_detail(detail: PipeDetail, call_next: NextStage) -> PipeDetail:
    return detail
