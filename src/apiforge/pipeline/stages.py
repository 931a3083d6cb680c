"""The fixed pipe stages: PreHook -> Build -> Dispatch -> SuccessHook -> Project.

A stage is ``async (detail, call_next) -> result``. It forwards by awaiting
``call_next(detail)`` or short-circuits by returning (or raising) without
calling it.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from apiforge.domain.dto import project
from apiforge.domain.errors import ApiForgeError, HookError, TransportError
from apiforge.domain.payload import assemble
from apiforge.domain.types import Location, StageName
from apiforge.pipeline.detail import PipeDetail, RequestContext
from apiforge.pipeline.strategies import StrategyAdapter, SuccessHook

NextStage = Callable[[PipeDetail], Awaitable[Any]]
Stage = Callable[[PipeDetail, NextStage], Awaitable[Any]]


async def call_hook(name: str, hook: Callable[..., Any], *args: Any) -> Any:
    """Invoke a sync or async hook and await it.

    Raises:
        HookError: Wrapping anything the hook raised.
    """
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            result = await result
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        raise HookError(name, exc) from exc
    return result


async def pre_hook_stage(detail: PipeDetail, call_next: NextStage) -> Any:
    resolved = detail.endpoint
    hook = resolved.config.on_before_request
    if hook is not None:
        context = RequestContext(
            path=resolved.path,
            method=resolved.method.value,
            url_template=resolved.url_template,
            strategy=detail.strategy,
        )
        detail.hook_results["on_before_request"] = await call_hook(
            "on_before_request", hook, context, detail.payload
        )
    return await call_next(detail)


async def build_stage(detail: PipeDetail, call_next: NextStage) -> Any:
    resolved = detail.endpoint
    payload_def = resolved.endpoint.payload_def
    assembled = assemble(payload_def, detail.payload, validate_rules=resolved.config.validation)

    detail.method = resolved.method.value
    detail.url = resolved.render_url(assembled.path_values)
    detail.query = assembled.query
    detail.headers = {**resolved.config.headers, **assembled.headers}
    has_body = any(f.location is Location.BODY for f in payload_def.fields)
    detail.body = assembled.body if has_body else None
    detail.timeout = resolved.config.timeout
    return await call_next(detail)


def make_dispatch_stage(adapter: StrategyAdapter) -> Stage:
    async def dispatch_stage(detail: PipeDetail, call_next: NextStage) -> Any:
        try:
            raw = await adapter.dispatch(detail)
        except ApiForgeError:
            raise
        except Exception as exc:
            raise TransportError(
                str(exc) or type(exc).__name__,
                strategy=detail.strategy,
                detail={"cause": type(exc).__name__},
            ) from exc
        detail.dispatched = True
        detail.raw_result = raw
        detail.result = raw
        return await call_next(detail)

    return dispatch_stage


def make_success_hook_stage(default_hook: SuccessHook) -> Stage:
    async def success_hook_stage(detail: PipeDetail, call_next: NextStage) -> Any:
        hook = detail.endpoint.config.on_success or default_hook
        detail.result = await call_hook("on_success", hook, detail.raw_result)
        detail.hook_results["on_success"] = detail.result
        return await call_next(detail)

    return success_hook_stage


async def project_stage(detail: PipeDetail, call_next: NextStage) -> Any:
    detail.result = project(detail.result, detail.endpoint.endpoint.dto)
    return await call_next(detail)


def fixed_stages(adapter: StrategyAdapter, default_hook: SuccessHook) -> dict[StageName, Stage]:
    """The five fixed stages bound to one strategy adapter."""
    return {
        StageName.PRE_HOOK: pre_hook_stage,
        StageName.BUILD: build_stage,
        StageName.DISPATCH: make_dispatch_stage(adapter),
        StageName.SUCCESS_HOOK: make_success_hook_stage(default_hook),
        StageName.PROJECT: project_stage,
    }
