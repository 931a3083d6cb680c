"""Execution layer — pipe chain, strategy registry, request executor.

The pipeline may import from the domain layer. It must never import from
services, commands, or output.
"""

from apiforge.pipeline.chain import PipeChain, StageExtension
from apiforge.pipeline.client import ApiClient
from apiforge.pipeline.detail import PipeDetail, RequestContext, RequestDetail
from apiforge.pipeline.executor import RequestExecutor
from apiforge.pipeline.strategies import StrategyAdapter, StrategyRegistry

__all__ = [
    "ApiClient",
    "PipeChain",
    "PipeDetail",
    "RequestContext",
    "RequestDetail",
    "RequestExecutor",
    "StageExtension",
    "StrategyAdapter",
    "StrategyRegistry",
]
