"""Execute a batch of model-requested tool calls.

Every call is resolved against the catalog, decoded, and run under the
requested strategy. A failing call becomes a per-call error on its result
and never stops its siblings.
"""

import asyncio
import inspect
import logging
import threading
from typing import Any, Callable, Optional, Protocol, Sequence

from ..errors import PerCallFailure
from .calls import BatchResult, CallResult, ExecutionStrategy, ToolCall
from .catalog import Catalog
from .schema import FunctionDescriptor, FunctionKind

_log = logging.getLogger(__name__)

WORKER_PREFIX = "tooldeck-call"


class SessionContext(Protocol):
    """Re-entry point into the orchestrator for multi-step and free-form calls."""

    async def run_steps(
        self, prompts: Sequence[str], strategy: ExecutionStrategy,
    ) -> Optional[str]:
        ...

    async def run_prompt(
        self, prompt: str, strategy: ExecutionStrategy,
    ) -> Optional[str]:
        ...


class Dispatcher:
    """Run tool calls by name against a catalog."""

    def __init__(self, catalog: Catalog):
        self._catalog = catalog

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    async def dispatch(
        self,
        calls: Sequence[ToolCall],
        strategy: ExecutionStrategy = ExecutionStrategy.ASYNC,
        context: Optional[SessionContext] = None,
    ) -> BatchResult:
        """Execute one batch and return results in call order.

        Args:
            calls: Tool calls from a single model response.
            strategy: Execution strategy for this batch.
            context: Orchestrator hook used by multi-step and free-form calls.

        Returns:
            A BatchResult with one CallResult per call.
        """
        if not calls:
            return BatchResult(strategy=strategy)

        _log.debug("Dispatching %d call(s) with %s strategy", len(calls), strategy.value)

        if strategy is ExecutionStrategy.SYNC:
            results = []
            for call in calls:
                results.append(await self._execute(call, strategy, context))
            return BatchResult(tuple(results), strategy)

        if strategy is ExecutionStrategy.THREAD:
            futures = []
            workers = []
            for call in calls:
                future, name = self._spawn_worker(call, context)
                futures.append(future)
                workers.append(name)
            results = await asyncio.gather(*futures)
            return BatchResult(tuple(results), strategy, tuple(workers))

        results = await asyncio.gather(
            *(self._execute(call, strategy, context) for call in calls)
        )
        return BatchResult(tuple(results), strategy)

    def _spawn_worker(
        self, call: ToolCall, context: Optional[SessionContext],
    ) -> tuple["asyncio.Future[CallResult]", str]:
        """Run one call on its own thread with its own event loop."""
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[CallResult]" = loop.create_future()
        name = f"{WORKER_PREFIX}-{call.call_id}"

        def _resolve(result: CallResult) -> None:
            if not future.done():
                future.set_result(result)

        def _fail(exc: BaseException) -> None:
            if not future.done():
                future.set_exception(exc)

        def _hand_off(callback: Callable[[Any], None], value: Any) -> None:
            try:
                loop.call_soon_threadsafe(callback, value)
            except RuntimeError:
                # Owner loop already closed; nobody is waiting for this call.
                _log.debug("Dropped result of call %s: event loop closed", call.call_id)

        def target() -> None:
            try:
                result = asyncio.run(
                    self._execute(call, ExecutionStrategy.THREAD, context)
                )
            except BaseException as e:
                _hand_off(_fail, e)
            else:
                _hand_off(_resolve, result)

        threading.Thread(target=target, name=name, daemon=True).start()
        return future, name

    async def _execute(
        self,
        call: ToolCall,
        strategy: ExecutionStrategy,
        context: Optional[SessionContext],
    ) -> CallResult:
        try:
            descriptor = self._catalog.resolve(call.function_name)
            kwargs = descriptor.decode(call.arguments)
            value = await self._invoke(descriptor, kwargs, strategy, context)
        except Exception as e:
            _log.info("Call %s (%s) failed: %s", call.call_id, call.function_name, e)
            return CallResult(
                call.call_id,
                call.function_name,
                error=PerCallFailure(call.call_id, call.function_name, e),
            )
        return CallResult(call.call_id, call.function_name, value=value)

    async def _invoke(
        self,
        descriptor: FunctionDescriptor,
        kwargs: dict[str, Any],
        strategy: ExecutionStrategy,
        context: Optional[SessionContext],
    ) -> Any:
        if descriptor.kind is FunctionKind.STRUCTURED:
            if descriptor.handler is None:
                raise RuntimeError(f"Function {descriptor.name} has no handler")
            result = descriptor.handler(**kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

        if context is None:
            raise RuntimeError(
                f"Function {descriptor.name} needs a session to run in"
            )
        # Nested sessions never get dedicated workers of their own.
        nested = strategy.nested()
        if descriptor.kind is FunctionKind.MULTI_STEP:
            return await context.run_steps(kwargs["prompt_list"], nested)
        return await context.run_prompt(kwargs["prompt"], nested)
