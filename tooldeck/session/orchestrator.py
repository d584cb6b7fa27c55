"""Multi-step session orchestrator.

Runs a list of prompts in order. Each step selects the functions to
advertise, asks the model, dispatches whatever tool calls come back and
hands its textual result to the next step as "The prior result was: ...".
Steps are strictly sequential; concurrency only happens inside a batch.
"""

import logging
from typing import Optional, Sequence

from ..config import EngineSettings
from ..errors import RecursionLimitExceeded, StepFailure
from ..providers.base import Embedder, ModelClient
from ..providers.response import ModelRequest, ModelResponse
from ..relevance.selector import SelectionRequest, SelectionResult, Selector
from ..tools.calls import ExecutionStrategy
from ..tools.catalog import Catalog
from ..tools.executor import Dispatcher
from ..tools.schema import FunctionKind
from ..tools.tokens import TokenCounter, count_messages, get_default_counter
from .logsink import LogSink
from .state import SessionResult, SessionState

_log = logging.getLogger(__name__)

PRIOR_RESULT_TEMPLATE = "The prior result was: {prior}. {prompt}"


def chain_prompt(prompt: str, prior: Optional[str]) -> str:
    """Prefix ``prompt`` with the previous step's result, when there is one."""
    if prior is None:
        return prompt
    return PRIOR_RESULT_TEMPLATE.format(prior=prior, prompt=prompt)


class SessionOrchestrator:
    """Drives prompts through selection, the model client and the dispatcher."""

    def __init__(
        self,
        catalog: Catalog,
        model_client: ModelClient,
        selector: Optional[Selector] = None,
        settings: Optional[EngineSettings] = None,
        embedder: Optional[Embedder] = None,
        dispatcher: Optional[Dispatcher] = None,
        log_sink: Optional[LogSink] = None,
        counter: Optional[TokenCounter] = None,
        required_names: Sequence[str] = (),
    ):
        self.catalog = catalog
        self.model_client = model_client
        self.selector = selector or Selector(catalog)
        self.settings = settings or EngineSettings()
        self.embedder = embedder
        self.dispatcher = dispatcher or Dispatcher(catalog)
        self.log_sink = log_sink
        self._counter = counter
        if required_names:
            self.required_names = frozenset(required_names)
        else:
            self.required_names = frozenset(
                d.name for d in catalog if d.kind is FunctionKind.MULTI_STEP
            )

    @property
    def counter(self) -> TokenCounter:
        if self._counter is None:
            self._counter = get_default_counter()
        return self._counter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_prompt(
        self,
        prompt: str,
        strategy: Optional[ExecutionStrategy] = None,
        required_names: Optional[Sequence[str]] = None,
    ) -> SessionResult:
        """Single free-form prompt, run as a one-step session."""
        return await self.run_steps([prompt], strategy, required_names)

    async def run_steps(
        self,
        prompts: Sequence[str],
        strategy: Optional[ExecutionStrategy] = None,
        required_names: Optional[Sequence[str]] = None,
    ) -> SessionResult:
        """Run ``prompts`` as one multi-step session.

        Raises:
            StepFailure: A step failed during selection, the model call or
                dispatch. Later steps are not attempted.
        """
        return await self._run_session(
            list(prompts),
            strategy or self.settings.strategy,
            self._required(required_names),
            depth=0,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _required(self, names: Optional[Sequence[str]]) -> frozenset:
        if names is None:
            return self.required_names
        return frozenset(names)

    def _log(self, message: str) -> None:
        if self.log_sink is not None:
            self.log_sink.send(message)

    async def _run_session(
        self,
        prompts: list[str],
        strategy: ExecutionStrategy,
        required: frozenset,
        depth: int,
    ) -> SessionResult:
        if depth >= self.settings.max_depth:
            raise RecursionLimitExceeded(depth + 1, self.settings.max_depth)

        state = SessionState(depth=depth)
        context = _NestedSession(self, required, depth, state)
        last: Optional[str] = None
        run = skipped = 0

        if len(prompts) > 1:
            self._log(f"Multi-step prompt list: {prompts}")

        for step, original in enumerate(prompts):
            prompt = original
            if step > 0:
                prior = await state.take_prior()
                if prior is None:
                    _log.info("Skipping step %d: no prior result", step + 1)
                    self._log(f"Step {step + 1} skipped: no prior result")
                    skipped += 1
                    continue
                prompt = chain_prompt(original, prior)

            self._log(f"Step {step + 1}: {prompt}")
            text = await self._run_step(step, prompt, strategy, required, state, context)
            await state.store_result(text)
            run += 1
            if text:
                last = text

        return SessionResult(
            text=last,
            collected_args=tuple(state.collected_args),
            errors=tuple(state.errors),
            steps_run=run,
            steps_skipped=skipped,
        )

    async def _run_step(
        self,
        step: int,
        prompt: str,
        strategy: ExecutionStrategy,
        required: frozenset,
        state: SessionState,
        context: "_NestedSession",
    ) -> Optional[str]:
        messages = self._messages(prompt)

        try:
            selection = await self._select(prompt, messages, required)
        except Exception as e:
            raise StepFailure(step, "selection", e, prompt) from e

        request = ModelRequest(
            messages=tuple(messages),
            functions=tuple(self.catalog.resolve(n) for n in selection.names),
            model=self.settings.model,
            max_response_tokens=self.settings.max_response_tokens,
            max_request_tokens=self.settings.max_request_tokens,
        )

        try:
            response = await self.model_client.complete(request)
        except Exception as e:
            raise StepFailure(step, "model", e, prompt) from e
        estimate = count_messages(self.counter, messages) + selection.token_cost
        self._check_usage(response, estimate)

        if not response.has_tool_calls:
            return response.text

        # Only the first batch of a top-level session may use dedicated threads.
        batch_strategy = strategy
        if state.depth > 0 or state.batches_dispatched > 0:
            batch_strategy = strategy.nested()
        state.batches_dispatched += 1

        try:
            batch = await self.dispatcher.dispatch(
                response.tool_calls, batch_strategy, context,
            )
        except Exception as e:
            raise StepFailure(step, "dispatch", e, prompt) from e

        for error in batch.errors:
            self._log(f"Call failed: {error}")
        state.errors.extend(batch.errors)
        state.collected_args.extend(batch.texts())
        return batch.combined_text()

    async def _select(
        self, prompt: str, messages: list[dict], required: frozenset,
    ) -> SelectionResult:
        embedding = None
        if self.selector.filtering and self.embedder is not None:
            embedding = await self.embedder.embed(prompt)
        return self.selector.select(
            SelectionRequest(embedding, self._token_budget(messages), required)
        )

    def _messages(self, prompt: str) -> list[dict]:
        messages = []
        if self.settings.system_message:
            messages.append({"role": "system", "content": self.settings.system_message})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _token_budget(self, messages: list[dict]) -> int:
        """Tokens left for function definitions in this request."""
        settings = self.settings
        room = (
            settings.max_request_tokens
            - settings.max_response_tokens
            - count_messages(self.counter, messages)
        )
        return min(settings.max_function_tokens, room)

    def _check_usage(self, response: ModelResponse, estimate: int) -> None:
        """Warn when the model counted more prompt tokens than were estimated."""
        if response.input_tokens and response.input_tokens > estimate:
            _log.warning(
                "Request used %d prompt tokens, above the %d token estimate",
                response.input_tokens, estimate,
            )


class _NestedSession:
    """SessionContext handed to the dispatcher for one session level."""

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        required: frozenset,
        depth: int,
        parent: SessionState,
    ):
        self._orchestrator = orchestrator
        self._required = required
        self._depth = depth
        self._parent = parent

    async def run_steps(
        self, prompts: Sequence[str], strategy: ExecutionStrategy,
    ) -> Optional[str]:
        result = await self._orchestrator._run_session(
            list(prompts), strategy, self._required, self._depth + 1,
        )
        # Nested failures surface on the top-level result.
        self._parent.errors.extend(result.errors)
        return result.text

    async def run_prompt(
        self, prompt: str, strategy: ExecutionStrategy,
    ) -> Optional[str]:
        return await self.run_steps([prompt], strategy)
