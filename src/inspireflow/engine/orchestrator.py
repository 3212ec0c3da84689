"""Execution Orchestrator: runs a workflow graph node by node.

Flow per node:

  1. Resolve inputs from the run's ExecutionContext
  2. Skipped nodes pass their current value through, nothing else happens
  3. Validate required fields
  4. Dispatch to an action and perform it (gateway, script runner, local value)
  5. Write the output to the node, the context and the output sink

Execution is sequential in topological order. A failing node is recorded and
the run continues with the next one; downstream nodes then fall back to
whatever its property bag still holds. Cancellation is checked between nodes and at every poll.
"""

from __future__ import annotations

import inspect
import time
import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from inspireflow.config import SettingsConfigProvider, WorkflowSettings
from inspireflow.core.errors import ValidationError, WorkflowError
from inspireflow.engine.dispatcher import LocalValue, NodeDispatcher, ScriptRequest
from inspireflow.engine.script_runner import ScriptRunner
from inspireflow.graph.normalize import extract_from_node, is_empty, normalize
from inspireflow.graph.resolver import build_output_map, resolve_inputs
from inspireflow.graph.scheduler import topological_sort
from inspireflow.graph.types import (
    OUTPUT_KEY,
    OUTPUTS_KEY,
    Edge,
    ExecutionContext,
    ExecutionResult,
    HandleType,
    Node,
    get_node_schema,
)
from inspireflow.graph.validation import format_missing_required, validate_node_required
from inspireflow.providers.base import GenerationRequest
from inspireflow.providers.gateway import ConfigProvider, ProviderGateway
from inspireflow.providers.tasks import AsyncTaskPoller
from inspireflow.utils.logging import bind_context, get_logger, unbind_context

log = get_logger(__name__)

STOPPED_MESSAGE = "Execution stopped"

# Inputs checked, in order, for the pass-through value of a skipped node
_PASSTHROUGH_KEYS = ("text", "image", "video", "model")


# ============================================================================
# Host interfaces
# ============================================================================


class OutputSink(Protocol):
    """Persists generated outputs (e.g. to disk). Returns the saved location."""

    def on_node_output(self, node: Node, value: str) -> str | None | Awaitable[str | None]: ...


@dataclass
class RunCallbacks:
    """Optional hooks into a run. All synchronous."""

    on_progress: Callable[[int, int], None] | None = None
    on_node_start: Callable[[str], None] | None = None
    on_node_complete: Callable[[str, bool], None] | None = None
    should_stop: Callable[[], bool] | None = None

    def stop_requested(self) -> bool:
        return self.should_stop is not None and bool(self.should_stop())

    def progress(self, current: int, total: int) -> None:
        if self.on_progress is not None:
            self.on_progress(current, total)

    def node_started(self, node_id: str) -> None:
        if self.on_node_start is not None:
            self.on_node_start(node_id)

    def node_completed(self, node_id: str, success: bool) -> None:
        if self.on_node_complete is not None:
            self.on_node_complete(node_id, success)


def canonical_output(node: Node, output: Any) -> str | None:
    """Single value handed to the output sink, by the node's output type."""
    schema = get_node_schema(node.type)
    if schema is None or not schema.outputs:
        return None
    handle_type = schema.outputs[0].type
    if handle_type == HandleType.ANY:
        return None
    value = normalize(output, handle_type)
    if isinstance(value, list):
        value = value[0] if value else None
    if is_empty(value):
        return None
    return str(value)


# ============================================================================
# Executor
# ============================================================================


class WorkflowExecutor:
    """Runs graphs or single nodes against the configured providers.

    Args:
        config_provider: Provider config lookup. Defaults to the settings.
        output_sink: Receives the canonical value of every generating node.
        dispatcher: Node kind -> action. Defaults to the built-in handlers.
        gateway: Provider gateway. Built from ``config_provider`` if omitted.
        script_runner: Runner for script nodes.
        poller: Poller handed to the default gateway.
        settings: Engine settings (timeouts, polling, scripts).
    """

    def __init__(
        self,
        config_provider: ConfigProvider | None = None,
        *,
        output_sink: OutputSink | None = None,
        dispatcher: NodeDispatcher | None = None,
        gateway: ProviderGateway | None = None,
        script_runner: ScriptRunner | None = None,
        poller: AsyncTaskPoller | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._settings = settings or WorkflowSettings()
        if config_provider is None:
            config_provider = SettingsConfigProvider(self._settings)
        self._gateway = gateway or ProviderGateway(
            config_provider,
            poller=poller,
            polling=self._settings.polling,
            timeout=self._settings.http.to_timeout(),
        )
        self._dispatcher = dispatcher or NodeDispatcher()
        self._scripts = script_runner or ScriptRunner(self._settings.scripts)
        self._sink = output_sink

    # ── Public API ───────────────────────────────────────────────

    async def run(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        callbacks: RunCallbacks | None = None,
    ) -> list[ExecutionResult]:
        """Execute the whole graph in topological order.

        Raises:
            CycleError: The graph has a cycle. No node runs.
        """
        callbacks = callbacks or RunCallbacks()
        nodes = list(nodes)
        edges = list(edges)
        order = topological_sort(nodes, edges)
        nodes_by_id = {n.id: n for n in nodes}
        context = ExecutionContext()
        results: list[ExecutionResult] = []
        total = len(order)

        bind_context(run_id=uuid.uuid4().hex[:12])
        log.info("workflow_run_start", nodes=total, edges=len(edges))
        try:
            for index, node in enumerate(order, start=1):
                callbacks.progress(index, total)
                if callbacks.stop_requested():
                    log.info("workflow_run_stopped", completed=len(results), total=total)
                    break
                callbacks.node_started(node.id)
                result = await self._execute(node, nodes_by_id, edges, context, callbacks.should_stop)
                results.append(result)
                callbacks.node_completed(node.id, result.success)

            log.info(
                "workflow_run_done",
                executed=len(results),
                failed=sum(1 for r in results if not r.success),
                skipped=sum(1 for r in results if r.skipped),
            )
        finally:
            unbind_context("run_id")
        return results

    async def run_one(
        self,
        node: Node,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        callbacks: RunCallbacks | None = None,
    ) -> ExecutionResult:
        """Execute a single node with inputs read from its upstream nodes' data."""
        callbacks = callbacks or RunCallbacks()
        if callbacks.stop_requested():
            return ExecutionResult.failed(node.id, STOPPED_MESSAGE)

        nodes_by_id = {n.id: n for n in nodes}
        nodes_by_id.setdefault(node.id, node)
        callbacks.node_started(node.id)
        result = await self._execute(node, nodes_by_id, list(edges), None, callbacks.should_stop)
        callbacks.node_completed(node.id, result.success)
        return result

    # ── Per node ─────────────────────────────────────────────────

    async def _execute(
        self,
        node: Node,
        nodes_by_id: dict[str, Node],
        edges: list[Edge],
        context: ExecutionContext | None,
        should_stop: Callable[[], bool] | None,
    ) -> ExecutionResult:
        start = time.monotonic()
        log.debug("node_start", node_id=node.id, node_type=node.type, skip=node.skip)
        try:
            inputs = resolve_inputs(node, nodes_by_id, edges, context)

            if node.skip:
                output = self._passthrough(node, inputs)
                output_map = build_output_map(node.type, output)
                if context is not None:
                    context.record(node.id, output, output_map)
                log.info("node_skipped", node_id=node.id)
                return ExecutionResult(
                    node_id=node.id,
                    success=True,
                    output=output,
                    outputs=output_map,
                    skipped=True,
                    duration_ms=_elapsed_ms(start),
                )

            self._validate(node, edges)
            output = await self._perform(node, inputs, should_stop)
            output_map = build_output_map(node.type, output)

            node.data[OUTPUT_KEY] = output
            node.data[OUTPUTS_KEY] = output_map
            if context is not None:
                context.record(node.id, output, output_map)
            await self._save_output(node, output)

        except WorkflowError as exc:
            log.warning("node_failed", node_id=node.id, node_type=node.type, error_code=exc.error_code, error=str(exc))
            return ExecutionResult.failed(node.id, str(exc), _elapsed_ms(start))
        except Exception as exc:
            log.exception("node_crashed", node_id=node.id, node_type=node.type)
            return ExecutionResult.failed(node.id, str(exc) or type(exc).__name__, _elapsed_ms(start))

        duration = _elapsed_ms(start)
        log.info("node_completed", node_id=node.id, node_type=node.type, duration_ms=duration)
        return ExecutionResult(
            node_id=node.id,
            success=True,
            output=output,
            outputs=output_map,
            duration_ms=duration,
        )

    @staticmethod
    def _validate(node: Node, edges: list[Edge]) -> None:
        missing = validate_node_required(node, edges)
        if missing:
            raise ValidationError(
                f"Node '{node.label}' is missing required fields: "
                f"{format_missing_required(missing)}. Provide the values before running.",
                missing=[m.key for m in missing],
                details={"node_id": node.id},
            )

    async def _perform(
        self,
        node: Node,
        inputs: dict[str, Any],
        should_stop: Callable[[], bool] | None,
    ) -> Any:
        action = self._dispatcher.dispatch(node, inputs)
        match action:
            case GenerationRequest():
                return await self._gateway.execute(action, should_stop=should_stop)
            case ScriptRequest():
                return await self._scripts.run(action)
            case LocalValue():
                return action.value
        raise WorkflowError(f"Node '{node.label}' produced no action", details={"node_id": node.id})

    @staticmethod
    def _passthrough(node: Node, inputs: dict[str, Any]) -> Any:
        if not is_empty(node.data.get(OUTPUT_KEY)):
            return node.data[OUTPUT_KEY]
        for key in _PASSTHROUGH_KEYS:
            if not is_empty(inputs.get(key)):
                return inputs[key]
        schema = get_node_schema(node.type)
        if schema is not None and schema.outputs:
            return extract_from_node(node.data, schema.outputs[0].type)
        return None

    async def _save_output(self, node: Node, output: Any) -> None:
        kind = node.kind
        if self._sink is None or kind is None or kind.is_input or kind.is_preview:
            return
        value = canonical_output(node, output)
        if value is None:
            return
        try:
            saved = self._sink.on_node_output(node, value)
            if inspect.isawaitable(saved):
                saved = await saved
        except Exception:
            log.exception("output_sink_failed", node_id=node.id)
            return
        if saved:
            log.debug("node_output_saved", node_id=node.id, location=saved)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
