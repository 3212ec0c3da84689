"""Node dispatch, script execution and the run loop."""

from inspireflow.engine.dispatcher import (
    DEFAULT_REGISTRY,
    HandlerRegistry,
    LocalValue,
    NodeDispatcher,
    ScriptRequest,
    register_handler,
)
from inspireflow.engine.orchestrator import OutputSink, RunCallbacks, WorkflowExecutor
from inspireflow.engine.script_runner import ScriptRunner

__all__ = [
    "DEFAULT_REGISTRY",
    "HandlerRegistry",
    "LocalValue",
    "NodeDispatcher",
    "OutputSink",
    "RunCallbacks",
    "ScriptRequest",
    "ScriptRunner",
    "WorkflowExecutor",
    "register_handler",
]
