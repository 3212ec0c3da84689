"""inspireflow -- workflow execution engine for generative node graphs.

Runs a directed graph of generation, script, input and preview nodes in
dependency order, routes every generation request to the configured model
provider and waits for asynchronous video/3D tasks.

Usage:
    from inspireflow import WorkflowExecutor, Node, Edge, configure_logging, load_config

    settings = load_config()
    configure_logging(settings)
    executor = WorkflowExecutor(settings=settings)
    results = await executor.run(nodes, edges)
"""

from inspireflow.config import WorkflowSettings, load_config
from inspireflow.engine import RunCallbacks, WorkflowExecutor
from inspireflow.graph import Edge, ExecutionResult, Node
from inspireflow.utils.logging import configure_logging

__version__ = "0.4.0"

__all__ = [
    "Edge",
    "ExecutionResult",
    "Node",
    "RunCallbacks",
    "WorkflowExecutor",
    "WorkflowSettings",
    "__version__",
    "configure_logging",
    "load_config",
]
