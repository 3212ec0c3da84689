"""Workflow graph model and the pure steps run before a node executes.

  - Node/Edge data model and per-kind handle schemas
  - Topological scheduling with cycle detection
  - Type normalization of port values
  - Input resolution from upstream outputs
  - Required-field validation and typed node settings
"""

from inspireflow.graph.types import (
    DEFAULT_SLOT,
    NODE_HANDLE_SCHEMAS,
    OUTPUT_KEY,
    OUTPUTS_KEY,
    Edge,
    ExecutionContext,
    ExecutionResult,
    HandleDef,
    HandleType,
    Node,
    NodeHandleSchema,
    NodeKind,
    get_handle_type,
    get_node_schema,
    is_compatible_handle_type,
)
from inspireflow.graph.normalize import (
    normalize,
    normalize_to_3d,
    normalize_to_image,
    normalize_to_text,
    normalize_to_video,
)
from inspireflow.graph.resolver import build_output_map, merge_values, resolve_inputs
from inspireflow.graph.scheduler import find_cycle_members, topological_sort, upstream_ids
from inspireflow.graph.validation import MissingField, format_missing_required, validate_node_required
from inspireflow.graph.configs import parse_node_config

__all__ = [
    "DEFAULT_SLOT",
    "NODE_HANDLE_SCHEMAS",
    "OUTPUT_KEY",
    "OUTPUTS_KEY",
    "Edge",
    "ExecutionContext",
    "ExecutionResult",
    "HandleDef",
    "HandleType",
    "MissingField",
    "Node",
    "NodeHandleSchema",
    "NodeKind",
    "build_output_map",
    "find_cycle_members",
    "format_missing_required",
    "get_handle_type",
    "get_node_schema",
    "is_compatible_handle_type",
    "merge_values",
    "normalize",
    "normalize_to_3d",
    "normalize_to_image",
    "normalize_to_text",
    "normalize_to_video",
    "parse_node_config",
    "resolve_inputs",
    "topological_sort",
    "upstream_ids",
    "validate_node_required",
]
