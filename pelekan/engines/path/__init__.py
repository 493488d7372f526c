"""
Path Engine - stage/day tree to zig-zag node list.

Node kinds:
- results: qualifying-assessment outcome, always first
- header / spacer: stage boundaries
- day: one per program day, tagged enterable / previewable / available / locked
"""

from pelekan.engines.path.classifier import (
    AccessClass,
    EnterDay,
    NodeKind,
    OpenResults,
    PathClassifier,
    PathNode,
    PreviewDay,
    Zig,
    active_index,
    results_node_done,
    tap,
)

__all__ = [
    "AccessClass",
    "EnterDay",
    "NodeKind",
    "OpenResults",
    "PathClassifier",
    "PathNode",
    "PreviewDay",
    "Zig",
    "active_index",
    "results_node_done",
    "tap",
]
