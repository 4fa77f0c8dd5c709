"""Traversal engine: frames, scope index, pattern matcher, cursor and walk."""

from treecheck.engine.cursor import Cursor
from treecheck.engine.frames import Frame, FrameKind, frame_kind_for
from treecheck.engine.scope import Namespace, ScopeIndex, Symbol, SymbolKind, reference_namespace
from treecheck.engine.sink import CallbackSink, CollectingSink, DiagnosticSink
from treecheck.engine.suppression import SuppressionIndex, SuppressionOptions
from treecheck.engine.traversal import TraversalEngine, TraversalResult

__all__ = [
    "Cursor",
    "Frame",
    "FrameKind",
    "frame_kind_for",
    "Namespace",
    "ScopeIndex",
    "Symbol",
    "SymbolKind",
    "reference_namespace",
    "CallbackSink",
    "CollectingSink",
    "DiagnosticSink",
    "SuppressionIndex",
    "SuppressionOptions",
    "TraversalEngine",
    "TraversalResult",
]
