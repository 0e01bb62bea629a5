"""Workflow graph model."""

from .graph import BOUNDARY, WorkflowGraph

__all__ = ["BOUNDARY", "WorkflowGraph"]
