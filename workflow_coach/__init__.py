"""Workflow Coach: statistics-driven node recommendations for workflow editors."""
