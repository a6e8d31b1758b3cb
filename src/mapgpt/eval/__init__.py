"""Evaluation utilities."""

from .cli import main, run_evaluation

__all__ = ["main", "run_evaluation"]
