"""Orchestration: on-demand scoring runs."""

from orchestration.runner import run_scoring, run_scoring_from_files

__all__ = ["run_scoring", "run_scoring_from_files"]
