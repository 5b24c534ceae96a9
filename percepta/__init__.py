"""Percepta - Multi-model Image Analysis Orchestration.

This package coordinates a short chain of independently-failing analysis
models to produce one combined result for an input artifact:
- Model contract (capabilities, lifecycle, error taxonomy)
- Model registry (capability lookup, fallback chains)
- Pipeline engine (sequential steps, fallback substitution, progress events)
"""

__version__ = "0.1.0"
