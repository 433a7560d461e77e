"""
Taskboard: a single-user todo tracker.

The package holds the FastAPI resource API (`taskboard.main:app`), the
storage repositories behind it, the HTTP client facade (`taskboard.client`)
and the optimistic board used by presentation code (`taskboard.board`).
"""

__version__ = "0.1.0"
