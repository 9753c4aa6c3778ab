"""
Job dependency graph verification and scheduling views.
"""

from .job_graph import JobGraph, find_graph_violations, verify_job_graph

__all__ = [
    'JobGraph',
    'find_graph_violations',
    'verify_job_graph',
]
