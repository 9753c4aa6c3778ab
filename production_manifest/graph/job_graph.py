"""
Job Graph

NetworkX view of a manifest's job list. Edges point from a dependency to
the job that waits on it, so topological generations are the batches an
external scheduler may run concurrently.

Verification is separate from decomposition: ``find_graph_violations`` is
pure and works on raw job dictionaries, including malformed ones.
"""

from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence, Set

import networkx as nx

from production_manifest.core.exceptions import GraphIntegrityViolation, JobNotFoundError
from production_manifest.core.logging_config import get_logger

logger = get_logger("graph.jobs")


def _job_id(job: Any) -> Any:
    return job.get("id") if isinstance(job, Mapping) else None


def _depends_on(job: Any) -> List[Any]:
    deps = job.get("dependsOn") if isinstance(job, Mapping) else None
    return list(deps) if isinstance(deps, (list, tuple)) else []


def _build_digraph(jobs: Sequence[Any]) -> nx.DiGraph:
    graph = nx.DiGraph()
    for job in jobs:
        job_id = _job_id(job)
        if isinstance(job_id, str):
            graph.add_node(job_id, priority=job.get("priority", 0), type=job.get("type"))
    for job in jobs:
        job_id = _job_id(job)
        if not isinstance(job_id, str):
            continue
        for dep in _depends_on(job):
            if isinstance(dep, str) and dep in graph:
                graph.add_edge(dep, job_id)
    return graph


def find_graph_violations(jobs: Sequence[Any]) -> List[str]:
    """
    Report every integrity problem in a job list.

    Args:
        jobs: Job dictionaries as found in a manifest

    Returns:
        Human-readable violations; empty when the graph is a valid DAG
    """
    if not isinstance(jobs, (list, tuple)):
        return []

    violations: List[str] = []
    ids = [_job_id(job) for job in jobs if isinstance(_job_id(job), str)]
    known: Set[str] = set(ids)

    for job_id, count in sorted(Counter(ids).items()):
        if count > 1:
            violations.append(f"Duplicate job id '{job_id}' appears {count} times")

    for job in jobs:
        job_id = _job_id(job)
        if not isinstance(job_id, str):
            continue
        for dep in _depends_on(job):
            if not isinstance(dep, str):
                violations.append(f"Job '{job_id}' has a non-string dependency")
            elif dep == job_id:
                violations.append(f"Job '{job_id}' depends on itself")
            elif dep not in known:
                violations.append(f"Job '{job_id}' depends on unknown job '{dep}'")

    graph = _build_digraph(jobs)
    if not nx.is_directed_acyclic_graph(graph):
        for cycle in nx.simple_cycles(graph):
            if len(cycle) > 1:
                path = list(cycle) + [cycle[0]]
                violations.append(f"Cyclic dependency detected: {' -> '.join(path)}")

    return violations


def verify_job_graph(jobs: Sequence[Any]) -> None:
    """
    Raise if the job list is not a DAG over existing, unique ids.

    Raises:
        GraphIntegrityViolation: With every violation found
    """
    violations = find_graph_violations(jobs)
    if violations:
        logger.error(f"Job graph integrity violated: {len(violations)} problem(s)")
        raise GraphIntegrityViolation(violations)


class JobGraph:
    """
    Read-only dependency graph over a verified job list.

    Features:
    - Upstream/downstream lookups
    - Concurrency batches from topological generations
    - Priority-aware serial execution order
    """

    def __init__(self, jobs: Sequence[Dict[str, Any]]):
        verify_job_graph(jobs)
        self._jobs = {job["id"]: job for job in jobs}
        self._graph = _build_digraph(jobs)

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._graph

    def _require(self, job_id: str) -> None:
        if job_id not in self._graph:
            raise JobNotFoundError(job_id)

    def dependencies_of(self, job_id: str) -> List[str]:
        """Jobs that must finish before this one (upstream)."""
        self._require(job_id)
        return sorted(self._graph.predecessors(job_id))

    def dependents_of(self, job_id: str) -> List[str]:
        """Jobs waiting directly on this one (downstream)."""
        self._require(job_id)
        return sorted(self._graph.successors(job_id))

    def all_downstream(self, job_id: str) -> Set[str]:
        """Every job that transitively waits on this one."""
        self._require(job_id)
        return set(nx.descendants(self._graph, job_id))

    def execution_batches(self) -> List[List[str]]:
        """Groups of jobs with no dependency between them, in legal order."""
        return [sorted(batch) for batch in nx.topological_generations(self._graph)]

    def execution_order(self) -> List[str]:
        """A single legal order; lower priority numbers first, then id."""
        return list(nx.lexicographical_topological_sort(
            self._graph,
            key=lambda job_id: (self._jobs[job_id].get("priority", 0), job_id)
        ))

    def can_run_concurrently(self, first: str, second: str) -> bool:
        """True when neither job transitively depends on the other."""
        self._require(first)
        self._require(second)
        return not (nx.has_path(self._graph, first, second) or nx.has_path(self._graph, second, first))
