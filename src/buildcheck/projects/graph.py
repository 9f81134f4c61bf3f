"""
Project Reference Graph

Directed graph of project -> referenced project edges using NetworkX, used for
circular-reference detection and build ordering.
"""

from __future__ import annotations

from pathlib import Path

import networkx as nx

from .msbuild import ProjectFile


def format_cycle(cycle: list[str]) -> str:
    """Render a closed cycle path: ``A -> B -> A``."""
    return " -> ".join([*cycle, cycle[0]])


class ProjectGraph:
    """
    Project reference graph.

    Nodes are project paths; an edge A -> B means A references B, so B must be
    built before A.
    """

    def __init__(self) -> None:
        self.graph: nx.DiGraph = nx.DiGraph()
        self.projects: dict[Path, ProjectFile] = {}
        self._missing: list[tuple[ProjectFile, str]] = []

    @classmethod
    def from_projects(cls, projects: list[ProjectFile]) -> ProjectGraph:
        graph = cls()
        for project in projects:
            graph.add_project(project)
        for project in projects:
            for include in project.project_references:
                graph.add_reference(project, include)
        return graph

    def add_project(self, project: ProjectFile) -> None:
        if project.path in self.projects:
            raise ValueError(f"Project {project.path} already exists in graph")
        self.projects[project.path] = project
        self.graph.add_node(project.path, name=project.name)

    def add_reference(self, project: ProjectFile, include: str) -> None:
        """Add an edge for a ProjectReference, recording it if the target is unknown."""
        if project.path not in self.projects:
            raise ValueError(f"Source project {project.path} not in graph")
        target = project.reference_path(include)
        if target not in self.projects:
            if not target.exists():
                self._missing.append((project, include))
                return
            # Referenced project exists but was excluded from discovery.
            self.graph.add_node(target, name=target.stem)
        self.graph.add_edge(project.path, target)

    def name_of(self, node: Path) -> str:
        return self.graph.nodes[node].get("name", node.stem)

    def missing_references(self) -> list[tuple[ProjectFile, str]]:
        """(project, Include) pairs whose target file does not exist"""
        return list(self._missing)

    def detect_cycles(self) -> list[list[str]]:
        """
        Each distinct reference cycle once, as project names.

        NetworkX yields cycles in no guaranteed rotation or order; each one is
        rotated to start at its smallest name and the list is sorted.
        """
        cycles = []
        for cycle in nx.simple_cycles(self.graph):
            names = [self.name_of(node) for node in cycle]
            pivot = names.index(min(names))
            cycles.append(names[pivot:] + names[:pivot])
        return sorted(cycles)

    def has_cycles(self) -> bool:
        return not nx.is_directed_acyclic_graph(self.graph)

    def build_order(self) -> list[ProjectFile]:
        """
        Projects ordered so every reference is built before its dependents.

        A cyclic graph has no valid order; discovery order is returned instead
        and the cycle is reported by the reference phase.
        """
        if self.has_cycles():
            return list(self.projects.values())
        ordered = reversed(list(nx.lexicographical_topological_sort(self.graph, key=str)))
        return [self.projects[node] for node in ordered if node in self.projects]
