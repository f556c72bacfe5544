"""Prerequisite graph over canonical course codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

# Hand-curated CS curriculum: course code -> direct prerequisites.
DEFAULT_CS_PREREQUISITES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "CS35": (),
        "CS51": (),
        "CS54": ("CS51",),
        "CS62": ("CS51",),
        "CS101": ("CS54", "CS62"),
        "CS105": ("CS54", "CS62"),
        "CS140": ("CS54", "CS62"),
        "CS122": ("CS62",),
        "CS124": ("CS51",),
        "CS131": ("CS62",),
        "CS132": ("CS105", "CS101"),
        "CS133": ("CS62",),
        "CS138": ("CS105",),
        "CS143": ("CS62",),
        "CS145": ("CS140",),
        "CS151": ("CS62",),
        "CS152": ("CS62",),
        "CS153": ("CS62",),
        "CS158": ("CS62",),
        "CS159": ("CS62",),
        "CS181AA": ("CS140",),
        "CS181CA": ("CS105",),
        "CS181DA": ("CS62",),
        "CS181AV": ("CS62",),
    }
)

VALIDATION_ERROR = "Error validating prerequisites"


@dataclass(frozen=True)
class PrerequisiteValidation:
    """Outcome of checking a student's record against a course's prerequisites.

    Attributes
    ----------
    eligible : bool
        ``True`` when every transitive prerequisite has been completed.
    missing : frozenset[str]
        Prerequisites the student still lacks. For a failed evaluation this
        holds a single placeholder entry.
    message : str
        Human-readable summary.
    """

    eligible: bool
    missing: frozenset[str] = field(default_factory=frozenset)
    message: str = ""

    @property
    def missing_sorted(self) -> list[str]:
        return sorted(self.missing)

    @property
    def failed(self) -> bool:
        """``True`` when the check itself errored rather than finding gaps."""
        return VALIDATION_ERROR in self.missing


class PrerequisiteGraph:
    """Directed graph mapping each course to its direct prerequisites.

    The graph is intended to be acyclic. :meth:`has_cycle` is available as a
    diagnostic but is not enforced when edges are added.
    """

    def __init__(self, edges: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        self._graph: dict[str, set[str]] = {}
        if edges:
            for course, prerequisites in edges.items():
                self.add_course(course)
                for prerequisite in prerequisites:
                    self.add_prerequisite(course, prerequisite)

    @classmethod
    def from_mapping(cls, edges: Mapping[str, Iterable[str]]) -> "PrerequisiteGraph":
        return cls(edges)

    def __contains__(self, course_code: object) -> bool:
        return course_code in self._graph

    def __iter__(self) -> Iterator[str]:
        return iter(self._graph)

    def __len__(self) -> int:
        return len(self._graph)

    def courses(self) -> set[str]:
        return set(self._graph)

    def add_course(self, course_code: str) -> None:
        """Register ``course_code`` as a node if it is not known yet."""
        self._graph.setdefault(course_code, set())

    def add_prerequisite(self, course_code: str, prerequisite: str) -> None:
        """Record that ``course_code`` requires ``prerequisite``.

        Both nodes are registered; adding an existing edge is a no-op.
        """
        self.add_course(course_code)
        self.add_course(prerequisite)
        self._graph[course_code].add(prerequisite)

    def get_direct_prerequisites(self, course_code: str) -> set[str]:
        """Return a copy of the direct prerequisites (empty for unknown codes)."""
        return set(self._graph.get(course_code, ()))

    def has_prerequisites(self, course_code: str) -> bool:
        return bool(self._graph.get(course_code))

    def get_all_prerequisites(self, course_code: str) -> set[str]:
        """Return the transitive closure of prerequisites for ``course_code``.

        The traversal is a depth-first search that keeps a visited set, so it
        terminates even if the graph contains a cycle. In that case the result
        is still finite but may include ``course_code`` itself.
        """
        closure: set[str] = set()
        visited: set[str] = set()
        self._collect(course_code, closure, visited)
        return closure

    def _collect(self, course_code: str, closure: set[str], visited: set[str]) -> None:
        if course_code in visited:
            return
        visited.add(course_code)
        for prerequisite in self._graph.get(course_code, ()):
            closure.add(prerequisite)
            self._collect(prerequisite, closure, visited)

    def missing_prerequisites(
        self, course_code: str, completed: Iterable[str]
    ) -> set[str]:
        """Return the transitive prerequisites absent from ``completed``."""
        return self.get_all_prerequisites(course_code) - set(completed)

    def has_cycle(self) -> bool:
        """Return ``True`` if any prerequisite chain loops back on itself."""
        return self.find_cycle() is not None

    def find_cycle(self) -> Optional[list[str]]:
        """Return one cycle as a path of course codes, or ``None``.

        The returned path starts and ends with the same course, e.g.
        ``["CS1", "CS2", "CS1"]``.
        """
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def visit(course: str) -> Optional[list[str]]:
            visited.add(course)
            stack.append(course)
            on_stack.add(course)
            for prerequisite in sorted(self._graph.get(course, ())):
                if prerequisite not in visited:
                    found = visit(prerequisite)
                    if found is not None:
                        return found
                elif prerequisite in on_stack:
                    # back edge
                    start = stack.index(prerequisite)
                    return stack[start:] + [prerequisite]
            stack.pop()
            on_stack.discard(course)
            return None

        for course in sorted(self._graph):
            if course not in visited:
                found = visit(course)
                if found is not None:
                    return found
        return None


def build_default_graph() -> PrerequisiteGraph:
    """Build a fresh graph populated with :data:`DEFAULT_CS_PREREQUISITES`."""
    return PrerequisiteGraph.from_mapping(DEFAULT_CS_PREREQUISITES)


__all__ = [
    "DEFAULT_CS_PREREQUISITES",
    "VALIDATION_ERROR",
    "PrerequisiteGraph",
    "PrerequisiteValidation",
    "build_default_graph",
]
