"""Keypoint names and the skeleton tree used to grow a pose from one seed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple

KEYPOINT_NAMES = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

NUM_KEYPOINTS = len(KEYPOINT_NAMES)

# (parent, child); position in this list is the displacement channel index.
POSE_CHAIN = (
    ("nose", "left_eye"),
    ("left_eye", "left_ear"),
    ("nose", "right_eye"),
    ("right_eye", "right_ear"),
    ("nose", "left_shoulder"),
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("left_shoulder", "left_hip"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("nose", "right_shoulder"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("right_shoulder", "right_hip"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
)


class SkeletonGraphError(ValueError):
    """Raised when a skeleton description is not a tree over its keypoints."""


@dataclass(frozen=True)
class SkeletonEdge:
    """Directed limb between two keypoint types.

    Attributes:
        index: Edge position; selects the displacement channel pair.
        parent: type_id of the keypoint nearer the root.
        child: type_id of the keypoint further from the root.
    """

    index: int
    parent: int
    child: int


@dataclass(frozen=True)
class SkeletonGraph:
    """Immutable tree of keypoint types built once and shared across decodes.

    Raises:
        SkeletonGraphError: if names repeat, the edge count is not
            ``len(names) - 1``, an edge is out of range or misnumbered, or the
            edges do not connect every keypoint.
    """

    names: Tuple[str, ...]
    edges: Tuple[SkeletonEdge, ...]
    _ids: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = tuple(self.names)
        edges = tuple(self.edges)
        ids = {name: idx for idx, name in enumerate(names)}
        if len(ids) != len(names):
            raise SkeletonGraphError("Keypoint names must be unique")
        if len(edges) != len(names) - 1:
            raise SkeletonGraphError(
                f"Skeleton over {len(names)} keypoints needs {len(names) - 1} edges, got {len(edges)}"
            )
        for position, edge in enumerate(edges):
            if edge.index != position:
                raise SkeletonGraphError(f"Edge at position {position} has index {edge.index}")
            for type_id in (edge.parent, edge.child):
                if not 0 <= type_id < len(names):
                    raise SkeletonGraphError(f"Edge {position} references unknown keypoint id: {type_id}")
        _check_connected(len(names), edges)

        object.__setattr__(self, "names", names)
        object.__setattr__(self, "edges", edges)
        object.__setattr__(self, "_ids", ids)

    @classmethod
    def from_names(cls, names: Sequence[str], chain: Sequence[Tuple[str, str]]) -> "SkeletonGraph":
        """Build a graph from keypoint names and (parent, child) name pairs.

        Raises:
            SkeletonGraphError: if an edge names an unknown keypoint, or the
                resulting graph is not a tree.
        """
        names = tuple(names)
        ids = {name: idx for idx, name in enumerate(names)}
        edges: List[SkeletonEdge] = []
        for index, (parent, child) in enumerate(chain):
            for name in (parent, child):
                if name not in ids:
                    raise SkeletonGraphError(f"Edge {index} references unknown keypoint: {name}")
            edges.append(SkeletonEdge(index=index, parent=ids[parent], child=ids[child]))

        return cls(names=names, edges=tuple(edges))

    @property
    def num_keypoints(self) -> int:
        return len(self.names)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def keypoint_id(self, name: str) -> int:
        """Return the type_id for a keypoint name."""
        try:
            return self._ids[name]
        except KeyError:
            raise ValueError(f"Unknown keypoint: {name}. Valid names: {list(self.names)}") from None

    def forward_edges(self) -> Iterator[SkeletonEdge]:
        """Edges in root-to-leaf order."""
        return iter(self.edges)

    def backward_edges(self) -> Iterator[SkeletonEdge]:
        """Edges in leaf-to-root order."""
        return reversed(self.edges)

    def named_edges(self) -> List[Tuple[str, str]]:
        return [(self.names[e.parent], self.names[e.child]) for e in self.edges]


def _check_connected(num_keypoints: int, edges: Sequence[SkeletonEdge]) -> None:
    # K - 1 edges plus connectivity means the graph is a tree.
    neighbours: Dict[int, List[int]] = {k: [] for k in range(num_keypoints)}
    for edge in edges:
        neighbours[edge.parent].append(edge.child)
        neighbours[edge.child].append(edge.parent)
    seen = {0} if num_keypoints else set()
    stack = list(seen)
    while stack:
        for other in neighbours[stack.pop()]:
            if other not in seen:
                seen.add(other)
                stack.append(other)
    if len(seen) != num_keypoints:
        missing = sorted(set(range(num_keypoints)) - seen)
        raise SkeletonGraphError(f"Skeleton edges do not connect keypoints {missing}")


DEFAULT_SKELETON = SkeletonGraph.from_names(KEYPOINT_NAMES, POSE_CHAIN)
