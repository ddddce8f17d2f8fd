"""Weighted feature hierarchy used by the phylogenetic diversity objective.

A tree is stored as a branch matrix: entry ``(f, b)`` is ``True`` when
feature ``f`` descends from branch ``b``. Flat objectives use the star tree,
where every feature hangs off the root on its own unit-length branch.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from project_prioritization.errors import DomainError


@dataclass(frozen=True, eq=False)
class FeatureTree:
    """Weighted tree whose tips are features.

    Parameters
    ----------
    tip_labels : tuple[str, ...]
        Feature identifiers, one per row of ``branch_matrix``.
    branch_matrix : np.ndarray
        Boolean array of shape ``(n_tips, n_branches)``.
    branch_lengths : np.ndarray
        Non-negative length of each branch.
    """

    tip_labels: tuple[str, ...]
    branch_matrix: np.ndarray
    branch_lengths: np.ndarray

    def __post_init__(self) -> None:
        matrix = np.asarray(self.branch_matrix, dtype=bool)
        lengths = np.asarray(self.branch_lengths, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != len(self.tip_labels):
            raise DomainError("Branch matrix must have one row per tip.")
        if lengths.shape != (matrix.shape[1],):
            raise DomainError("There must be one branch length per branch.")
        if not np.all(np.isfinite(lengths)) or np.any(lengths < 0):
            raise DomainError("Branch lengths must be finite and non-negative.")
        if len(set(self.tip_labels)) != len(self.tip_labels):
            raise DomainError("Tip labels must be unique.")
        if np.any(matrix.sum(axis=0) == 0):
            raise DomainError("Every branch must have at least one descendant tip.")
        object.__setattr__(self, "tip_labels", tuple(self.tip_labels))
        object.__setattr__(self, "branch_matrix", matrix)
        object.__setattr__(self, "branch_lengths", lengths)

    @property
    def number_of_branches(self) -> int:
        return self.branch_matrix.shape[1]

    @classmethod
    def star(cls, tip_labels: Iterable[str]) -> "FeatureTree":
        """Build a tree where each tip sits on its own unit-length branch."""
        labels = tuple(tip_labels)
        return cls(labels, np.eye(len(labels), dtype=bool), np.ones(len(labels)))

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str, float]]) -> "FeatureTree":
        """Build a tree from ``(parent, child, length)`` edges.

        Nodes without children are tips; each edge becomes one branch whose
        descendants are the tips below its child node.

        Raises
        ------
        DomainError
            If a node has two parents or the edges contain a cycle.
        """
        edges = list(edges)
        parent_of: dict[str, str] = {}
        children: dict[str, list[str]] = {}
        for parent, child, _ in edges:
            if child in parent_of:
                raise DomainError(f"Node {child!r} has more than one parent.")
            parent_of[child] = parent
            children.setdefault(parent, []).append(child)
        tips = [child for _, child, _ in edges if child not in children]
        tip_index = {tip: k for k, tip in enumerate(tips)}

        matrix = np.zeros((len(tips), len(edges)), dtype=bool)
        branch_of = {child: b for b, (_, child, _) in enumerate(edges)}
        for tip in tips:
            node, seen = tip, set()
            while node in parent_of:
                if node in seen:
                    raise DomainError("Feature tree edges contain a cycle.")
                seen.add(node)
                matrix[tip_index[tip], branch_of[node]] = True
                node = parent_of[node]
        lengths = np.array([float(length) for _, _, length in edges])
        return cls(tuple(tips), matrix, lengths)

    def branch_order(self) -> np.ndarray:
        """Return branch indices ordered from the tips towards the root.

        Branches are sorted by their number of descendant tips, with ties
        kept in index order, so every branch comes after all branches
        nested inside it.
        """
        return np.argsort(self.branch_matrix.sum(axis=0), kind="stable")

    def subset(self, feature_ids: Sequence[str]) -> "FeatureTree":
        """Reorder tips to match ``feature_ids``.

        Raises
        ------
        DomainError
            If the tree and the features do not contain the same identifiers.
        """
        if set(feature_ids) != set(self.tip_labels) or len(feature_ids) != len(self.tip_labels):
            raise DomainError("Feature tree tips must match the problem's features.")
        position = {label: k for k, label in enumerate(self.tip_labels)}
        rows = [position[f] for f in feature_ids]
        return FeatureTree(tuple(feature_ids), self.branch_matrix[rows, :], self.branch_lengths)

    def expected_diversity(self, persistence: np.ndarray) -> np.ndarray:
        """Expected amount of branch length retained.

        Parameters
        ----------
        persistence : np.ndarray
            Persistence probabilities with tips along the last axis; a 2-D
            array holds one row per solution.

        Returns
        -------
        np.ndarray
            ``sum_b L_b * (1 - prod_{f in b} (1 - p_f))`` per solution.
        """
        persistence = np.atleast_2d(np.asarray(persistence, dtype=float))
        extinction = 1.0 - persistence
        total = np.zeros(persistence.shape[0])
        for b in self.branch_order():
            descendants = self.branch_matrix[:, b]
            branch_survival = 1.0 - np.prod(extinction[:, descendants], axis=1)
            total += self.branch_lengths[b] * branch_survival
        return total
