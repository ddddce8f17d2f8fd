"""Conditional persistence model.

Combines project success probabilities with the enhanced persistence
probabilities of each feature to give the probability that a feature persists
when a given project is the one credited with managing it.
"""

import numpy as np

from project_prioritization.errors import DomainError


def check_probabilities(values: np.ndarray, name: str) -> np.ndarray:
    """Return ``values`` as a float array, rejecting anything outside [0, 1].

    Raises
    ------
    DomainError
        If any value is missing, non-finite or outside ``[0, 1]``.
    """
    values = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(values)):
        raise DomainError(f"{name} must be finite probabilities.")
    if np.any(values < 0) or np.any(values > 1):
        raise DomainError(f"{name} must be between 0 and 1.")
    return values


def effective_persistence(
    success: np.ndarray,
    benefit: np.ndarray,
    baseline_project: int,
    adjust_for_baseline: bool = True,
) -> np.ndarray:
    """Calculate the effective persistence matrix ``Q``.

    Parameters
    ----------
    success : np.ndarray
        Success probability ``P_j`` for each project, shape ``(n_projects,)``.
    benefit : np.ndarray
        Enhanced persistence ``B_fj``, shape ``(n_features, n_projects)``.
        Zero where a project does not affect a feature.
    baseline_project : int
        Column index of the baseline "do nothing" project.
    adjust_for_baseline : bool
        If ``True``, a feature managed by a failed project still persists
        with its baseline probability:
        ``Q_fj = P_j B_fj + (1 - P_j B_fj) P_n B_fn``.
        Otherwise ``Q_fj = P_j B_fj``. Projects that do not affect a
        feature (``B_fj = 0``) keep ``Q_fj = 0`` in both modes.

    Returns
    -------
    np.ndarray
        Matrix of shape ``(n_features, n_projects)`` with values in [0, 1].

    Raises
    ------
    DomainError
        If a probability lies outside ``[0, 1]`` or the shapes disagree.
    """
    success = check_probabilities(success, "Project success probabilities")
    benefit = check_probabilities(benefit, "Feature persistence probabilities")
    if benefit.ndim != 2 or benefit.shape[1] != success.shape[0]:
        raise DomainError("Persistence matrix must have one column per project.")
    if not 0 <= baseline_project < success.shape[0]:
        raise DomainError("Baseline project index is out of range.")

    direct = benefit * success[np.newaxis, :]
    baseline = direct[:, baseline_project].copy()
    if adjust_for_baseline:
        adjusted = direct + (1.0 - direct) * baseline[:, np.newaxis]
        q = np.where(benefit > 0, adjusted, 0.0)
    else:
        q = direct
    # the baseline column is always the unadjusted baseline persistence
    q[:, baseline_project] = baseline
    return np.clip(q, 0.0, 1.0)
