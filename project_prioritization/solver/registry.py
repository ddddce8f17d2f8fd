"""Registry of exact solver backends.

The registry is passed explicitly into solving calls so that tests can
register deterministic fake backends.
"""

import logging

from project_prioritization.errors import SolverUnavailableError
from project_prioritization.solver._types import Backend
from project_prioritization.solver.backends import PulpCbcBackend, ScipyHighsBackend

logger = logging.getLogger(__name__)


class SolverRegistry:
    """Ordered mapping from backend name to backend class."""

    def __init__(self) -> None:
        self._backends: dict[str, type[Backend]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._backends

    def register(self, backend: type[Backend], name: str | None = None) -> None:
        """Add ``backend`` under ``name`` (defaults to ``backend.name``)."""
        self._backends[name or backend.name] = backend

    def names(self) -> list[str]:
        return list(self._backends)

    def available_names(self) -> list[str]:
        return [name for name, backend in self._backends.items() if backend.available()]

    def create(self, name: str | None = None, fallback: bool = True, **params) -> Backend:
        """Instantiate a backend.

        Parameters
        ----------
        name : str, optional
            Requested backend. Defaults to the first available one.
        fallback : bool
            If the requested backend is unknown or unavailable, use the first
            available backend instead of failing.
        **params
            Passed to the backend constructor.

        Raises
        ------
        SolverUnavailableError
            If no suitable backend is available.
        """
        available = self.available_names()
        if name is not None and name in available:
            return self._backends[name](**params)
        if name is not None:
            if not fallback or not available:
                raise SolverUnavailableError(f"Solver backend {name!r} is not available.")
            logger.warning("Solver backend %r is not available, falling back to %r", name, available[0])
        if not available:
            raise SolverUnavailableError(f"None of the registered solver backends {self.names()} is available.")
        return self._backends[available[0]](**params)


def default_registry() -> SolverRegistry:
    """Registry with the CBC backend followed by the HiGHS backend."""
    registry = SolverRegistry()
    registry.register(PulpCbcBackend)
    registry.register(ScipyHighsBackend)
    return registry
