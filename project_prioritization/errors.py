"""Exception types raised by the prioritization engine."""


class DomainError(ValueError):
    """Input data are malformed or constraints conflict.

    Raised for probabilities outside ``[0, 1]``, negative costs, dangling
    identifiers, and actions that are both locked in and locked out.
    """


class ConfigurationError(ValueError):
    """A problem is missing a slot required to encode or solve it."""


class InfeasibleError(RuntimeError):
    """A solve finished without any feasible solution.

    Parameters
    ----------
    message : str
        Description of the failure.
    status : str
        Solver status that produced the failure, ``"INFEASIBLE"`` or
        ``"NO_SOLUTION"``.
    """

    def __init__(self, message: str, status: str = "INFEASIBLE") -> None:
        super().__init__(message)
        self.status = status


class SolverUnavailableError(RuntimeError):
    """No registered solver backend can be used in this environment."""
