"""Exact solver backends.

Each backend translates a :class:`Program` into a third-party solver call
and maps the outcome back onto :class:`SolveStatus`. Semi-continuous
variables are passed as continuous; every program row already pins their
value.
"""

import logging
import time

import numpy as np
import pulp as lp
import scipy.optimize
from scipy.optimize import Bounds, LinearConstraint

from project_prioritization.program import Program
from project_prioritization.solver._common import empty_solver_result
from project_prioritization.solver._types import SolverResult, SolveStatus

logger = logging.getLogger(__name__)

_PULP_SENSES = {"<=": lp.LpConstraintLE, "=": lp.LpConstraintEQ, ">=": lp.LpConstraintGE}

_PULP_STATUSES = {
    lp.LpSolutionOptimal: SolveStatus.OPTIMAL,
    lp.LpSolutionIntegerFeasible: SolveStatus.SUBOPTIMAL_TIMEOUT,
    lp.LpSolutionInfeasible: SolveStatus.INFEASIBLE,
}


def _trivially_infeasible(sense: str, rhs: float, tol: float = 1e-9) -> bool:
    """Whether a row with no coefficients, ``0 <sense> rhs``, is violated."""
    if sense == "<=":
        return rhs < -tol
    if sense == ">=":
        return rhs > tol
    return abs(rhs) > tol


class PulpCbcBackend:
    """PuLP backend using the CBC solver bundled with PuLP.

    Parameters
    ----------
    gap : float
        Relative optimality gap at which CBC may stop.
    time_limit : float, optional
        Wall-clock limit in seconds.
    verbose : bool
        Whether CBC prints its log.
    threads : int
        Number of CBC threads.
    """

    name = "cbc"

    def __init__(
        self,
        gap: float = 0.0,
        time_limit: float | None = None,
        verbose: bool = False,
        threads: int = 1,
    ) -> None:
        self.gap = gap
        self.time_limit = time_limit
        self.verbose = verbose
        self.threads = threads

    @classmethod
    def available(cls) -> bool:
        return bool(lp.PULP_CBC_CMD(msg=False).available())

    def _formulate(self, program: Program) -> tuple[lp.LpProblem, list[lp.LpVariable]] | None:
        sense = lp.LpMaximize if program.modelsense == "max" else lp.LpMinimize
        prob = lp.LpProblem("Project_Prioritization", sense)
        variables = [
            lp.LpVariable(
                f"v{k}",
                lowBound=program.lb[k],
                upBound=program.ub[k],
                # LpBinary would discard tightened bounds
                cat=lp.LpInteger if program.vtype[k] == "B" else lp.LpContinuous,
            )
            for k in range(program.number_of_variables)
        ]
        nonzero = np.flatnonzero(program.obj)
        prob += lp.LpAffineExpression([(variables[k], program.obj[k]) for k in nonzero])

        A = program.A.tocsr()
        for r in range(program.number_of_constraints):
            start, end = A.indptr[r], A.indptr[r + 1]
            if start == end:
                if _trivially_infeasible(program.sense[r], program.rhs[r]):
                    logger.info("Row %s cannot be satisfied", program.row_names[r])
                    return None
                continue
            expr = lp.LpAffineExpression(
                [(variables[c], v) for c, v in zip(A.indices[start:end], A.data[start:end])]
            )
            prob += lp.LpConstraint(expr, _PULP_SENSES[program.sense[r]], f"c{r}", program.rhs[r])
        return prob, variables

    def __call__(self, program: Program) -> list[SolverResult]:
        """Solve ``program`` and return a single result."""
        start = time.perf_counter()
        formulation = self._formulate(program)
        if formulation is None:
            return [empty_solver_result(SolveStatus.INFEASIBLE, time.perf_counter() - start)]
        prob, variables = formulation

        logger.info("Solving with CBC")
        try:
            prob.solve(
                lp.PULP_CBC_CMD(
                    msg=self.verbose,
                    gapRel=self.gap,
                    timeLimit=self.time_limit,
                    threads=self.threads,
                )
            )
        except Exception:
            logger.exception("Error solving program with CBC")
            return [empty_solver_result(SolveStatus.NO_SOLUTION, time.perf_counter() - start)]
        runtime = time.perf_counter() - start

        status = _PULP_STATUSES.get(prob.sol_status, SolveStatus.NO_SOLUTION)
        if not status.has_solution:
            logger.info("CBC status = %s", lp.LpStatus[prob.status])
            return [empty_solver_result(status, runtime)]
        x = np.array(
            [program.lb[k] if v.varValue is None else v.varValue for k, v in enumerate(variables)],
            dtype=float,
        )
        return [{"status": status, "x": x, "objective": float(program.obj @ x), "runtime": runtime}]


class ScipyHighsBackend:
    """SciPy backend using the HiGHS solver behind :func:`scipy.optimize.milp`.

    Parameters
    ----------
    gap : float
        Relative optimality gap at which HiGHS may stop.
    time_limit : float, optional
        Wall-clock limit in seconds.
    verbose : bool
        Whether HiGHS prints its log.
    threads : int
        Accepted for interface compatibility; ``milp`` does not expose it.
    """

    name = "highs"

    def __init__(
        self,
        gap: float = 0.0,
        time_limit: float | None = None,
        verbose: bool = False,
        threads: int = 1,
    ) -> None:
        self.gap = gap
        self.time_limit = time_limit
        self.verbose = verbose
        self.threads = threads

    @classmethod
    def available(cls) -> bool:
        return hasattr(scipy.optimize, "milp")

    def __call__(self, program: Program) -> list[SolverResult]:
        """Solve ``program`` and return a single result."""
        c = -program.obj if program.modelsense == "max" else program.obj
        lower = np.where(program.sense == "<=", -np.inf, program.rhs).astype(float)
        upper = np.where(program.sense == ">=", np.inf, program.rhs).astype(float)
        constraints = LinearConstraint(program.A, lower, upper) if program.number_of_constraints else None
        options = {"disp": self.verbose, "mip_rel_gap": self.gap}
        if self.time_limit is not None:
            options["time_limit"] = self.time_limit

        logger.info("Solving with HiGHS")
        start = time.perf_counter()
        try:
            res = scipy.optimize.milp(
                c,
                integrality=(program.vtype == "B").astype(int),
                bounds=Bounds(program.lb, program.ub),
                constraints=constraints,
                options=options,
            )
        except Exception:
            logger.exception("Error solving program with HiGHS")
            return [empty_solver_result(SolveStatus.NO_SOLUTION, time.perf_counter() - start)]
        runtime = time.perf_counter() - start

        if res.status == 0:
            status = SolveStatus.OPTIMAL
        elif res.status == 1 and res.x is not None:
            status = SolveStatus.SUBOPTIMAL_TIMEOUT
        elif res.status == 2:
            status = SolveStatus.INFEASIBLE
        else:
            status = SolveStatus.NO_SOLUTION
        if res.x is None and status.has_solution:
            status = SolveStatus.NO_SOLUTION
        if not status.has_solution:
            logger.info("HiGHS status = %d (%s)", res.status, res.message)
            return [empty_solver_result(status, runtime)]
        x = np.asarray(res.x, dtype=float)
        return [{"status": status, "x": x, "objective": float(program.obj @ x), "runtime": runtime}]
