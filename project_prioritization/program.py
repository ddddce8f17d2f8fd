"""Solver-neutral representation of a mixed integer linear program.

A :class:`Program` holds the objective vector, a sparse constraint matrix
with row senses and right-hand sides, variable bounds, and variable type
tags. Solver backends translate it into their native call convention and
hand back a vector of variable values. The first ``number_of_actions``
columns are always the action funding variables.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple

import numpy as np
from scipy import sparse

SENSES = ("<=", "=", ">=")
VTYPES = ("B", "C", "S")
MODELSENSES = ("max", "min")


class DecisionType(str, Enum):
    """How action funding variables are represented."""

    BINARY = "binary"
    PROPORTION = "proportion"


class ProgramEvaluation(NamedTuple):
    """Result of checking a solution vector against a :class:`Program`."""

    objective: float
    slack: np.ndarray
    cost: float
    feasible: bool


@dataclass(frozen=True, eq=False)
class Program:
    """Canonical sparse optimization program.

    Parameters
    ----------
    obj : np.ndarray
        Objective coefficient for each variable.
    A : scipy.sparse.csr_matrix
        Constraint matrix of shape ``(n_rows, n_variables)``.
    sense : np.ndarray
        Row senses, each one of ``"<="``, ``"="`` or ``">="``.
    rhs : np.ndarray
        Right-hand side of each row.
    lb, ub : np.ndarray
        Variable bounds.
    vtype : np.ndarray
        Variable types: ``"B"`` binary, ``"C"`` continuous,
        ``"S"`` semi-continuous.
    modelsense : str
        ``"max"`` or ``"min"``.
    col_names, row_names : tuple[str, ...]
        Labels for variables and rows.
    number_of_actions : int
        Number of leading action funding columns.
    action_costs : np.ndarray
        Cost of each action, used to report solution cost.
    """

    obj: np.ndarray
    A: sparse.csr_matrix
    sense: np.ndarray
    rhs: np.ndarray
    lb: np.ndarray
    ub: np.ndarray
    vtype: np.ndarray
    modelsense: str
    col_names: tuple[str, ...]
    row_names: tuple[str, ...]
    number_of_actions: int
    action_costs: np.ndarray

    def __post_init__(self) -> None:
        n_rows, n_cols = self.A.shape
        if self.obj.shape != (n_cols,) or self.lb.shape != (n_cols,) or self.ub.shape != (n_cols,):
            raise ValueError("Objective and bounds must have one entry per variable.")
        if self.vtype.shape != (n_cols,) or len(self.col_names) != n_cols:
            raise ValueError("Variable types and names must have one entry per variable.")
        if self.sense.shape != (n_rows,) or self.rhs.shape != (n_rows,) or len(self.row_names) != n_rows:
            raise ValueError("Senses, right-hand sides and row names must have one entry per row.")
        if not set(self.sense.tolist()) <= set(SENSES):
            raise ValueError(f"Row senses must be one of {SENSES}.")
        if not set(self.vtype.tolist()) <= set(VTYPES):
            raise ValueError(f"Variable types must be one of {VTYPES}.")
        if self.modelsense not in MODELSENSES:
            raise ValueError(f"Model sense must be one of {MODELSENSES}.")
        if self.action_costs.shape != (self.number_of_actions,):
            raise ValueError("There must be one cost per action variable.")

    @property
    def number_of_variables(self) -> int:
        return self.A.shape[1]

    @property
    def number_of_constraints(self) -> int:
        return self.A.shape[0]

    def with_bounds(self, lb: np.ndarray | None = None, ub: np.ndarray | None = None) -> "Program":
        """Return a copy with replaced variable bounds."""
        return replace(
            self,
            lb=self.lb.copy() if lb is None else np.asarray(lb, dtype=float),
            ub=self.ub.copy() if ub is None else np.asarray(ub, dtype=float),
        )

    def with_rows(
        self,
        A: sparse.spmatrix | np.ndarray,
        sense: list[str],
        rhs: list[float],
        names: list[str],
    ) -> "Program":
        """Return a copy with extra constraint rows appended."""
        extra = sparse.csr_matrix(A, dtype=float)
        return replace(
            self,
            A=sparse.vstack([self.A, extra], format="csr"),
            sense=np.concatenate([self.sense, np.asarray(sense, dtype=object)]),
            rhs=np.concatenate([self.rhs, np.asarray(rhs, dtype=float)]),
            row_names=self.row_names + tuple(names),
        )

    def evaluate(self, x: np.ndarray, tol: float = 1e-6) -> ProgramEvaluation:
        """Check a solution vector against the program.

        Parameters
        ----------
        x : np.ndarray
            Value of every variable.
        tol : float
            Absolute tolerance for bounds, rows and integrality.

        Returns
        -------
        ProgramEvaluation
            Objective value, per-row slack (negative when violated), total
            action cost, and whether every row, bound and binary
            restriction holds.
        """
        x = np.asarray(x, dtype=float)
        if x.shape != (self.number_of_variables,):
            raise ValueError("Solution vector must have one value per variable.")
        activity = self.A @ x
        slack = np.where(
            self.sense == "<=",
            self.rhs - activity,
            np.where(self.sense == ">=", activity - self.rhs, -np.abs(activity - self.rhs)),
        ).astype(float)
        binary = self.vtype == "B"
        feasible = bool(
            np.all(slack >= -tol)
            and np.all(x >= self.lb - tol)
            and np.all(x <= self.ub + tol)
            and np.all(np.abs(x[binary] - np.round(x[binary])) <= tol)
        )
        cost = float(self.action_costs @ x[: self.number_of_actions])
        return ProgramEvaluation(float(self.obj @ x), slack, cost, feasible)


class ProgramBuilder:
    """Accumulate variables and rows, then freeze them into a :class:`Program`."""

    def __init__(self) -> None:
        self._lb: list[float] = []
        self._ub: list[float] = []
        self._vtype: list[str] = []
        self._col_names: list[str] = []
        self._obj: dict[int, float] = {}
        self._rows: list[int] = []
        self._cols: list[int] = []
        self._vals: list[float] = []
        self._sense: list[str] = []
        self._rhs: list[float] = []
        self._row_names: list[str] = []

    @property
    def number_of_variables(self) -> int:
        return len(self._col_names)

    def add_variables(self, names: list[str], lb: float, ub: float, vtype: str) -> np.ndarray:
        """Append one variable per name and return their column indices."""
        start = len(self._col_names)
        self._col_names.extend(names)
        self._lb.extend([lb] * len(names))
        self._ub.extend([ub] * len(names))
        self._vtype.extend([vtype] * len(names))
        return np.arange(start, start + len(names))

    def add_row(self, cols, vals, sense: str, rhs: float, name: str) -> None:
        row = len(self._sense)
        for col, val in zip(cols, vals):
            if val != 0:
                self._rows.append(row)
                self._cols.append(int(col))
                self._vals.append(float(val))
        self._sense.append(sense)
        self._rhs.append(float(rhs))
        self._row_names.append(name)

    def add_objective(self, cols, vals) -> None:
        for col, val in zip(cols, vals):
            self._obj[int(col)] = self._obj.get(int(col), 0.0) + float(val)

    def build(self, modelsense: str, number_of_actions: int, action_costs: np.ndarray) -> Program:
        n_cols = len(self._col_names)
        obj = np.zeros(n_cols)
        for col, val in self._obj.items():
            obj[col] = val
        A = sparse.csr_matrix(
            (self._vals, (self._rows, self._cols)), shape=(len(self._sense), n_cols), dtype=float
        )
        return Program(
            obj=obj,
            A=A,
            sense=np.asarray(self._sense, dtype=object),
            rhs=np.asarray(self._rhs, dtype=float),
            lb=np.asarray(self._lb, dtype=float),
            ub=np.asarray(self._ub, dtype=float),
            vtype=np.asarray(self._vtype, dtype=object),
            modelsense=modelsense,
            col_names=tuple(self._col_names),
            row_names=tuple(self._row_names),
            number_of_actions=number_of_actions,
            action_costs=np.asarray(action_costs, dtype=float),
        )
