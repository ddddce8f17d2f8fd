"""Unit tests for bounded scalar parameters."""

import math

import pytest

from project_prioritization.errors import DomainError
from project_prioritization.parameters import binary_parameter, integer_parameter, numeric_parameter


class TestScalarParameter:
    def test_numeric(self):
        p = numeric_parameter("gap", 0.1, lower_limit=0)
        assert p.get() == pytest.approx(0.1)
        assert repr(p) == "gap (0.1)"

    def test_set_and_reset(self):
        p = numeric_parameter("gap", 0.1, lower_limit=0)
        p.set(0.5)
        assert p.get() == 0.5
        p.reset()
        assert p.get() == pytest.approx(0.1)

    @pytest.mark.parametrize("bad", [-1, math.inf, math.nan, "x", None])
    def test_invalid_numeric_raises(self, bad):
        with pytest.raises(DomainError, match="gap"):
            numeric_parameter("gap", bad, lower_limit=0)

    def test_integer_rejects_fraction(self):
        with pytest.raises(DomainError, match="integer"):
            integer_parameter("number_solutions", 1.5, lower_limit=1)

    def test_integer_value_is_int(self):
        assert isinstance(integer_parameter("threads", 2.0, lower_limit=1).get(), int)

    def test_bool_only_for_binary(self):
        assert binary_parameter("verbose", True).get() == 1
        with pytest.raises(DomainError):
            numeric_parameter("budget", True)

    def test_validate(self):
        p = integer_parameter("seed", 0, lower_limit=0)
        assert p.validate(3)
        assert not p.validate(-1)
        assert not p.validate(2.5)
