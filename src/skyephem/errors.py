"""
skyephem.errors — Exception Hierarchy
======================================

Every error the engine raises derives from :class:`EphemerisError` and from
the builtin exception callers would naturally expect, so ``except ValueError``
still catches an out-of-range declination.
"""


class EphemerisError(Exception):
    """Base class for all skyephem errors."""


class InvalidInputError(EphemerisError, ValueError):
    """A scalar input lies outside its documented domain."""


class InvalidDateError(EphemerisError, ValueError):
    """A calendar date does not exist or lies before Julian Day 0."""


class InvalidOrbitError(InvalidInputError):
    """Orbital elements that no propagator can work with."""


class MissingFieldError(InvalidInputError, KeyError):
    """A catalog record lacks a field the engine needs."""

    def __init__(self, field, record_name=None):
        self.field = field
        self.record_name = record_name
        where = f" in record {record_name!r}" if record_name else ""
        super().__init__(f"Missing required field {field!r}{where}")

    def __str__(self):
        # KeyError would otherwise repr() the message
        return self.args[0]


class ConvergenceError(EphemerisError, ArithmeticError):
    """An iterative solver exceeded its iteration cap."""

    def __init__(self, solver, iterations, last_step=None):
        self.solver = solver
        self.iterations = iterations
        self.last_step = last_step
        msg = f"{solver} did not converge after {iterations} iterations"
        if last_step is not None:
            msg += f" (last step {last_step:.3e})"
        super().__init__(msg)


class EphemerisNotCalculatedError(EphemerisError, RuntimeError):
    """Derived ephemeris fields were read before they were calculated."""
