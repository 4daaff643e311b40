"""Differential equation models.

A model supplies the right-hand side ``F`` of ``-laplace(u) = F`` and the
Dirichlet boundary values. Models with a known closed-form solution also
provide it, which gives the ground-truth matrix and the error report.
"""

import numpy as np


class DifferentialEquationModel:
    """Manufactured problem with solution ``u = 1 + sin(x * y)``.

    ``-laplace(u) = (x**2 + y**2) * sin(x * y)``; boundary values are taken
    from the solution itself.
    """

    def forcing(self, x, y):
        """Right-hand side ``F(x, y)``."""
        return (x**2 + y**2) * np.sin(x * y)

    def boundary(self, x, y):
        """Prescribed boundary value at ``(x, y)``."""
        return self.solution(x, y)

    def solution(self, x, y):
        """Closed-form solution ``u(x, y)``."""
        return 1.0 + np.sin(x * y)


class QuadraticModel(DifferentialEquationModel):
    """``u = x**2 + y**2`` with constant forcing ``-4``.

    Second differences of a quadratic are exact on a uniform grid, so the
    discrete solution equals ``u`` up to solver tolerance.
    """

    def forcing(self, x, y):
        return np.full(np.broadcast(x, y).shape, -4.0)

    def solution(self, x, y):
        return x**2 + y**2


MODELS = {
    "sine": DifferentialEquationModel,
    "quadratic": QuadraticModel,
}


def create_model(name: str = "sine") -> DifferentialEquationModel:
    """Factory for the built-in models."""
    try:
        return MODELS[name]()
    except KeyError:
        raise ValueError(f"Unknown problem: {name}. Use one of {', '.join(MODELS)}.") from None
