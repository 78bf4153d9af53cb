"""
Exceptions raised by the orrery geometry code.
"""


class InvalidOrbitalElements(ValueError):
    """
    Orbital elements that do not describe a closed (elliptical) orbit.

    Raised for e outside [0, 1), a <= 0, or any non-finite element.
    """


class NumericNonConvergence(ArithmeticError):
    """
    The Kepler solver did not reach its tolerance within the iteration cap.

    Attributes:
        best_estimate: Eccentric anomaly after the last iteration (radians)
        residual: |E - e*sin(E) - M| at the best estimate (radians)
        iterations: Number of iterations performed
    """

    def __init__(self, message: str, best_estimate: float, residual: float, iterations: int):
        super().__init__(message)
        self.best_estimate = best_estimate
        self.residual = residual
        self.iterations = iterations
