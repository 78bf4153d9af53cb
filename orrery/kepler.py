"""
Kepler's equation and anomaly conversions.

All functions here are JAX-traceable so they can be jitted and vmapped
inside the per-frame geometry code.
"""
import logging
from functools import partial
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import jit

from .constants import KEPLER_TOL, KEPLER_MAX_ITER, FIXED_POINT_MAX_ITER, TWO_PI
from .exceptions import NumericNonConvergence

logger = logging.getLogger(__name__)


class KeplerSolution(NamedTuple):
    """
    Result of an iterative solve of M = E - e*sin(E).

    Attributes:
        E: Eccentric anomaly (radians), best estimate
        iterations: Number of iterations performed
        residual: |E - e*sin(E) - M| at E, with M and E reduced to one revolution (radians)
    """
    E: jnp.ndarray
    iterations: jnp.ndarray
    residual: jnp.ndarray


class AnomalyState(NamedTuple):
    """Mean, eccentric and true anomaly at one evaluation instant (radians)."""
    M: jnp.ndarray
    E: jnp.ndarray
    nu: jnp.ndarray


@partial(jit, static_argnames=('max_iter', 'method'))
def kepler_solution(M, e, tol: float = KEPLER_TOL, max_iter: int = None,
                    method: str = 'newton') -> KeplerSolution:
    """
    Solve Kepler's equation M = E - e*sin(E) for eccentric anomaly E.

    Iterates until the residual is at most ``tol`` or ``max_iter`` iterations
    have run, whichever comes first, and returns the best estimate either way.
    M = 0 gives E = 0 and e = 0 gives E = M without any iteration. The
    residual is measured on M reduced to [-π, π], so large mean anomalies
    (long animation runs) converge to the same tolerance.

    Args:
        M: Mean anomaly (radians), scalar
        e: Eccentricity, 0 <= e < 1, scalar
        tol: Convergence tolerance on the residual (radians)
        max_iter: Iteration cap; defaults to 20 for Newton and 500 for fixed-point
        method: 'newton' for Newton-Raphson or 'fixed_point' for E = M + e*sin(E)

    Returns:
        KeplerSolution(E, iterations, residual)
    """
    if method not in ('newton', 'fixed_point'):
        raise ValueError(f"Unknown Kepler method '{method}'. Must be 'newton' or 'fixed_point'")
    if max_iter is None:
        max_iter = KEPLER_MAX_ITER if method == 'newton' else FIXED_POINT_MAX_ITER

    M = jnp.asarray(M, dtype=jnp.float64)
    e = jnp.asarray(e, dtype=jnp.float64)

    # Iterate on M reduced to [-π, π]; the residual of an unreduced M is
    # limited by its ulp, which exceeds tol once |M| is large
    turns = TWO_PI * jnp.round(M / TWO_PI)
    M_red = M - turns

    def residual(E):
        return E - e * jnp.sin(E) - M_red

    if method == 'newton':
        # Danby's starting value, good for the whole elliptical range
        E0 = M_red + 0.85 * e * jnp.sign(jnp.sin(M_red))
    else:
        E0 = M_red

    def cond_fn(carry):
        _, f, n = carry
        return (jnp.abs(f) > tol) & (n < max_iter)

    def body_fn(carry):
        E, f, n = carry
        if method == 'newton':
            E_new = E - f / (1.0 - e * jnp.cos(E))
        else:
            E_new = M_red + e * jnp.sin(E)
        return E_new, residual(E_new), n + 1

    E, f, n = jax.lax.while_loop(cond_fn, body_fn, (E0, residual(E0), jnp.int32(0)))
    E = jnp.where(e == 0.0, M, E + turns)
    return KeplerSolution(E=E, iterations=n, residual=jnp.abs(f))


def solve_kepler(M, e, tol: float = KEPLER_TOL, max_iter: int = None, method: str = 'newton'):
    """
    Solve Kepler's equation for the eccentric anomaly.

    Never raises for a non-converged solve: the iteration count is capped and
    the best estimate is returned, which is what the render loop needs.
    """
    return kepler_solution(M, e, tol=tol, max_iter=max_iter, method=method).E


def solve_kepler_vec(M, e, tol=KEPLER_TOL, max_iter=None, method='newton'):
    """
    Vectorized version of solve_kepler that handles arrays of M and e.

    Parameters
    ----------
    M : jnp.ndarray
        Array of mean anomalies
    e : jnp.ndarray or float
        Array of eccentricities, or a single eccentricity for every M
    tol : float, optional
        Tolerance for convergence
    max_iter : int, optional
        Maximum number of iterations
    method : str, optional
        'newton' or 'fixed_point'

    Returns
    -------
    E : jnp.ndarray
        Array of eccentric anomalies
    """
    M = jnp.atleast_1d(jnp.asarray(M, dtype=jnp.float64))
    e = jnp.broadcast_to(jnp.asarray(e, dtype=jnp.float64), M.shape)
    # vmap over M and e only; the solver settings are closed over
    solve = partial(kepler_solution, tol=tol, max_iter=max_iter, method=method)
    return jax.vmap(solve)(M, e).E


def solve_kepler_checked(M: float, e: float, tol: float = KEPLER_TOL, max_iter: int = None,
                         method: str = 'newton') -> float:
    """
    Solve Kepler's equation and raise if the tolerance was not reached.

    For setup-time checks only; the per-frame path uses solve_kepler.

    Raises:
        NumericNonConvergence: carrying the best estimate, residual and iteration count.
    """
    sol = kepler_solution(M, e, tol=tol, max_iter=max_iter, method=method)
    E, residual, iterations = float(sol.E), float(sol.residual), int(sol.iterations)
    if residual > tol:
        logger.warning("Kepler solve did not converge: M=%g e=%g residual=%.3e after %d iterations",
                       float(M), float(e), residual, iterations)
        raise NumericNonConvergence(
            f"Kepler's equation not converged for M={float(M)}, e={float(e)}: "
            f"residual {residual:.3e} after {iterations} iterations",
            best_estimate=E,
            residual=residual,
            iterations=iterations,
        )
    return E


@jit
def eccentric_to_true(E, e):
    """True anomaly nu = atan2(sqrt(1 - e^2)*sin E, cos E - e)."""
    return jnp.arctan2(jnp.sqrt(1.0 - e**2) * jnp.sin(E), jnp.cos(E) - e)


@jit
def true_to_eccentric(nu, e):
    """Eccentric anomaly for a true anomaly, on the same revolution as nu."""
    E = 2.0 * jnp.arctan2(
        jnp.sqrt(1.0 - e) * jnp.sin(nu / 2.0),
        jnp.sqrt(1.0 + e) * jnp.cos(nu / 2.0)
    )
    return E


@jit
def eccentric_to_mean(E, e):
    return E - e * jnp.sin(E)


def mean_to_true(M, e):
    return eccentric_to_true(solve_kepler(M, e), e)


def anomaly_state(M, e) -> AnomalyState:
    """Resolve a mean anomaly into the full (M, E, nu) triple."""
    E = solve_kepler(M, e)
    return AnomalyState(M=jnp.asarray(M, dtype=jnp.float64), E=E, nu=eccentric_to_true(E, e))
