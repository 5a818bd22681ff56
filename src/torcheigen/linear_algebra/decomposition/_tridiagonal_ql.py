"""Implicit-shift QL iteration for symmetric tridiagonal matrices."""

import math
import warnings
from typing import Tuple

import numpy as np

from torcheigen.linear_algebra.decomposition._exceptions import (
    ConvergenceError,
)


def tridiagonal_ql(
    d: np.ndarray,
    e: np.ndarray,
    V: np.ndarray,
    *,
    max_iterations: int,
    verbose: int = 0,
) -> Tuple[np.ndarray, np.ndarray, int]:
    r"""
    Eigenvalues and eigenvectors of a symmetric tridiagonal matrix.

    Diagonalizes the tridiagonal matrix produced by
    :func:`householder_tridiagonal` with the implicit QL algorithm and
    Wilkinson shifts, applying every plane rotation to the columns of
    :math:`V` so that on return :math:`A V = V \operatorname{diag}(d)`.

    Derived from the Algol procedure tql2 by Bowdler, Martin, Reinsch and
    Wilkinson, Handbook for Automatic Computation, Vol. II - Linear Algebra,
    and the corresponding EISPACK routine.

    Parameters
    ----------
    d : np.ndarray
        Diagonal, shape (n,).
    e : np.ndarray
        Subdiagonal stored in ``e[1:]``, shape (n,).
    V : np.ndarray
        Orthogonal transform from the tridiagonal reduction, shape (n, n).
    max_iterations : int
        QL iterations allowed per eigenvalue before giving up.
    verbose : int
        2 emits a warning per converged eigenvalue.

    Returns
    -------
    d : np.ndarray
        Eigenvalues in ascending order, shape (n,).
    V : np.ndarray
        Orthogonal eigenvectors (columns), shape (n, n).
    iterations : int
        Total number of QL iterations.

    Raises
    ------
    ConvergenceError
        If an eigenvalue needs more than ``max_iterations`` iterations.

    Notes
    -----
    An off-diagonal element is negligible once
    :math:`|e_l| \le \epsilon \cdot tst1`, where :math:`tst1` is the
    running maximum of :math:`|d_i| + |e_i|` over the processed indices.
    Shifts and rotations use :func:`math.hypot`, which neither overflows
    nor returns NaN for zero arguments.
    """
    n = d.shape[0]
    d = d.copy()
    e = e.copy()
    V = V.copy()

    e[:-1] = e[1:]
    e[-1] = 0.0

    eps = np.finfo(d.dtype).eps
    f = 0.0
    tst1 = 0.0
    total = 0

    for l in range(n):
        # Find small subdiagonal element.
        tst1 = max(tst1, abs(d[l]) + abs(e[l]))
        m = l
        while m < n:
            if abs(e[m]) <= eps * tst1:
                break
            m += 1

        # If m == l, d[l] is already an eigenvalue.
        iteration = 0
        if m > l:
            while True:
                iteration += 1
                if iteration > max_iterations:
                    raise ConvergenceError(l, max_iterations)

                # Implicit shift.
                g = d[l]
                p = (d[l + 1] - g) / (2.0 * e[l])
                r = math.hypot(p, 1.0)
                if p < 0:
                    r = -r
                d[l] = e[l] / (p + r)
                d[l + 1] = e[l] * (p + r)
                dl1 = d[l + 1]
                h = g - d[l]
                d[l + 2 :] -= h
                f += h

                # Implicit QL transformation.
                p = d[m]
                c = 1.0
                c2 = c
                c3 = c
                el1 = e[l + 1]
                s = 0.0
                s2 = 0.0
                for i in range(m - 1, l - 1, -1):
                    c3 = c2
                    c2 = c
                    s2 = s
                    g = c * e[i]
                    h = c * p
                    r = math.hypot(p, e[i])
                    e[i + 1] = s * r
                    s = e[i] / r
                    c = p / r
                    p = c * d[i] - s * g
                    d[i + 1] = h + s * (c * g + s * d[i])

                    # Accumulate transformation.
                    column = V[:, i + 1].copy()
                    V[:, i + 1] = s * V[:, i] + c * column
                    V[:, i] = c * V[:, i] - s * column

                p = -s * s2 * c3 * el1 * e[l] / dl1
                e[l] = s * p
                d[l] = c * p

                if abs(e[l]) <= eps * tst1:
                    break

        d[l] += f
        e[l] = 0.0
        total += iteration

        if verbose > 1:
            warnings.warn(
                f"QL: eigenvalue {l} converged after {iteration} iterations",
                RuntimeWarning,
                stacklevel=2,
            )

    # Sort eigenvalues and corresponding vectors.
    for i in range(n - 1):
        k = i + int(np.argmin(d[i:]))
        if k != i:
            d[i], d[k] = d[k], d[i]
            V[:, [i, k]] = V[:, [k, i]]

    return d, V, total
