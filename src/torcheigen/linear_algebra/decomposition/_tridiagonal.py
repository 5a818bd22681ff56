"""Householder reduction of a symmetric matrix to tridiagonal form."""

import math
from typing import Tuple

import numpy as np


def householder_tridiagonal(
    a: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    r"""
    Householder tridiagonalization.

    Reduces a symmetric matrix to symmetric tridiagonal form with a sequence
    of orthogonal Householder reflections, processing rows from last to
    first, and accumulates the reflections into an orthogonal matrix
    :math:`V` such that :math:`V^T A V` is tridiagonal.

    Derived from the Algol procedure tred2 by Bowdler, Martin, Reinsch and
    Wilkinson, Handbook for Automatic Computation, Vol. II - Linear Algebra,
    and the corresponding EISPACK routine.

    Parameters
    ----------
    a : np.ndarray
        Symmetric matrix of shape (n, n), n >= 1. Not modified.

    Returns
    -------
    d : np.ndarray
        Diagonal of the tridiagonal matrix, shape (n,).
    e : np.ndarray
        Subdiagonal of the tridiagonal matrix in ``e[1:]``, shape (n,).
        ``e[0]`` is zero.
    V : np.ndarray
        Orthogonal transform of shape (n, n).

    Notes
    -----
    Each reflection is scaled by the 1-norm of the subvector it annihilates.
    A zero scale means the subvector is already zero and the reflection is
    skipped, so no division by a zero norm can occur.
    """
    n = a.shape[0]
    V = np.array(a, copy=True)
    d = V[n - 1, :].copy()
    e = np.zeros_like(d)

    for i in range(n - 1, 0, -1):
        # Scale to avoid under/overflow.
        scale = np.abs(d[:i]).sum()
        h = 0.0

        if scale == 0.0:
            e[i] = d[i - 1]
            d[:i] = V[i - 1, :i]
            V[i, :i] = 0.0
            V[:i, i] = 0.0
        else:
            # Householder vector.
            d[:i] /= scale
            h = np.dot(d[:i], d[:i])
            f = d[i - 1]
            g = math.sqrt(h)
            if f > 0:
                g = -g
            e[i] = scale * g
            h -= f * g
            d[i - 1] = f - g
            e[:i] = 0.0

            # Similarity transformation of the remaining columns.
            for j in range(i):
                f = d[j]
                V[j, i] = f
                g = e[j] + V[j, j] * f
                g += np.dot(V[j + 1 : i, j], d[j + 1 : i])
                e[j + 1 : i] += V[j + 1 : i, j] * f
                e[j] = g

            e[:i] /= h
            f = np.dot(e[:i], d[:i])
            hh = f / (h + h)
            e[:i] -= hh * d[:i]

            for j in range(i):
                f = d[j]
                g = e[j]
                V[j:i, j] -= f * e[j:i] + g * d[j:i]
                d[j] = V[i - 1, j]
                V[i, j] = 0.0

        d[i] = h

    # Accumulate transformations.
    for i in range(n - 1):
        V[n - 1, i] = V[i, i]
        V[i, i] = 1.0
        h = d[i + 1]
        if h != 0.0:
            d[: i + 1] = V[: i + 1, i + 1] / h
            g = V[: i + 1, i + 1] @ V[: i + 1, : i + 1]
            V[: i + 1, : i + 1] -= np.outer(d[: i + 1], g)
        V[: i + 1, i + 1] = 0.0

    d = V[n - 1, :].copy()
    V[n - 1, :] = 0.0
    V[n - 1, n - 1] = 1.0
    e[0] = 0.0

    return d, e, V
