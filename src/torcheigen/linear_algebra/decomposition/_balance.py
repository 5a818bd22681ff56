"""Balancing of a general matrix before the eigenvalue computation."""

from typing import Tuple

import numpy as np

RADIX = 2.0


def balance_matrix(a: np.ndarray) -> Tuple[np.ndarray, int, int, np.ndarray]:
    r"""
    Balance a matrix by permutation and diagonal scaling.

    First permutes rows and columns that isolate an eigenvalue: a row whose
    off-diagonal entries (within the current block) are all zero is moved to
    the bottom, a column whose off-diagonal entries are all zero is moved to
    the left. The remaining block ``[low, high]`` is then scaled by powers of
    the radix until each row and the corresponding column have comparable
    1-norms. The result :math:`B = D^{-1} P^T A P D` has the same
    eigenvalues as :math:`A` and a smaller norm, which improves the accuracy
    of the QR iteration for badly scaled matrices.

    Derived from the EISPACK routine balanc (Parlett and Reinsch, Handbook
    for Automatic Computation, Vol. II - Linear Algebra).

    Parameters
    ----------
    a : np.ndarray
        Matrix of shape (n, n). Not modified.

    Returns
    -------
    B : np.ndarray
        Balanced matrix. Rows and columns outside ``[low, high]`` are upper
        triangular.
    low, high : int
        Bounds of the block that still needs the QR iteration.
    scale : np.ndarray
        For ``low <= j <= high`` the scaling factor of row and column ``j``;
        elsewhere the index that row and column ``j`` were exchanged with.
    """
    B = np.array(a, copy=True)
    n = B.shape[0]
    scale = np.ones(n, dtype=B.dtype)
    b2 = RADIX * RADIX

    def exchange(j: int, m: int, k: int, l: int) -> None:
        scale[m] = j
        if j != m:
            B[: l + 1, [j, m]] = B[: l + 1, [m, j]]
            B[[j, m], k:] = B[[m, j], k:]

    k = 0
    l = n - 1

    # Search for rows isolating an eigenvalue and push them down.
    searching = True
    while searching:
        searching = False
        for j in range(l, -1, -1):
            row = np.abs(B[j, : l + 1]).copy()
            row[j] = 0.0
            if not row.any():
                exchange(j, l, k, l)
                if l == 0:
                    return B, k, l, scale
                l -= 1
                searching = True
                break

    # Search for columns isolating an eigenvalue and push them left.
    searching = True
    while searching:
        searching = False
        for j in range(k, l + 1):
            column = np.abs(B[k : l + 1, j]).copy()
            column[j - k] = 0.0
            if not column.any():
                exchange(j, k, k, l)
                k += 1
                searching = True
                break

    scale[k : l + 1] = 1.0

    # Iterative loop for norm reduction.
    noconv = True
    while noconv:
        noconv = False
        for i in range(k, l + 1):
            column = np.abs(B[k : l + 1, i])
            column[i - k] = 0.0
            c = column.sum()
            row = np.abs(B[i, k : l + 1])
            row[i - k] = 0.0
            r = row.sum()

            # Guard against zero c or r due to underflow.
            if c == 0.0 or r == 0.0:
                continue

            g = r / RADIX
            f = 1.0
            s = c + r
            while c < g:
                f *= RADIX
                c *= b2
            g = r * RADIX
            while c >= g:
                f /= RADIX
                c /= b2

            # Now balance.
            if (c + r) / f < 0.95 * s:
                g = 1.0 / f
                scale[i] *= f
                noconv = True
                B[i, k:] *= g
                B[: l + 1, i] *= f

    return B, k, l, scale


def unbalance_eigenvectors(
    V: np.ndarray, low: int, high: int, scale: np.ndarray
) -> np.ndarray:
    """Undo :func:`balance_matrix` on the rows of an eigenvector matrix.

    Derived from the EISPACK routine balbak.
    """
    V = np.array(V, copy=True)
    n = V.shape[0]

    if high != low:
        V[low : high + 1, :] *= scale[low : high + 1, None]

    order = list(range(low - 1, -1, -1)) + list(range(high + 1, n))
    for i in order:
        k = int(scale[i])
        if k != i:
            V[[i, k], :] = V[[k, i], :]

    return V
