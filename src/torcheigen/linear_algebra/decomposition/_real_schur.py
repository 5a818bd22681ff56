"""Double-shift QR iteration to real Schur form and Schur eigenvectors."""

import math
import warnings
from typing import NamedTuple, Optional, Tuple

import numpy as np

from torcheigen.linear_algebra.decomposition._exceptions import (
    ConvergenceError,
)


class RealSchurForm(NamedTuple):
    """State handed from the QR iteration to the eigenvector phase.

    T is quasi upper triangular and Q orthogonal with ``A Q = Q T`` up to
    the negligible subdiagonal entries left in T at the deflation points.
    """

    T: np.ndarray  # (n, n) - real Schur form
    Q: np.ndarray  # (n, n) - accumulated orthogonal transform
    wr: np.ndarray  # (n,) - real parts of the eigenvalues
    wi: np.ndarray  # (n,) - imaginary parts of the eigenvalues
    norm: float  # 1-norm of the Hessenberg part of the input
    iterations: int  # total QR iterations


def _cdiv(xr: float, xi: float, yr: float, yi: float) -> Tuple[float, float]:
    """Complex division (xr + i xi) / (yr + i yi) as a real pair."""
    z = complex(xr, xi) / complex(yr, yi)
    return z.real, z.imag


def francis_qr(
    H: np.ndarray,
    V: np.ndarray,
    *,
    low: int = 0,
    high: Optional[int] = None,
    max_iterations: int,
    verbose: int = 0,
) -> RealSchurForm:
    r"""
    Reduce an upper Hessenberg matrix to real Schur form.

    Runs the Francis double-shift implicit QR iteration on the active block
    ``[low, high]`` of ``H``, deflating one root (a real eigenvalue) or two
    roots (a real pair or a complex conjugate pair) whenever a subdiagonal
    entry becomes negligible. Every transformation is applied to ``V`` as
    well, so that on return ``V`` maps the Schur basis back to the basis of
    the matrix ``H`` was reduced from.

    Derived from the Algol procedure hqr2 by Martin and Wilkinson, Handbook
    for Automatic Computation, Vol. II - Linear Algebra, and the
    corresponding EISPACK routine.

    Parameters
    ----------
    H : np.ndarray
        Upper Hessenberg matrix, shape (n, n). Not modified.
    V : np.ndarray
        Transform accumulated by the Hessenberg reduction. Not modified.
    low, high : int
        Active block left by balancing. Defaults to the whole matrix.
    max_iterations : int
        QR iterations allowed per deflation before giving up.
    verbose : int
        2 emits a warning per deflation.

    Returns
    -------
    RealSchurForm

    Raises
    ------
    ConvergenceError
        If a deflation needs more than ``max_iterations`` iterations.

    Notes
    -----
    A subdiagonal entry :math:`h_{l,l-1}` is negligible when
    :math:`|h_{l,l-1}| < \epsilon (|h_{l-1,l-1}| + |h_{l,l}|)`, the sum
    being replaced by the matrix norm when it is zero. After 10 iterations
    without deflation Wilkinson's exceptional shift is applied, after 30 a
    second exceptional shift; both perturb the diagonal to break cycles.
    """
    nn = H.shape[0]
    if high is None:
        high = nn - 1

    H = np.array(H, copy=True)
    V = np.array(V, copy=True)
    wr = np.zeros(nn, dtype=H.dtype)
    wi = np.zeros(nn, dtype=H.dtype)

    eps = np.finfo(H.dtype).eps
    exshift = 0.0
    p = q = r = s = z = 0.0

    # Store roots isolated by balancing and compute matrix norm.
    for i in range(nn):
        if i < low or i > high:
            wr[i] = H[i, i]
            wi[i] = 0.0
    norm = float(np.abs(np.triu(H, -1)).sum())

    if norm == 0.0:
        # Zero Hessenberg part: every eigenvalue is zero.
        return RealSchurForm(H, V, wr, wi, norm, 0)

    n = high
    iteration = 0
    total = 0

    while n >= low:
        # Look for single small sub-diagonal element.
        l = n
        while l > low:
            s = abs(H[l - 1, l - 1]) + abs(H[l, l])
            if s == 0.0:
                s = norm
            if abs(H[l, l - 1]) < eps * s:
                break
            l -= 1

        if l == n:
            # One root found.
            H[n, n] = H[n, n] + exshift
            wr[n] = H[n, n]
            wi[n] = 0.0
            if verbose > 1:
                warnings.warn(
                    f"QR: eigenvalue {n} converged after "
                    f"{iteration} iterations",
                    RuntimeWarning,
                    stacklevel=2,
                )
            n -= 1
            iteration = 0

        elif l == n - 1:
            # Two roots found.
            w = H[n, n - 1] * H[n - 1, n]
            p = (H[n - 1, n - 1] - H[n, n]) / 2.0
            q = p * p + w
            z = math.sqrt(abs(q))
            H[n, n] = H[n, n] + exshift
            H[n - 1, n - 1] = H[n - 1, n - 1] + exshift
            x = H[n, n]

            if q >= 0:
                # Real pair.
                if p >= 0:
                    z = p + z
                else:
                    z = p - z
                wr[n - 1] = x + z
                wr[n] = wr[n - 1]
                if z != 0.0:
                    wr[n] = x - w / z
                wi[n - 1] = 0.0
                wi[n] = 0.0
                x = H[n, n - 1]
                s = abs(x) + abs(z)
                p = x / s
                q = z / s
                r = math.sqrt(p * p + q * q)
                p = p / r
                q = q / r

                # Row modification.
                row = H[n - 1, n - 1 :].copy()
                H[n - 1, n - 1 :] = q * row + p * H[n, n - 1 :]
                H[n, n - 1 :] = q * H[n, n - 1 :] - p * row

                # Column modification.
                column = H[: n + 1, n - 1].copy()
                H[: n + 1, n - 1] = q * column + p * H[: n + 1, n]
                H[: n + 1, n] = q * H[: n + 1, n] - p * column

                # Accumulate transformations.
                rows = slice(low, high + 1)
                column = V[rows, n - 1].copy()
                V[rows, n - 1] = q * column + p * V[rows, n]
                V[rows, n] = q * V[rows, n] - p * column
            else:
                # Complex pair.
                wr[n - 1] = x + p
                wr[n] = x + p
                wi[n - 1] = z
                wi[n] = -z

            if verbose > 1:
                warnings.warn(
                    f"QR: eigenvalues {n - 1}, {n} converged after "
                    f"{iteration} iterations",
                    RuntimeWarning,
                    stacklevel=2,
                )
            n -= 2
            iteration = 0

        else:
            # No convergence yet. Form shift.
            x = H[n, n]
            y = 0.0
            w = 0.0
            if l < n:
                y = H[n - 1, n - 1]
                w = H[n, n - 1] * H[n - 1, n]

            # Wilkinson's original ad hoc shift.
            if iteration == 10:
                exshift += x
                for i in range(low, n + 1):
                    H[i, i] -= x
                s = abs(H[n, n - 1]) + abs(H[n - 1, n - 2])
                x = y = 0.75 * s
                w = -0.4375 * s * s

            # Second ad hoc shift.
            if iteration == 30:
                s = (y - x) / 2.0
                s = s * s + w
                if s > 0:
                    s = math.sqrt(s)
                    if y < x:
                        s = -s
                    s = x - w / ((y - x) / 2.0 + s)
                    for i in range(low, n + 1):
                        H[i, i] -= s
                    exshift += s
                    x = y = w = 0.964

            iteration += 1
            total += 1
            if iteration > max_iterations:
                raise ConvergenceError(n, max_iterations)

            # Look for two consecutive small sub-diagonal elements.
            m = n - 2
            while m >= l:
                z = H[m, m]
                r = x - z
                s = y - z
                p = (r * s - w) / H[m + 1, m] + H[m, m + 1]
                q = H[m + 1, m + 1] - z - r - s
                r = H[m + 2, m + 1]
                s = abs(p) + abs(q) + abs(r)
                p = p / s
                q = q / s
                r = r / s
                if m == l:
                    break
                if abs(H[m, m - 1]) * (abs(q) + abs(r)) < eps * (
                    abs(p)
                    * (abs(H[m - 1, m - 1]) + abs(z) + abs(H[m + 1, m + 1]))
                ):
                    break
                m -= 1

            for i in range(m + 2, n + 1):
                H[i, i - 2] = 0.0
                if i > m + 2:
                    H[i, i - 3] = 0.0

            # Double QR step involving rows l:n and columns m:n.
            for k in range(m, n):
                notlast = k != n - 1
                if k != m:
                    p = H[k, k - 1]
                    q = H[k + 1, k - 1]
                    r = H[k + 2, k - 1] if notlast else 0.0
                    x = abs(p) + abs(q) + abs(r)
                    if x == 0.0:
                        continue
                    p = p / x
                    q = q / x
                    r = r / x

                s = math.sqrt(p * p + q * q + r * r)
                if p < 0:
                    s = -s
                if s != 0:
                    if k != m:
                        H[k, k - 1] = -s * x
                    elif l != m:
                        H[k, k - 1] = -H[k, k - 1]
                    p = p + s
                    x = p / s
                    y = q / s
                    z = r / s
                    q = q / p
                    r = r / p

                    # Row modification.
                    v = H[k, k:] + q * H[k + 1, k:]
                    if notlast:
                        v = v + r * H[k + 2, k:]
                        H[k + 2, k:] -= v * z
                    H[k, k:] -= v * x
                    H[k + 1, k:] -= v * y

                    # Column modification.
                    top = min(n, k + 3) + 1
                    v = x * H[:top, k] + y * H[:top, k + 1]
                    if notlast:
                        v = v + z * H[:top, k + 2]
                        H[:top, k + 2] -= v * r
                    H[:top, k] -= v
                    H[:top, k + 1] -= v * q

                    # Accumulate transformations.
                    v = x * V[low : high + 1, k] + y * V[low : high + 1, k + 1]
                    if notlast:
                        v = v + z * V[low : high + 1, k + 2]
                        V[low : high + 1, k + 2] -= v * r
                    V[low : high + 1, k] -= v
                    V[low : high + 1, k + 1] -= v * q

    return RealSchurForm(H, V, wr, wi, norm, total)


def schur_eigenvectors(
    form: RealSchurForm,
    *,
    low: int = 0,
    high: Optional[int] = None,
) -> np.ndarray:
    r"""
    Eigenvectors from a real Schur form.

    Back-substitutes for the eigenvectors of the quasi-triangular ``T`` from
    the bottom row upwards, then multiplies them by ``Q`` to obtain the
    eigenvectors of the original matrix. A real eigenvalue yields one real
    column. A complex pair ``a ± ib`` at indices ``n - 1, n`` yields two
    columns holding the real and imaginary parts of the eigenvector for
    ``a + ib``.

    Parameters
    ----------
    form : RealSchurForm
        Output of :func:`francis_qr`. Not modified.
    low, high : int
        Active block used by :func:`francis_qr`.

    Returns
    -------
    np.ndarray
        Eigenvector matrix of shape (n, n).

    Notes
    -----
    Zero pivots are replaced by :math:`\epsilon \lVert H \rVert` so that
    singular triangular systems still produce finite vectors. A column is
    rescaled whenever its largest entry :math:`t` satisfies
    :math:`\epsilon t^2 > 1`, which keeps later products from overflowing.
    """
    H = np.array(form.T, copy=True)
    V = np.array(form.Q, copy=True)
    d = form.wr
    e = form.wi
    norm = form.norm

    nn = H.shape[0]
    if high is None:
        high = nn - 1

    if norm == 0.0:
        return V

    eps = np.finfo(H.dtype).eps
    z = s = 0.0

    # Backsubstitute to find vectors of upper triangular form.
    for n in range(nn - 1, -1, -1):
        p = d[n]
        q = e[n]

        if q == 0:
            # Real vector.
            l = n
            H[n, n] = 1.0
            for i in range(n - 1, -1, -1):
                w = H[i, i] - p
                r = np.dot(H[i, l : n + 1], H[l : n + 1, n])
                if e[i] < 0.0:
                    z = w
                    s = r
                else:
                    l = i
                    if e[i] == 0.0:
                        if w != 0.0:
                            H[i, n] = -r / w
                        else:
                            H[i, n] = -r / (eps * norm)
                    else:
                        # Solve real equations.
                        x = H[i, i + 1]
                        y = H[i + 1, i]
                        q = (d[i] - p) * (d[i] - p) + e[i] * e[i]
                        t = (x * s - z * r) / q
                        H[i, n] = t
                        if abs(x) > abs(z):
                            H[i + 1, n] = (-r - w * t) / x
                        else:
                            H[i + 1, n] = (-s - y * t) / z

                    # Overflow control.
                    t = abs(H[i, n])
                    if (eps * t) * t > 1:
                        H[i : n + 1, n] /= t

        elif q < 0:
            # Complex vector.
            l = n - 1

            # Last vector component imaginary so matrix is triangular.
            if abs(H[n, n - 1]) > abs(H[n - 1, n]):
                H[n - 1, n - 1] = q / H[n, n - 1]
                H[n - 1, n] = -(H[n, n] - p) / H[n, n - 1]
            else:
                H[n - 1, n - 1], H[n - 1, n] = _cdiv(
                    0.0, -H[n - 1, n], H[n - 1, n - 1] - p, q
                )
            H[n, n - 1] = 0.0
            H[n, n] = 1.0

            for i in range(n - 2, -1, -1):
                ra = np.dot(H[i, l : n + 1], H[l : n + 1, n - 1])
                sa = np.dot(H[i, l : n + 1], H[l : n + 1, n])
                w = H[i, i] - p

                if e[i] < 0.0:
                    z = w
                    r = ra
                    s = sa
                else:
                    l = i
                    if e[i] == 0:
                        H[i, n - 1], H[i, n] = _cdiv(-ra, -sa, w, q)
                    else:
                        # Solve complex equations.
                        x = H[i, i + 1]
                        y = H[i + 1, i]
                        vr = (d[i] - p) * (d[i] - p) + e[i] * e[i] - q * q
                        vi = (d[i] - p) * 2.0 * q
                        if vr == 0.0 and vi == 0.0:
                            vr = (
                                eps
                                * norm
                                * (abs(w) + abs(q) + abs(x) + abs(y) + abs(z))
                            )
                        H[i, n - 1], H[i, n] = _cdiv(
                            x * r - z * ra + q * sa,
                            x * s - z * sa - q * ra,
                            vr,
                            vi,
                        )
                        if abs(x) > (abs(z) + abs(q)):
                            H[i + 1, n - 1] = (
                                -ra - w * H[i, n - 1] + q * H[i, n]
                            ) / x
                            H[i + 1, n] = (
                                -sa - w * H[i, n] - q * H[i, n - 1]
                            ) / x
                        else:
                            H[i + 1, n - 1], H[i + 1, n] = _cdiv(
                                -r - y * H[i, n - 1], -s - y * H[i, n], z, q
                            )

                    # Overflow control.
                    t = max(abs(H[i, n - 1]), abs(H[i, n]))
                    if (eps * t) * t > 1:
                        H[i : n + 1, n - 1] /= t
                        H[i : n + 1, n] /= t

    # Vectors of isolated roots.
    for i in range(nn):
        if i < low or i > high:
            V[i, i:] = H[i, i:]

    # Back transformation to get eigenvectors of original matrix.
    for j in range(nn - 1, low - 1, -1):
        k = min(j, high) + 1
        V[low : high + 1, j] = V[low : high + 1, low:k] @ H[low:k, j]

    return V
