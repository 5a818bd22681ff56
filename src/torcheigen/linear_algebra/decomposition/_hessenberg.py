"""Hessenberg decomposition."""

import math
from typing import Optional, Tuple

import numpy as np
import torch
from torch import Tensor

from torcheigen.linear_algebra.decomposition._result_types import (
    HessenbergResult,
)


def orthogonal_hessenberg(
    a: np.ndarray,
    low: int = 0,
    high: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    r"""
    Orthogonal reduction to upper Hessenberg form.

    Computes :math:`H = V^T A V` with :math:`H` upper Hessenberg and
    :math:`V` orthogonal, using Householder reflections on the columns
    ``low .. high - 2``. The reflections are first applied to :math:`H`
    alone; :math:`V` is built afterwards from the stored reflection vectors,
    starting from the identity and working backwards, because accumulating
    during the forward pass would overwrite data the reduction still needs.

    Derived from the Algol procedures orthes and ortran by Martin and
    Wilkinson, Handbook for Automatic Computation, Vol. II - Linear Algebra,
    and the corresponding EISPACK routines.

    Parameters
    ----------
    a : np.ndarray
        Matrix of shape (n, n). Not modified.
    low, high : int
        Active block ``[low, high]`` left by balancing. Rows and columns
        outside it must already be triangular. Defaults to the whole matrix.

    Returns
    -------
    H : np.ndarray
        Upper Hessenberg matrix with exact zeros below the subdiagonal.
    V : np.ndarray
        Orthogonal similarity transform.
    """
    n = a.shape[0]
    if high is None:
        high = n - 1

    H = np.array(a, copy=True)
    ort = np.zeros(n, dtype=H.dtype)

    for m in range(low + 1, high):
        # Scale column.
        scale = np.abs(H[m : high + 1, m - 1]).sum()
        if scale != 0.0:
            # Householder transformation.
            ort[m : high + 1] = H[m : high + 1, m - 1] / scale
            h = np.dot(ort[m : high + 1], ort[m : high + 1])
            g = math.sqrt(h)
            if ort[m] > 0:
                g = -g
            h = h - ort[m] * g
            ort[m] = ort[m] - g

            # H = (I - u u^T / h) H (I - u u^T / h)
            u = ort[m : high + 1]
            f = (u @ H[m : high + 1, m:]) / h
            H[m : high + 1, m:] -= np.outer(u, f)

            f = (H[: high + 1, m : high + 1] @ u) / h
            H[: high + 1, m : high + 1] -= np.outer(f, u)

            ort[m] = scale * ort[m]
            H[m, m - 1] = scale * g

    # Accumulate transformations (Algol's ortran).
    V = np.eye(n, dtype=H.dtype)
    for m in range(high - 1, low, -1):
        if H[m, m - 1] != 0.0:
            ort[m + 1 : high + 1] = H[m + 1 : high + 1, m - 1]
            u = ort[m : high + 1]
            g = u @ V[m : high + 1, m : high + 1]
            # Double division avoids possible underflow.
            g = (g / ort[m]) / H[m, m - 1]
            V[m : high + 1, m : high + 1] += np.outer(u, g)

    return np.triu(H, -1), V


def hessenberg(a: Tensor) -> HessenbergResult:
    r"""
    Hessenberg decomposition.

    Computes the Hessenberg decomposition :math:`A = QHQ^T` where :math:`H` is
    upper Hessenberg (has zeros below the first subdiagonal) and :math:`Q` is
    orthogonal.

    The upper Hessenberg form is the first stage of the general eigenvalue
    algorithm: it preserves eigenvalues while reducing the cost of each QR
    iteration from :math:`O(n^3)` to :math:`O(n^2)`.

    Parameters
    ----------
    a : Tensor
        Input matrix of shape (..., n, n). Must be real. Integer and
        low-precision inputs are promoted to float64.

    Returns
    -------
    HessenbergResult
        A named tuple containing:

        - **H** (*Tensor*) - Upper Hessenberg matrix of shape (..., n, n).
          Has zeros below the first subdiagonal.
        - **Q** (*Tensor*) - Orthogonal transformation matrix of shape
          (..., n, n). Satisfies :math:`Q Q^T = Q^T Q = I`.
        - **info** (*Tensor*) - Integer tensor of shape (...). A value of 0
          indicates successful computation.

    Raises
    ------
    ValueError
        If input is not at least 2D, not square, or complex.

    Notes
    -----
    For a matrix :math:`A` of size :math:`n \times n`, the algorithm applies
    :math:`n-2` Householder transformations to reduce :math:`A` to upper
    Hessenberg form. Matrices in the batch are reduced one at a time.

    Examples
    --------
    >>> import torch
    >>> from torcheigen.linear_algebra.decomposition import hessenberg
    >>> a = torch.tensor([[1., 2., 3.], [4., 5., 6.], [7., 8., 9.]])
    >>> result = hessenberg(a)
    >>> torch.allclose(result.Q @ result.H @ result.Q.mT, a, atol=1e-5)
    True
    """
    if a.dim() < 2:
        raise ValueError(f"a must be at least 2D, got {a.dim()}D")
    if a.shape[-2] != a.shape[-1]:
        raise ValueError(f"a must be square, got shape {a.shape}")
    if a.is_complex():
        raise ValueError(f"a must be real, got dtype {a.dtype}")

    if a.dtype not in (torch.float32, torch.float64):
        a = a.to(torch.float64)

    batch_shape = a.shape[:-2]
    n = a.shape[-1]

    info = torch.zeros(batch_shape, dtype=torch.int32, device=a.device)

    if batch_shape.numel() == 0 or n == 0:
        return HessenbergResult(
            H=torch.empty_like(a), Q=torch.empty_like(a), info=info
        )

    a_flat = a.detach().reshape(batch_shape.numel(), n, n)

    H_list = []
    Q_list = []
    for i in range(a_flat.shape[0]):
        H_i, Q_i = orthogonal_hessenberg(a_flat[i].cpu().numpy())
        H_list.append(torch.from_numpy(H_i))
        Q_list.append(torch.from_numpy(Q_i))

    H = torch.stack(H_list).reshape(*batch_shape, n, n).to(a.device)
    Q = torch.stack(Q_list).reshape(*batch_shape, n, n).to(a.device)

    return HessenbergResult(H=H, Q=Q, info=info)
