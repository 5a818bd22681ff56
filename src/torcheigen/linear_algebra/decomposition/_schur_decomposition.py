"""Schur decomposition."""

from typing import Optional

import numpy as np
import scipy.linalg
import torch
from torch import Tensor

from torcheigen.linear_algebra.decomposition._eigenvalue_decomposition import (
    _max_iterations,
)
from torcheigen.linear_algebra.decomposition._exceptions import (
    ConvergenceError,
)
from torcheigen.linear_algebra.decomposition._hessenberg import (
    orthogonal_hessenberg,
)
from torcheigen.linear_algebra.decomposition._real_schur import (
    RealSchurForm,
    francis_qr,
)
from torcheigen.linear_algebra.decomposition._result_types import (
    SchurDecompositionResult,
)


def _standard_form(form: RealSchurForm) -> np.ndarray:
    """Zero everything below the 2-by-2 blocks of complex pairs."""
    T = np.triu(form.T, -1)
    for i in range(T.shape[0] - 1):
        if not form.wi[i] > 0:
            T[i + 1, i] = 0.0
    return T


def schur_decomposition(
    a: Tensor,
    *,
    output: str = "real",
    max_iterations: Optional[int] = None,
) -> SchurDecompositionResult:
    r"""
    Schur decomposition.

    Computes the Schur decomposition A = QTQ* where Q is orthogonal (unitary
    for complex output) and T is quasi-upper-triangular (real Schur) or upper
    triangular (complex Schur).

    The real Schur form is the intermediate result of the general
    eigenvalue algorithm: Hessenberg reduction followed by the Francis
    double-shift QR iteration.

    Parameters
    ----------
    a : Tensor
        Input matrix of shape (..., n, n). Must be real.
    output : str
        'real' for real Schur form (quasi-triangular with 2x2 blocks for
        complex conjugate eigenvalue pairs), 'complex' for complex Schur
        form (strictly upper triangular).
    max_iterations : int, optional
        QR iterations allowed per deflation. Default is
        ``30 * max(10, n)``.

    Returns
    -------
    SchurDecompositionResult
        T : Tensor of shape (..., n, n), Schur form
        Q : Tensor of shape (..., n, n), orthogonal (or unitary) matrix
        eigenvalues : Tensor of shape (..., n), eigenvalues (complex), in
            the order of the diagonal blocks of the real Schur form
        info : Tensor of shape (...), int, 0 indicates success. A matrix
            whose iteration fails to converge has info 1 and NaN outputs.

    Raises
    ------
    ValueError
        If input is not at least 2D, not square, or complex, if output is
        not one of the accepted modes, or if max_iterations is not positive.
    """
    if a.dim() < 2:
        raise ValueError(f"a must be at least 2D, got {a.dim()}D")
    if a.shape[-2] != a.shape[-1]:
        raise ValueError(f"a must be square, got shape {a.shape}")
    if a.is_complex():
        raise ValueError(f"a must be real, got dtype {a.dtype}")
    if output not in ("real", "complex"):
        raise ValueError(f"output must be 'real' or 'complex', got {output!r}")

    dtype = a.dtype
    if dtype not in (torch.float32, torch.float64):
        dtype = torch.float64
        a = a.to(dtype)

    batch_shape = a.shape[:-2]
    n = a.shape[-1]
    max_iterations = _max_iterations(max_iterations, n)

    complex_output = output == "complex"
    cdtype = torch.complex128 if dtype == torch.float64 else torch.complex64
    out_dtype = cdtype if complex_output else dtype

    if batch_shape.numel() == 0 or n == 0:
        return SchurDecompositionResult(
            T=torch.empty(a.shape, dtype=out_dtype, device=a.device),
            Q=torch.empty(a.shape, dtype=out_dtype, device=a.device),
            eigenvalues=torch.empty(
                (*batch_shape, n), dtype=cdtype, device=a.device
            ),
            info=torch.zeros(batch_shape, dtype=torch.int32, device=a.device),
        )

    # Flatten batch dimensions for processing
    batch_size = batch_shape.numel()
    a_flat = a.detach().reshape(batch_size, n, n)

    T_list = []
    Q_list = []
    eigenvalues_list = []
    info_list = []

    for i in range(batch_size):
        a_i = a_flat[i].cpu().numpy()
        try:
            H, V = orthogonal_hessenberg(a_i)
            form = francis_qr(H, V, max_iterations=max_iterations)

            T_np = _standard_form(form)
            Q_np = form.Q
            if complex_output:
                T_np, Q_np = scipy.linalg.rsf2csf(T_np, Q_np)

            T_i = torch.from_numpy(np.asarray(T_np)).to(out_dtype)
            Q_i = torch.from_numpy(np.asarray(Q_np)).to(out_dtype)
            eigenvalues_i = torch.complex(
                torch.from_numpy(form.wr), torch.from_numpy(form.wi)
            )
            info_i = 0
        except ConvergenceError:
            T_i = torch.full((n, n), float("nan"), dtype=out_dtype)
            Q_i = torch.full((n, n), float("nan"), dtype=out_dtype)
            eigenvalues_i = torch.full((n,), float("nan"), dtype=cdtype)
            info_i = 1

        T_list.append(T_i)
        Q_list.append(Q_i)
        eigenvalues_list.append(eigenvalues_i)
        info_list.append(info_i)

    T = torch.stack(T_list).reshape(*batch_shape, n, n).to(a.device)
    Q = torch.stack(Q_list).reshape(*batch_shape, n, n).to(a.device)
    eigenvalues = (
        torch.stack(eigenvalues_list).reshape(*batch_shape, n).to(a.device)
    )
    info = torch.tensor(info_list, dtype=torch.int32, device=a.device).reshape(
        batch_shape
    )

    return SchurDecompositionResult(
        T=T, Q=Q, eigenvalues=eigenvalues, info=info
    )
