"""Eigenvalue decomposition of a real square matrix."""

import warnings
from typing import Optional

import torch
from torch import Tensor

from torcheigen.linear_algebra.decomposition._balance import (
    balance_matrix,
    unbalance_eigenvectors,
)
from torcheigen.linear_algebra.decomposition._exceptions import (
    ConvergenceError,
)
from torcheigen.linear_algebra.decomposition._hessenberg import (
    orthogonal_hessenberg,
)
from torcheigen.linear_algebra.decomposition._real_schur import (
    francis_qr,
    schur_eigenvectors,
)
from torcheigen.linear_algebra.decomposition._result_types import (
    EigenvalueDecompositionResult,
    GeneralEigenvalueDecompositionResult,
    SymmetricEigenvalueDecompositionResult,
)
from torcheigen.linear_algebra.decomposition._symmetry import (
    is_symmetric,
    symmetrize,
)
from torcheigen.linear_algebra.decomposition._tridiagonal import (
    householder_tridiagonal,
)
from torcheigen.linear_algebra.decomposition._tridiagonal_ql import (
    tridiagonal_ql,
)


def _validate(a: Tensor) -> Tensor:
    if a.dim() != 2:
        raise ValueError(f"a must be 2D, got {a.dim()}D")
    if a.shape[-2] != a.shape[-1]:
        raise ValueError(f"a must be square, got shape {a.shape}")
    if a.shape[-1] == 0:
        raise ValueError("a must be non-empty")
    if a.is_complex():
        raise ValueError(f"a must be real, got dtype {a.dtype}")

    if a.dtype not in (torch.float32, torch.float64):
        a = a.to(torch.float64)

    return a.detach()


def _max_iterations(max_iterations: Optional[int], n: int) -> int:
    if max_iterations is None:
        return 30 * max(10, n)
    if max_iterations < 1:
        raise ValueError(
            f"max_iterations must be positive, got {max_iterations}"
        )
    return max_iterations


def _failed(result_type, a: Tensor, error: ConvergenceError):
    n = a.shape[-1]
    nan = torch.full((n,), float("nan"), dtype=a.dtype, device=a.device)
    return result_type(
        real_eigenvalues=nan,
        imag_eigenvalues=nan.clone(),
        V=torch.full((n, n), float("nan"), dtype=a.dtype, device=a.device),
        info=torch.tensor(error.index + 1, dtype=torch.int32, device=a.device),
    )


def _symmetric(
    a: Tensor, max_iterations: int, throw: bool, verbose: int
) -> SymmetricEigenvalueDecompositionResult:
    try:
        d, e, V = householder_tridiagonal(a.cpu().numpy())
        d, V, iterations = tridiagonal_ql(
            d, e, V, max_iterations=max_iterations, verbose=verbose
        )
    except ConvergenceError as error:
        if throw:
            raise
        if verbose > 0:
            warnings.warn(str(error), RuntimeWarning, stacklevel=3)
        return _failed(SymmetricEigenvalueDecompositionResult, a, error)

    if verbose > 0:
        warnings.warn(
            f"Symmetric path: converged in {iterations} QL iterations",
            RuntimeWarning,
            stacklevel=3,
        )

    return SymmetricEigenvalueDecompositionResult(
        real_eigenvalues=torch.from_numpy(d).to(a.device),
        imag_eigenvalues=torch.zeros_like(a[0]),
        V=torch.from_numpy(V).to(a.device),
        info=torch.tensor(0, dtype=torch.int32, device=a.device),
    )


def _general(
    a: Tensor, balance: bool, max_iterations: int, throw: bool, verbose: int
) -> GeneralEigenvalueDecompositionResult:
    A = a.cpu().numpy()
    n = A.shape[0]
    low, high = 0, n - 1
    if balance:
        A, low, high, scale = balance_matrix(A)

    try:
        H, Q = orthogonal_hessenberg(A, low, high)
        form = francis_qr(
            H,
            Q,
            low=low,
            high=high,
            max_iterations=max_iterations,
            verbose=verbose,
        )
    except ConvergenceError as error:
        if throw:
            raise
        if verbose > 0:
            warnings.warn(str(error), RuntimeWarning, stacklevel=3)
        return _failed(GeneralEigenvalueDecompositionResult, a, error)

    V = schur_eigenvectors(form, low=low, high=high)
    if balance:
        V = unbalance_eigenvectors(V, low, high, scale)

    if verbose > 0:
        warnings.warn(
            f"General path: converged in {form.iterations} QR iterations",
            RuntimeWarning,
            stacklevel=3,
        )

    return GeneralEigenvalueDecompositionResult(
        real_eigenvalues=torch.from_numpy(form.wr).to(a.device),
        imag_eigenvalues=torch.from_numpy(form.wi).to(a.device),
        V=torch.from_numpy(V).to(a.device),
        info=torch.tensor(0, dtype=torch.int32, device=a.device),
    )


def eigenvalue_decomposition(
    a: Tensor,
    *,
    balance: bool = False,
    max_iterations: Optional[int] = None,
    throw: bool = True,
    verbose: int = 0,
) -> EigenvalueDecompositionResult:
    r"""
    Eigenvalue decomposition of a real square matrix.

    Checks :math:`A` for exact symmetry and dispatches to one of two
    algorithms:

    - **symmetric** :math:`A`: Householder tridiagonalization followed by
      the implicit-shift QL iteration. :math:`A = V D V^T` with :math:`D`
      diagonal, :math:`V` orthogonal and the eigenvalues in ascending order.
    - **general** :math:`A`: orthogonal reduction to Hessenberg form, the
      Francis double-shift QR iteration to real Schur form, and
      back-substitution for the eigenvectors. :math:`A V = V D` with
      :math:`D` block diagonal.

    In both cases :math:`V` is real. A complex pair :math:`a \pm ib` is
    stored at adjacent indices with the positive imaginary part first, and
    the two corresponding columns of :math:`V` are the real and imaginary
    parts of the eigenvector for :math:`a + ib`.

    Parameters
    ----------
    a : Tensor
        Square matrix of shape (n, n), n >= 1. Must be real. float32 and
        float64 are preserved; other real dtypes are promoted to float64.
    balance : bool
        Balance a non-symmetric matrix (permutation and power-of-two
        scaling) before the reduction. Improves accuracy for badly scaled
        matrices. Ignored for symmetric input. Default is False.
    max_iterations : int, optional
        Iterations allowed per deflation step before giving up. Default is
        ``30 * max(10, n)``, far above what convergent inputs need.
    throw : bool
        If True (default), raise :class:`ConvergenceError` when the
        iteration fails to converge. If False, return a result whose
        tensors are NaN and whose ``info`` is the 1-based index of the
        eigenvalue that failed.
    verbose : int
        Verbosity level. 0 = silent, 1 = summary, 2 = per deflation.
        Uses warnings.warn() for messages (not print).

    Returns
    -------
    SymmetricEigenvalueDecompositionResult or GeneralEigenvalueDecompositionResult
        A named tuple containing:

        - **real_eigenvalues** (*Tensor*) - shape (n,).
        - **imag_eigenvalues** (*Tensor*) - shape (n,), zero for symmetric
          input.
        - **V** (*Tensor*) - eigenvectors as columns, shape (n, n).
        - **info** (*Tensor*) - 0 indicates success.

        and the properties ``is_symmetric``, ``D`` (block diagonal
        eigenvalue matrix) and ``eigenvalues`` (complex).

    Raises
    ------
    ValueError
        If input is not 2D, not square, empty or complex, or if
        ``max_iterations`` is not positive.
    ConvergenceError
        If the iteration fails to converge and ``throw`` is True.

    Notes
    -----
    The general-path eigenvector matrix may be badly conditioned or even
    singular, so :math:`A = V D V^{-1}` holds only as well as :math:`V` is
    conditioned. The symmetry test is exact: a matrix that is symmetric only
    up to roundoff takes the general path. Use
    :func:`symmetric_eigenvalue_decomposition` to force the symmetric path.

    Examples
    --------
    >>> import torch
    >>> from torcheigen.linear_algebra.decomposition import eigenvalue_decomposition
    >>> a = torch.tensor([[4., 1., 1.], [1., 2., 3.], [1., 3., 6.]], dtype=torch.float64)
    >>> result = eigenvalue_decomposition(a)
    >>> result.is_symmetric
    True
    >>> torch.allclose(a @ result.V, result.V @ result.D)
    True

    References
    ----------
    .. [1] J.H. Wilkinson and C. Reinsch, "Handbook for Automatic
           Computation, Vol. II - Linear Algebra", Springer, 1971.
    .. [2] B.T. Smith et al., "Matrix Eigensystem Routines - EISPACK Guide",
           Springer, 1976.
    """
    a = _validate(a)
    max_iterations = _max_iterations(max_iterations, a.shape[-1])

    if is_symmetric(a):
        return _symmetric(a, max_iterations, throw, verbose)

    return _general(a, balance, max_iterations, throw, verbose)


def symmetric_eigenvalue_decomposition(
    a: Tensor,
    *,
    uplo: str = "L",
    max_iterations: Optional[int] = None,
    throw: bool = True,
    verbose: int = 0,
) -> SymmetricEigenvalueDecompositionResult:
    r"""
    Eigenvalue decomposition of a matrix declared symmetric.

    Skips the symmetry check and always runs the symmetric algorithm on the
    matrix formed by one triangle of ``a``. The other triangle is never
    read.

    Parameters
    ----------
    a : Tensor
        Square matrix of shape (n, n), n >= 1. Must be real.
    uplo : str
        'L' (default) to use the lower triangle, 'U' to use the upper
        triangle.
    max_iterations : int, optional
        QL iterations allowed per eigenvalue. Default is
        ``30 * max(10, n)``.
    throw : bool
        If True (default), raise :class:`ConvergenceError` on failure;
        otherwise return NaN tensors with nonzero ``info``.
    verbose : int
        Verbosity level. 0 = silent, 1 = summary, 2 = per eigenvalue.

    Returns
    -------
    SymmetricEigenvalueDecompositionResult
        Eigenvalues in ascending order, orthogonal eigenvectors and info.

    Raises
    ------
    ValueError
        If input is not 2D, not square, empty or complex, or if ``uplo`` is
        not 'L' or 'U'.
    ConvergenceError
        If the iteration fails to converge and ``throw`` is True.

    Examples
    --------
    >>> import torch
    >>> from torcheigen.linear_algebra.decomposition import (
    ...     symmetric_eigenvalue_decomposition,
    ... )
    >>> a = torch.tensor([[2., 0.], [1., 2.]], dtype=torch.float64)
    >>> result = symmetric_eigenvalue_decomposition(a)
    >>> torch.allclose(result.real_eigenvalues, torch.tensor([1., 3.], dtype=torch.float64))
    True
    """
    a = _validate(a)
    a = symmetrize(a, uplo)
    max_iterations = _max_iterations(max_iterations, a.shape[-1])

    return _symmetric(a, max_iterations, throw, verbose)
