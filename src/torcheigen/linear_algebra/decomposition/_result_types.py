from typing import NamedTuple, Union

import torch
from torch import Tensor


def block_diagonal(real: Tensor, imag: Tensor) -> Tensor:
    """Block diagonal eigenvalue matrix from real and imaginary parts.

    Real eigenvalues occupy 1-by-1 blocks. A conjugate pair ``a ± ib``
    stored at indices ``i, i + 1`` (positive imaginary part first) becomes
    the 2-by-2 block ``[[a, b], [-b, a]]``.
    """
    n = real.shape[-1]
    D = torch.diag_embed(real)

    upper = torch.nonzero(imag > 0).flatten()
    upper = upper[upper < n - 1]
    D[upper, upper + 1] = imag[upper]

    lower = torch.nonzero(imag < 0).flatten()
    lower = lower[lower > 0]
    D[lower, lower - 1] = imag[lower]

    return D


class SymmetricEigenvalueDecompositionResult(NamedTuple):
    """Result of the eigenvalue decomposition of a symmetric matrix.

    A = V D V^T with D diagonal and V orthogonal. The eigenvalues are in
    ascending order and the imaginary parts are identically zero.
    """

    real_eigenvalues: Tensor  # (n,) - ascending
    imag_eigenvalues: Tensor  # (n,) - zeros
    V: Tensor  # (n, n) - orthogonal eigenvectors (columns)
    info: Tensor  # () - int, 0 indicates success

    @property
    def is_symmetric(self) -> bool:
        return True

    @property
    def D(self) -> Tensor:
        return block_diagonal(self.real_eigenvalues, self.imag_eigenvalues)

    @property
    def eigenvalues(self) -> Tensor:
        return torch.complex(self.real_eigenvalues, self.imag_eigenvalues)


class GeneralEigenvalueDecompositionResult(NamedTuple):
    """Result of the eigenvalue decomposition of a non-symmetric matrix.

    A V = V D with D block diagonal: real eigenvalues in 1-by-1 blocks and
    each complex pair ``a ± ib`` in a 2-by-2 block ``[[a, b], [-b, a]]``.
    The eigenvalues are unordered except that conjugate pairs are adjacent
    with the positive imaginary part first.

    V is real but may be badly conditioned or even singular, so the
    validity of A = V D V^{-1} depends on the condition number of V.
    """

    real_eigenvalues: Tensor  # (n,)
    imag_eigenvalues: Tensor  # (n,)
    V: Tensor  # (n, n) - real eigenvector basis (columns)
    info: Tensor  # () - int, 0 indicates success

    @property
    def is_symmetric(self) -> bool:
        return False

    @property
    def D(self) -> Tensor:
        return block_diagonal(self.real_eigenvalues, self.imag_eigenvalues)

    @property
    def eigenvalues(self) -> Tensor:
        return torch.complex(self.real_eigenvalues, self.imag_eigenvalues)


EigenvalueDecompositionResult = Union[
    SymmetricEigenvalueDecompositionResult,
    GeneralEigenvalueDecompositionResult,
]


class HessenbergResult(NamedTuple):
    """Result of Hessenberg decomposition A = QHQ^T.

    H is upper Hessenberg (zeros below the first subdiagonal) and Q is
    orthogonal.
    """

    H: Tensor
    Q: Tensor
    info: Tensor


class SchurDecompositionResult(NamedTuple):
    """Result of Schur decomposition A = QTQ*."""

    T: Tensor
    Q: Tensor
    eigenvalues: Tensor
    info: Tensor
