"""Eigenvalue decomposition of real square matrices.

Functions
---------
eigenvalue_decomposition
    Computes eigenvalues and eigenvectors of a real square matrix A such
    that AV = VD. Symmetric matrices are detected exactly and handled with
    Householder tridiagonalization and the implicit QL algorithm; general
    matrices with Hessenberg reduction and the Francis double-shift QR
    algorithm.

symmetric_eigenvalue_decomposition
    Eigenvalue decomposition of a matrix declared symmetric. Reads one
    triangle and skips the symmetry check.

is_symmetric
    Exact symmetry test used to choose the algorithm.

hessenberg
    Computes the Hessenberg decomposition A = QHQ^T where Q is orthogonal
    and H is upper Hessenberg (zeros below the first subdiagonal).

schur_decomposition
    Computes the Schur decomposition A = QTQ* where Q is orthogonal and T is
    quasi-upper-triangular (real) or unitary and upper triangular (complex).

Result Types
------------
SymmetricEigenvalueDecompositionResult
    Named tuple with real_eigenvalues, imag_eigenvalues, V, info.

GeneralEigenvalueDecompositionResult
    Named tuple with real_eigenvalues, imag_eigenvalues, V, info.

EigenvalueDecompositionResult
    Union of the two eigenvalue decomposition results.

HessenbergResult
    Named tuple with H, Q, info.

SchurDecompositionResult
    Named tuple with T, Q, eigenvalues, info.

Exceptions
----------
EigenvalueDecompositionError
    Base exception.

ConvergenceError
    Raised when the QL or QR iteration does not converge.
"""

from torcheigen.linear_algebra.decomposition._eigenvalue_decomposition import (
    eigenvalue_decomposition,
    symmetric_eigenvalue_decomposition,
)
from torcheigen.linear_algebra.decomposition._exceptions import (
    ConvergenceError,
    EigenvalueDecompositionError,
)
from torcheigen.linear_algebra.decomposition._hessenberg import (
    hessenberg,
)
from torcheigen.linear_algebra.decomposition._result_types import (
    EigenvalueDecompositionResult,
    GeneralEigenvalueDecompositionResult,
    HessenbergResult,
    SchurDecompositionResult,
    SymmetricEigenvalueDecompositionResult,
)
from torcheigen.linear_algebra.decomposition._schur_decomposition import (
    schur_decomposition,
)
from torcheigen.linear_algebra.decomposition._symmetry import (
    is_symmetric,
)

__all__ = [
    "ConvergenceError",
    "EigenvalueDecompositionError",
    "EigenvalueDecompositionResult",
    "GeneralEigenvalueDecompositionResult",
    "HessenbergResult",
    "SchurDecompositionResult",
    "SymmetricEigenvalueDecompositionResult",
    "eigenvalue_decomposition",
    "hessenberg",
    "is_symmetric",
    "schur_decomposition",
    "symmetric_eigenvalue_decomposition",
]
