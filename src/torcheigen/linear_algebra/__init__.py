"""Linear algebra operations on PyTorch tensors.

Submodules
----------
decomposition
    Eigenvalue decomposition and its Hessenberg and Schur stages.
"""

from torcheigen.linear_algebra import decomposition

__all__ = ["decomposition"]
