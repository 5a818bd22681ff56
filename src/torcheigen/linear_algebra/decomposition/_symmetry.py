"""Symmetry classification."""

import torch
from torch import Tensor


def is_symmetric(a: Tensor) -> bool:
    r"""
    Exact symmetry test.

    Returns True when :math:`A_{ij} = A_{ji}` holds elementwise with exact
    floating-point equality. No tolerance is applied: a matrix that is
    symmetric only up to roundoff is classified as non-symmetric and takes
    the general eigenvalue path.

    Parameters
    ----------
    a : Tensor
        Square matrix of shape (n, n).

    Returns
    -------
    bool
        Whether ``a`` equals its transpose.

    Raises
    ------
    ValueError
        If input is not 2D or not square.

    Examples
    --------
    >>> import torch
    >>> from torcheigen.linear_algebra.decomposition import is_symmetric
    >>> is_symmetric(torch.tensor([[1.0, 2.0], [2.0, 3.0]]))
    True
    >>> is_symmetric(torch.tensor([[1.0, 2.0], [2.5, 3.0]]))
    False
    """
    if a.dim() != 2:
        raise ValueError(f"a must be 2D, got {a.dim()}D")
    if a.shape[-2] != a.shape[-1]:
        raise ValueError(f"a must be square, got shape {a.shape}")

    return torch.equal(a, a.mT)


def symmetrize(a: Tensor, uplo: str = "L") -> Tensor:
    """Symmetric matrix built from one triangle of ``a``.

    Only the lower (``uplo="L"``) or upper (``uplo="U"``) triangle is read,
    diagonal included; the other triangle is ignored.
    """
    if uplo == "L":
        triangle = torch.tril(a)
        return triangle + torch.tril(a, diagonal=-1).mT
    if uplo == "U":
        triangle = torch.triu(a)
        return triangle + torch.triu(a, diagonal=1).mT
    raise ValueError(f"uplo must be 'L' or 'U', got {uplo!r}")
