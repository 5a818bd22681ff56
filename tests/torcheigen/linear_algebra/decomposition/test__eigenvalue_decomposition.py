"""Tests for eigenvalue decomposition."""

import pytest
import torch

from torcheigen.linear_algebra.decomposition import (
    ConvergenceError,
    GeneralEigenvalueDecompositionResult,
    SymmetricEigenvalueDecompositionResult,
    eigenvalue_decomposition,
)
from torcheigen.linear_algebra.decomposition._result_types import (
    block_diagonal,
)


def assert_eigen_residual(a, result, factor=1000):
    """Check ||AV - VD||_1 <= factor * eps * max(||AV||_1, ||VD||_1)."""
    AV = a @ result.V
    VD = result.V @ result.D
    eps = torch.finfo(a.dtype).eps
    norm_av = torch.linalg.matrix_norm(AV, ord=1)
    norm_vd = torch.linalg.matrix_norm(VD, ord=1)
    residual = torch.linalg.matrix_norm(AV - VD, ord=1)
    assert residual <= factor * eps * max(norm_av, norm_vd), (
        f"||AV - VD||_1 = {residual.item():.3e}"
    )


def assert_conjugate_pairs(result):
    """Complex eigenvalues come in adjacent pairs, positive imaginary first."""
    re = result.real_eigenvalues
    im = result.imag_eigenvalues
    n = re.shape[0]
    i = 0
    while i < n:
        if im[i] != 0.0:
            assert i < n - 1, "unpaired complex eigenvalue"
            assert im[i] > 0.0
            assert re[i] == re[i + 1]
            assert im[i + 1] == -im[i]
            i += 2
        else:
            i += 1


def sort_parts(t):
    return torch.sort(t.real).values, torch.sort(t.imag).values


class TestEigenvalueDecomposition:
    """Tests for eigenvalue decomposition."""

    def test_symmetric_3x3(self):
        """Test the symmetric path on a small positive definite matrix."""
        a = torch.tensor(
            [
                [4.0, 1.0, 1.0],
                [1.0, 2.0, 3.0],
                [1.0, 3.0, 6.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        assert isinstance(result, SymmetricEigenvalueDecompositionResult)
        assert result.is_symmetric
        assert result.info.item() == 0
        assert_eigen_residual(a, result)

        re = result.real_eigenvalues
        assert torch.all(re[:-1] <= re[1:])
        assert torch.all(result.imag_eigenvalues == 0.0)

    def test_nonsymmetric_4x4(self):
        """Test the general path on a matrix with complex eigenvalues."""
        a = torch.tensor(
            [
                [0.0, 1.0, 0.0, 0.0],
                [1.0, 0.0, 2e-7, 0.0],
                [0.0, -2e-7, 0.0, 1.0],
                [0.0, 0.0, 1.0, 0.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        assert isinstance(result, GeneralEigenvalueDecompositionResult)
        assert not result.is_symmetric
        assert result.info.item() == 0
        assert_eigen_residual(a, result)
        assert_conjugate_pairs(result)

    def test_shift_matrix(self):
        """Test the nilpotent sub-diagonal shift matrix."""
        a = torch.diag(torch.ones(5, dtype=torch.float64), diagonal=-1)

        result = eigenvalue_decomposition(a)

        assert not result.is_symmetric
        assert torch.all(result.real_eigenvalues.abs() < 0.0032)
        assert torch.all(result.imag_eigenvalues.abs() < 0.0032)

    @pytest.mark.parametrize("n", [1, 2, 5, 8])
    def test_identity(self, n):
        """Test that the identity decomposes into itself."""
        a = torch.eye(n, dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        identity = torch.eye(n, dtype=torch.float64)
        assert result.is_symmetric
        torch.testing.assert_close(
            result.real_eigenvalues, torch.ones(n, dtype=torch.float64)
        )
        torch.testing.assert_close(result.D, identity)
        torch.testing.assert_close(result.V.abs(), identity)

    @pytest.mark.parametrize("n", [20, 27, 34, 40])
    def test_random_symmetric(self, n):
        """Test AV = VD, orthogonality and ordering for random symmetric A."""
        torch.manual_seed(n)
        b = torch.randn(n, n, dtype=torch.float64)
        a = (b + b.mT) / 2

        result = eigenvalue_decomposition(a)

        assert result.is_symmetric
        assert_eigen_residual(a, result)

        identity = torch.eye(n, dtype=torch.float64)
        torch.testing.assert_close(
            result.V @ result.V.mT, identity, rtol=1e-10, atol=1e-10
        )
        re = result.real_eigenvalues
        assert torch.all(re[:-1] <= re[1:])

        torch.testing.assert_close(
            re, torch.linalg.eigvalsh(a), rtol=1e-10, atol=1e-10
        )

    @pytest.mark.parametrize("n", [20, 27, 34, 40])
    def test_random_nonsymmetric(self, n):
        """Test AV = VD and pair ordering for random general A."""
        torch.manual_seed(100 + n)
        a = torch.randn(n, n, dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        assert not result.is_symmetric
        assert_eigen_residual(a, result)
        assert_conjugate_pairs(result)

        expected_real, expected_imag = sort_parts(torch.linalg.eigvals(a))
        actual_real, actual_imag = sort_parts(result.eigenvalues)
        torch.testing.assert_close(
            actual_real, expected_real, rtol=1e-8, atol=1e-8
        )
        torch.testing.assert_close(
            actual_imag, expected_imag, rtol=1e-8, atol=1e-8
        )

    def test_deterministic(self):
        """Test that repeated decompositions are identical."""
        torch.manual_seed(7)
        a = torch.randn(12, 12, dtype=torch.float64)

        first = eigenvalue_decomposition(a)
        second = eigenvalue_decomposition(a)

        assert torch.equal(first.real_eigenvalues, second.real_eigenvalues)
        assert torch.equal(first.imag_eigenvalues, second.imag_eigenvalues)
        assert torch.equal(first.V, second.V)

    def test_input_not_modified(self):
        """Test that the caller's tensor is left untouched."""
        torch.manual_seed(8)
        a = torch.randn(6, 6, dtype=torch.float64)
        original = a.clone()

        eigenvalue_decomposition(a)

        assert torch.equal(a, original)

    def test_rotation_matrix(self):
        """Test a 2x2 rotation with eigenvalues +/- i."""
        a = torch.tensor([[0.0, -1.0], [1.0, 0.0]], dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        torch.testing.assert_close(
            result.real_eigenvalues, torch.zeros(2, dtype=torch.float64)
        )
        torch.testing.assert_close(
            result.imag_eigenvalues,
            torch.tensor([1.0, -1.0], dtype=torch.float64),
        )
        assert_eigen_residual(a, result)

    def test_complex_eigenvector(self):
        """Test that V[:, i] + i V[:, i+1] is an eigenvector for a + ib."""
        torch.manual_seed(9)
        a = torch.randn(8, 8, dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        im = result.imag_eigenvalues
        pairs = torch.nonzero(im > 0).flatten()
        assert pairs.numel() > 0
        for i in pairs.tolist():
            v = torch.complex(result.V[:, i], result.V[:, i + 1])
            lam = result.eigenvalues[i]
            torch.testing.assert_close(
                a.to(torch.complex128) @ v, lam * v, rtol=1e-9, atol=1e-9
            )

    def test_upper_triangular(self):
        """Test a non-symmetric triangular matrix."""
        a = torch.tensor(
            [
                [1.0, 2.0, 3.0],
                [0.0, 4.0, 5.0],
                [0.0, 0.0, 6.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        torch.testing.assert_close(
            torch.sort(result.real_eigenvalues).values,
            torch.tensor([1.0, 4.0, 6.0], dtype=torch.float64),
        )
        assert torch.all(result.imag_eigenvalues == 0.0)
        assert_eigen_residual(a, result)

    def test_1x1_matrix(self):
        """Test with 1x1 matrix (trivial case)."""
        a = torch.tensor([[5.0]], dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        assert result.is_symmetric
        torch.testing.assert_close(
            result.real_eigenvalues, torch.tensor([5.0], dtype=torch.float64)
        )
        torch.testing.assert_close(
            result.V, torch.ones(1, 1, dtype=torch.float64)
        )

    def test_zero_matrix(self):
        """Test that the zero matrix has zero eigenvalues."""
        a = torch.zeros(4, 4, dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        assert torch.all(result.real_eigenvalues == 0.0)
        torch.testing.assert_close(
            result.V @ result.V.mT, torch.eye(4, dtype=torch.float64)
        )

    def test_almost_symmetric_takes_general_path(self):
        """Test that the symmetry test has no tolerance."""
        a = torch.tensor([[1.0, 2.0], [2.0 + 1e-15, 3.0]], dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        assert not result.is_symmetric
        assert_eigen_residual(a, result)

    def test_float32(self):
        """Test with float32 dtype."""
        torch.manual_seed(505)
        a = torch.randn(6, 6, dtype=torch.float32)

        result = eigenvalue_decomposition(a)

        assert result.real_eigenvalues.dtype == torch.float32
        assert result.imag_eigenvalues.dtype == torch.float32
        assert result.V.dtype == torch.float32
        assert_eigen_residual(a, result)

    def test_float32_symmetric(self):
        """Test the symmetric path with float32 dtype."""
        torch.manual_seed(506)
        b = torch.randn(6, 6, dtype=torch.float32)
        a = (b + b.mT) / 2

        result = eigenvalue_decomposition(a)

        assert result.is_symmetric
        assert result.V.dtype == torch.float32
        assert_eigen_residual(a, result)

    def test_integer_input_promoted(self):
        """Test that integer input is promoted to float64."""
        a = torch.tensor([[2, 1], [1, 2]])

        result = eigenvalue_decomposition(a)

        assert result.real_eigenvalues.dtype == torch.float64
        torch.testing.assert_close(
            result.real_eigenvalues,
            torch.tensor([1.0, 3.0], dtype=torch.float64),
        )

    def test_eigenvalues_property(self):
        """Test the complex eigenvalue view."""
        a = torch.tensor([[0.0, -2.0], [2.0, 0.0]], dtype=torch.float64)

        result = eigenvalue_decomposition(a)

        assert result.eigenvalues.dtype == torch.complex128
        torch.testing.assert_close(
            result.eigenvalues,
            torch.tensor([2j, -2j], dtype=torch.complex128),
        )

    def test_invalid_1d_input(self):
        """Test error on 1D input."""
        a = torch.tensor([1.0, 2.0, 3.0])
        with pytest.raises(ValueError, match="must be 2D"):
            eigenvalue_decomposition(a)

    def test_invalid_batched_input(self):
        """Test error on batched input."""
        a = torch.randn(2, 3, 3, dtype=torch.float64)
        with pytest.raises(ValueError, match="must be 2D"):
            eigenvalue_decomposition(a)

    def test_invalid_non_square(self):
        """Test error on non-square input."""
        a = torch.randn(3, 4, dtype=torch.float64)
        with pytest.raises(ValueError, match="must be square"):
            eigenvalue_decomposition(a)

    def test_invalid_empty(self):
        """Test error on 0x0 input."""
        a = torch.empty(0, 0, dtype=torch.float64)
        with pytest.raises(ValueError, match="must be non-empty"):
            eigenvalue_decomposition(a)

    def test_invalid_complex(self):
        """Test error on complex input."""
        a = torch.randn(3, 3, dtype=torch.complex128)
        with pytest.raises(ValueError, match="must be real"):
            eigenvalue_decomposition(a)

    def test_invalid_max_iterations(self):
        """Test error on non-positive iteration cap."""
        a = torch.eye(3, dtype=torch.float64)
        with pytest.raises(ValueError, match="max_iterations must be positive"):
            eigenvalue_decomposition(a, max_iterations=0)


class TestEigenvalueDecompositionConvergence:
    """Tests for the iteration cap."""

    def test_general_raises(self):
        """Test that the QR iteration cap raises ConvergenceError."""
        a = torch.diag(torch.ones(5, dtype=torch.float64), diagonal=-1)

        with pytest.raises(ConvergenceError) as excinfo:
            eigenvalue_decomposition(a, max_iterations=5)

        assert excinfo.value.iterations == 5
        assert 0 <= excinfo.value.index < 6

    def test_general_no_throw(self):
        """Test that throw=False returns NaN outputs and nonzero info."""
        a = torch.diag(torch.ones(5, dtype=torch.float64), diagonal=-1)

        result = eigenvalue_decomposition(a, max_iterations=5, throw=False)

        assert isinstance(result, GeneralEigenvalueDecompositionResult)
        assert result.info.item() > 0
        assert torch.all(torch.isnan(result.real_eigenvalues))
        assert torch.all(torch.isnan(result.V))

    def test_symmetric_raises(self):
        """Test that the QL iteration cap raises ConvergenceError."""
        torch.manual_seed(11)
        b = torch.randn(10, 10, dtype=torch.float64)
        a = (b + b.mT) / 2

        with pytest.raises(ConvergenceError):
            eigenvalue_decomposition(a, max_iterations=1)

    def test_symmetric_no_throw(self):
        """Test that throw=False on the symmetric path returns NaN outputs."""
        torch.manual_seed(11)
        b = torch.randn(10, 10, dtype=torch.float64)
        a = (b + b.mT) / 2

        result = eigenvalue_decomposition(a, max_iterations=1, throw=False)

        assert isinstance(result, SymmetricEigenvalueDecompositionResult)
        assert result.info.item() > 0
        assert torch.all(torch.isnan(result.real_eigenvalues))

    def test_no_throw_verbose_warns(self):
        """Test that a swallowed failure is reported when verbose."""
        a = torch.diag(torch.ones(5, dtype=torch.float64), diagonal=-1)

        with pytest.warns(RuntimeWarning, match="Failed to converge"):
            eigenvalue_decomposition(
                a, max_iterations=5, throw=False, verbose=1
            )


class TestEigenvalueDecompositionVerbose:
    """Tests for diagnostics."""

    def test_silent_by_default(self, recwarn):
        """Test that no warning is emitted with verbose=0."""
        torch.manual_seed(12)
        a = torch.randn(5, 5, dtype=torch.float64)

        eigenvalue_decomposition(a)

        assert not [w for w in recwarn if w.category is RuntimeWarning]

    def test_symmetric_summary(self):
        """Test the summary message of the symmetric path."""
        a = torch.tensor([[2.0, 1.0], [1.0, 2.0]], dtype=torch.float64)

        with pytest.warns(RuntimeWarning, match="Symmetric path"):
            eigenvalue_decomposition(a, verbose=1)

    def test_general_summary(self):
        """Test the summary message of the general path."""
        a = torch.tensor([[0.0, -1.0], [1.0, 0.0]], dtype=torch.float64)

        with pytest.warns(RuntimeWarning, match="General path"):
            eigenvalue_decomposition(a, verbose=1)

    def test_per_deflation_messages(self):
        """Test per-deflation messages at verbose=2."""
        torch.manual_seed(13)
        a = torch.randn(4, 4, dtype=torch.float64)

        with pytest.warns(RuntimeWarning, match="QR: eigenvalue"):
            eigenvalue_decomposition(a, verbose=2)


class TestEigenvalueDecompositionBalance:
    """Tests for balancing on the general path."""

    def test_isolated_eigenvalues(self):
        """Test a matrix where balancing isolates two eigenvalues."""
        a = torch.tensor(
            [
                [5.0, 1.0, 2.0, 3.0],
                [0.0, 1.0, 2.0, 4.0],
                [0.0, 3.0, 1.0, 5.0],
                [0.0, 0.0, 0.0, 7.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a, balance=True)

        root = 6.0**0.5
        expected = torch.tensor(
            [1.0 - root, 1.0 + root, 5.0, 7.0], dtype=torch.float64
        )
        torch.testing.assert_close(
            torch.sort(result.real_eigenvalues).values, expected
        )
        assert_eigen_residual(a, result)

    def test_shift_matrix_exact(self):
        """Test that balancing isolates every eigenvalue of the shift matrix."""
        a = torch.diag(torch.ones(5, dtype=torch.float64), diagonal=-1)

        result = eigenvalue_decomposition(a, balance=True)

        assert torch.all(result.real_eigenvalues == 0.0)
        assert torch.all(result.imag_eigenvalues == 0.0)

    def test_badly_scaled(self):
        """Test that balancing preserves eigenvalues of a badly scaled matrix."""
        torch.manual_seed(14)
        m = torch.randn(6, 6, dtype=torch.float64)
        s = torch.tensor([1e-4, 1e-2, 1.0, 1e2, 1e4, 1e6], dtype=torch.float64)
        a = torch.diag(1.0 / s) @ m @ torch.diag(s)

        balanced = eigenvalue_decomposition(a, balance=True)

        assert_conjugate_pairs(balanced)
        expected_real, expected_imag = sort_parts(torch.linalg.eigvals(m))
        actual_real, actual_imag = sort_parts(balanced.eigenvalues)
        torch.testing.assert_close(
            actual_real, expected_real, rtol=1e-8, atol=1e-8
        )
        torch.testing.assert_close(
            actual_imag, expected_imag, rtol=1e-8, atol=1e-8
        )

    def test_random_balanced_residual(self):
        """Test AV = VD with balancing on random matrices."""
        torch.manual_seed(15)
        a = torch.randn(15, 15, dtype=torch.float64)

        result = eigenvalue_decomposition(a, balance=True)

        assert_eigen_residual(a, result)
        assert_conjugate_pairs(result)

    def test_symmetric_ignores_balance(self):
        """Test that balance has no effect on the symmetric path."""
        a = torch.tensor(
            [[4.0, 1.0, 1.0], [1.0, 2.0, 3.0], [1.0, 3.0, 6.0]],
            dtype=torch.float64,
        )

        plain = eigenvalue_decomposition(a)
        balanced = eigenvalue_decomposition(a, balance=True)

        assert balanced.is_symmetric
        assert torch.equal(plain.V, balanced.V)


class TestEigenvalueDecompositionDegenerate:
    """Tests for repeated and nearly repeated eigenvalues."""

    def test_repeated_complex_pair(self):
        """Test two coupled copies of the same rotation block."""
        a = torch.tensor(
            [
                [0.0, -1.0, 1e-3, 0.0],
                [1.0, 0.0, 0.0, 0.0],
                [0.0, 0.0, 0.0, -1.0],
                [0.0, 0.0, 1.0, 0.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        assert not result.is_symmetric
        assert torch.all(torch.isfinite(result.V))
        assert_conjugate_pairs(result)
        torch.testing.assert_close(
            result.imag_eigenvalues,
            torch.tensor([1.0, -1.0, 1.0, -1.0], dtype=torch.float64),
        )
        assert_eigen_residual(a, result)

    def test_nearly_defective_triangular(self):
        """Test eigenvalues 1e-12 apart, whose vectors need rescaling."""
        a = torch.tensor(
            [
                [1.0, 1.0, 0.0],
                [0.0, 1.0 + 1e-12, 1.0],
                [0.0, 0.0, 1.0 + 2e-12],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        assert torch.all(torch.isfinite(result.V))
        assert result.V.abs().max() <= 1.0
        assert torch.all(result.imag_eigenvalues == 0.0)
        assert_eigen_residual(a, result)


class TestBlockDiagonal:
    """Tests for the block diagonal eigenvalue matrix."""

    def test_layout(self):
        """Test placement of 1x1 and 2x2 blocks."""
        real = torch.tensor([1.0, 2.0, 2.0, 3.0], dtype=torch.float64)
        imag = torch.tensor([0.0, 5.0, -5.0, 0.0], dtype=torch.float64)

        D = block_diagonal(real, imag)

        expected = torch.tensor(
            [
                [1.0, 0.0, 0.0, 0.0],
                [0.0, 2.0, 5.0, 0.0],
                [0.0, -5.0, 2.0, 0.0],
                [0.0, 0.0, 0.0, 3.0],
            ],
            dtype=torch.float64,
        )
        torch.testing.assert_close(D, expected)

    def test_result_property(self):
        """Test that D is synthesized from the eigenvalue sequences."""
        a = torch.tensor(
            [
                [0.0, 1.0, 0.0, 0.0],
                [1.0, 0.0, 2e-7, 0.0],
                [0.0, -2e-7, 0.0, 1.0],
                [0.0, 0.0, 1.0, 0.0],
            ],
            dtype=torch.float64,
        )

        result = eigenvalue_decomposition(a)

        torch.testing.assert_close(
            result.D,
            block_diagonal(result.real_eigenvalues, result.imag_eigenvalues),
        )
        torch.testing.assert_close(
            torch.diagonal(result.D), result.real_eigenvalues
        )
