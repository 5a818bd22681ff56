"""Benchmarks for eigenvalue decomposition.

This module benchmarks torcheigen eigenvalue decompositions (symmetric and
general paths, with and without balancing) against torch.linalg.eigh and
torch.linalg.eig, and reports the residual ||AV - VD||_1 of each.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import numpy as np
import torch

from torcheigen.linear_algebra.decomposition import (
    eigenvalue_decomposition,
    schur_decomposition,
)


def benchmark(
    func: Callable,
    *args: Any,
    warmup: int = 3,
    iterations: int = 10,
    **kwargs: Any,
) -> dict[str, float]:
    """Run a simple benchmark on a function.

    Parameters
    ----------
    func : callable
        Function to benchmark.
    *args : Any
        Positional arguments to pass to func.
    warmup : int, optional
        Number of warmup iterations. Default is 3.
    iterations : int, optional
        Number of timed iterations. Default is 10.
    **kwargs : Any
        Keyword arguments to pass to func.

    Returns
    -------
    dict
        Timing statistics in seconds: 'mean', 'std', 'min' and 'max'.
    """
    for _ in range(warmup):
        func(*args, **kwargs)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times.append(time.perf_counter() - start)

    return {
        "mean": np.mean(times),
        "std": np.std(times),
        "min": np.min(times),
        "max": np.max(times),
    }


def format_time(seconds: float) -> str:
    """Format time in appropriate units."""
    if seconds < 1e-6:
        return f"{seconds * 1e9:.3f}ns"
    elif seconds < 1e-3:
        return f"{seconds * 1e6:.3f}us"
    elif seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    else:
        return f"{seconds:.3f}s"


def print_comparison(
    name: str,
    times: dict[str, dict[str, float]],
) -> None:
    """Print timings for several methods relative to the fastest."""
    print(f"\n{name}")
    print("-" * len(name))

    fastest_time = min(t["mean"] for t in times.values())

    for method_name, t in times.items():
        slowdown = t["mean"] / fastest_time
        if slowdown > 1.01:
            suffix = f" ({slowdown:.2f}x slower)"
        else:
            suffix = " (fastest)"
        print(
            f"  {method_name}: {format_time(t['mean'])}"
            f" +/- {format_time(t['std'])}{suffix}"
        )


def relative_residual(
    a: torch.Tensor, V: torch.Tensor, D: torch.Tensor
) -> float:
    """||AV - VD||_1 / (eps * max(||AV||_1, ||VD||_1))."""
    AV = a @ V
    VD = V @ D
    eps = torch.finfo(a.dtype).eps
    scale = max(
        torch.linalg.matrix_norm(AV, ord=1),
        torch.linalg.matrix_norm(VD, ord=1),
    )
    return (torch.linalg.matrix_norm(AV - VD, ord=1) / (eps * scale)).item()


class BenchEigenvalueDecomposition:
    """Benchmarks for eigenvalue decomposition."""

    def __init__(self, warmup: int = 3, iterations: int = 10):
        self.warmup = warmup
        self.iterations = iterations

    def _bench(
        self, func: Callable, *args: Any, **kwargs: Any
    ) -> dict[str, float]:
        return benchmark(
            func,
            *args,
            warmup=self.warmup,
            iterations=self.iterations,
            **kwargs,
        )

    def bench_symmetric(self, n: int = 64, seed: int = 0) -> None:
        """Benchmark the symmetric path against torch.linalg.eigh."""
        torch.manual_seed(seed)
        b = torch.randn(n, n, dtype=torch.float64)
        a = (b + b.mT) / 2

        times = {
            "torcheigen": self._bench(eigenvalue_decomposition, a),
            "torch.linalg.eigh": self._bench(torch.linalg.eigh, a),
        }
        print_comparison(f"Symmetric (n={n})", times)

        result = eigenvalue_decomposition(a)
        print(
            f"  residual: {relative_residual(a, result.V, result.D):.1f} eps"
        )

    def bench_general(self, n: int = 64, seed: int = 0) -> None:
        """Benchmark the general path against torch.linalg.eig."""
        torch.manual_seed(seed)
        a = torch.randn(n, n, dtype=torch.float64)

        times = {
            "torcheigen": self._bench(eigenvalue_decomposition, a),
            "torcheigen (balance)": self._bench(
                eigenvalue_decomposition, a, balance=True
            ),
            "torch.linalg.eig": self._bench(torch.linalg.eig, a),
        }
        print_comparison(f"General (n={n})", times)

        result = eigenvalue_decomposition(a)
        print(
            f"  residual: {relative_residual(a, result.V, result.D):.1f} eps"
        )

    def bench_badly_scaled(self, n: int = 32, seed: int = 0) -> None:
        """Compare residuals with and without balancing."""
        torch.manual_seed(seed)
        m = torch.randn(n, n, dtype=torch.float64)
        s = torch.logspace(-6, 6, n, dtype=torch.float64)
        a = torch.diag(1.0 / s) @ m @ torch.diag(s)

        name = f"Badly scaled (n={n})"
        print(f"\n{name}")
        print("-" * len(name))
        for balance in (False, True):
            result = eigenvalue_decomposition(a, balance=balance)
            residual = relative_residual(a, result.V, result.D)
            print(f"  balance={balance}: residual {residual:.1f} eps")

    def bench_schur(self, n: int = 64, batch_size: int = 8) -> None:
        """Benchmark batched real Schur decomposition."""
        torch.manual_seed(0)
        a = torch.randn(batch_size, n, n, dtype=torch.float64)

        times = {
            "torcheigen": self._bench(schur_decomposition, a),
        }
        print_comparison(f"Schur (batch={batch_size}, n={n})", times)

    def run_all(self) -> None:
        """Run all benchmarks."""
        print("=" * 60)
        print("EIGENVALUE DECOMPOSITION BENCHMARKS")
        print("=" * 60)

        self.bench_symmetric()
        self.bench_general()
        self.bench_badly_scaled()
        self.bench_schur()

    def run_scaling(self) -> None:
        """Run scaling benchmarks over the matrix size."""
        print("=" * 60)
        print("SCALING BENCHMARKS")
        print("=" * 60)

        print("\n--- Matrix Size Scaling (symmetric) ---")
        for n in [16, 32, 64, 128]:
            self.bench_symmetric(n=n)

        print("\n--- Matrix Size Scaling (general) ---")
        for n in [16, 32, 64, 128]:
            self.bench_general(n=n)


if __name__ == "__main__":
    bench = BenchEigenvalueDecomposition(warmup=2, iterations=5)
    bench.run_all()
    print("\n")
    bench.run_scaling()
