"""Exception classes for eigenvalue decomposition."""


class EigenvalueDecompositionError(Exception):
    """Base exception for eigenvalue decomposition errors."""

    pass


class ConvergenceError(EigenvalueDecompositionError):
    """Raised when the QL or QR iteration exceeds its iteration cap.

    Attributes
    ----------
    index : int
        0-based index of the eigenvalue being worked on.
    iterations : int
        Iterations spent on it.
    """

    def __init__(self, index: int, iterations: int):
        self.index = index
        self.iterations = iterations
        super().__init__(
            f"Failed to converge for eigenvalue {index} "
            f"after {iterations} iterations"
        )
