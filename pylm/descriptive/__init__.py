"""
Descriptive association measures.

Public API:
    cor(x, y, method='pearson')       -> float
    cor_test(x, y, method='pearson')  -> CorTestSolution
"""

from pylm.descriptive.solvers import cor, cor_test
from pylm.descriptive.solution import CorTestSolution
from pylm.descriptive._common import CorTestParams

__all__ = [
    "cor",
    "cor_test",
    "CorTestSolution",
    "CorTestParams",
]
