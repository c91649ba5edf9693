"""
Shared compute infrastructure for PyLM.

Timing utilities and linear algebra kernels shared by the model
backends. Domain-specific backends live in {domain}/backends/.
"""

from pylm.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
