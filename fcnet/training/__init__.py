"""Training utilities for fcnet.

``pipelines`` is imported explicitly by callers since it depends on the core
package, which itself needs :mod:`.optimizers`.
"""

from . import optimizers

__all__ = ["optimizers"]
