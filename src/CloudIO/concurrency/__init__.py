# === NAVMAP v1 ===
# {
#   "module": "CloudIO.concurrency.__init__",
#   "purpose": "Concurrency helpers shared across CloudIO components.",
#   "sections": []
# }
# === /NAVMAP ===

"""
Concurrency helpers shared across CloudIO components.

Currently exposes the process-wide :class:`ConcurrencyBudget` that bounds the
number of simultaneous outbound network operations, shared by region probes
and any downloads issued through the constructed stores.
"""

from .budget import (
    ConcurrencyBudget,
    get_concurrency_budget,
    reset_concurrency_budget,
    with_concurrency_budget,
)

__all__ = [
    "ConcurrencyBudget",
    "get_concurrency_budget",
    "reset_concurrency_budget",
    "with_concurrency_budget",
]
