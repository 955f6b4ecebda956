# app/smokecheck/core/types/__init__.py
"""
Public API for smokecheck's value types.

Descriptors flow in from adapters, results flow out of the harness. Both are
immutable pydantic records.
"""

# ═══════════════════════════════════════════════════════════════════════════
# 1. BASE MODELS
# ═══════════════════════════════════════════════════════════════════════════
from .base import CanonicalModel

# ═══════════════════════════════════════════════════════════════════════════
# 2. DESCRIPTORS (Harness Input)
# ═══════════════════════════════════════════════════════════════════════════
from .descriptors import (
    ContainerDescriptor,
    ContainerEndpoint,
    ServiceDescriptor,
)

# ═══════════════════════════════════════════════════════════════════════════
# 3. RESULTS (Harness Output)
# ═══════════════════════════════════════════════════════════════════════════
from .results import (
    CheckResult,
    CheckFailure,
    FailureReason,
    HealthSummary,
    CheckOk,
    CheckErr,
    CheckOutcome,  # Union[CheckOk | CheckErr], discriminated on "status"
)

# ═══════════════════════════════════════════════════════════════════════════
# PUBLIC API SURFACE
# ═══════════════════════════════════════════════════════════════════════════
__all__ = [
    # Base
    "CanonicalModel",

    # Descriptors
    "ContainerDescriptor",
    "ContainerEndpoint",
    "ServiceDescriptor",

    # Results
    "CheckResult",
    "CheckFailure",
    "FailureReason",
    "HealthSummary",
    "CheckOk",
    "CheckErr",
    "CheckOutcome",
]
