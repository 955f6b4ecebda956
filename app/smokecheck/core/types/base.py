"""Shared base configuration for the smokecheck value types.

Every descriptor and result travelling through the harness is built once from
live infrastructure state and never mutated afterwards. This module provides
the common pydantic configuration that enforces that contract.
"""

from pydantic import BaseModel, ConfigDict


# ═══════════════════════════════════════════════════════════════════════════
# BASE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

class CanonicalModel(BaseModel):
    """A base model providing shared configuration for all smokecheck records.

    Configuration:
        frozen: Prevents modification after creation.
        extra: Rejects unknown fields so adapter typos surface immediately.
        str_strip_whitespace: Normalizes string inputs automatically.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        str_strip_whitespace=True,
    )
