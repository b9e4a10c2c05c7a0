"""
Common base models and utilities.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Base model for transient, immutable values passed between scanner components."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)
