"""Models shared across all centers."""

from app.models.public.center import Center
from app.models.public.global_activity import GlobalActivity

__all__ = ["Center", "GlobalActivity"]
