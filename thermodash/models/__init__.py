# Database models
from thermodash.models.chemical import Chemical

__all__ = ["Chemical"]
