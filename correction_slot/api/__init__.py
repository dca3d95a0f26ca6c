"""42 intra API client."""

from correction_slot.api.client import ApiError, IntraClient

__all__ = ["ApiError", "IntraClient"]
