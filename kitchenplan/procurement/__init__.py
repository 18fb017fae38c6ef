"""Purchase-order drafting."""

from .generator import ProcurementGenerator

__all__ = ['ProcurementGenerator']
