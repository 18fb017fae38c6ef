"""Menu resolution."""

from .resolver import MenuResolver, MenuPreview, resolve_cycle_position

__all__ = ['MenuResolver', 'MenuPreview', 'resolve_cycle_position']
