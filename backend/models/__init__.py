"""Models package for the recital workflow."""
from backend.models.recital import Composition, Recital
from backend.models.options import WorkflowOptions

__all__ = ['Composition', 'Recital', 'WorkflowOptions']
