"""Image pipeline for item pictures."""
from .pipeline import ImageFile, ImagePipeline, fit_within

__all__ = ['ImageFile', 'ImagePipeline', 'fit_within']
