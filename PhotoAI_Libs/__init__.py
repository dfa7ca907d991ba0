"""
PhotoAI_Libs - PhotoAI Editing Core

This package contains the image transform pipeline and compositing state
machine behind the PhotoAI editor, organized into specialized sub-packages:

- RasterLib: Immutable RGBA raster model, decoding and PNG export
- ImageEditingLib: Color adjustment, crop/rotate, background fills and compositing
- SessionLib: Edit session state machine and background removal service boundary
"""

__version__ = "0.1.0"
