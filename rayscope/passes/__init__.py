"""
Render pass implementations used by the OpenGL backend.
"""

from .volume_pass import VolumeRenderPass

__all__ = [
    'VolumeRenderPass',
]
