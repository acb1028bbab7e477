"""
rayscope: interactive core of a scientific ray-tracing visualizer.
"""

__version__ = "0.1.0"
