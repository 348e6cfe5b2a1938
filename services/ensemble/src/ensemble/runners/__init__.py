"""
Model runner implementations package.

Contains concrete ModelRunner implementations for each supported
backend.
"""

from ensemble.runners.onnx_runner import OnnxModelRunner

__all__ = ["OnnxModelRunner"]
