"""
Inference backends for detkit.

Backends are kept in a separate module so pre/post-processing stays lightweight and can be used
(and tested) without installing an inference runtime.
"""

from __future__ import annotations

from .base import ModelRunner

__all__ = ["ModelRunner"]
