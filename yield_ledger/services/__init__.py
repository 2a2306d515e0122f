"""Service modules"""
from .reporter import Reporter, build_notifiers

__all__ = ["Reporter", "build_notifiers"]
