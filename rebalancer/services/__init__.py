"""Service modules"""
from .rebalancer import Rebalancer

__all__ = ["Rebalancer"]
