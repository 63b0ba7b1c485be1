from .GDOptimizer import GDOptimizer

__all__ = ["GDOptimizer"]
