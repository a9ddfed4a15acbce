"""Plan construction from a matched correspondence."""

from .plan_builder import PlanBuilder

__all__ = ["PlanBuilder"]
