"""Plan reporting helpers."""

from .plan_report import PlanReport

__all__ = ["PlanReport"]
