from .solver import ElementStiffness, FeaSolver, SolveSummary

__all__ = ["ElementStiffness", "FeaSolver", "SolveSummary"]
