"""Route cost estimation."""

from sor.fees.cost import CostEstimator, CostOracle
from sor.fees.oracle import HttpCostOracle

__all__ = ["CostEstimator", "CostOracle", "HttpCostOracle"]
