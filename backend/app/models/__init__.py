# Pricing configuration models
from app.models.pricing import RateMatrixRow, RateOverrideRow, AdjustmentRuleRow

__all__ = ['RateMatrixRow', 'RateOverrideRow', 'AdjustmentRuleRow']
