# Business Services
from app.services.store_service import SqlRateMatrixStore, SqlOverrideStore, SqlAdjustmentRuleStore
from app.services.rate_admin_service import RateAdminService
from app.services.pricing_service import PricingService

__all__ = [
    'SqlRateMatrixStore', 'SqlOverrideStore', 'SqlAdjustmentRuleStore',
    'RateAdminService', 'PricingService'
]
