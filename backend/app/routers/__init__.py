# API Routers
from app.routers import pricing, rates

__all__ = ['pricing', 'rates']
