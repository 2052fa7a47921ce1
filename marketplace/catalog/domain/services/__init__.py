from .commodity_service import CommodityService
from .listing_service import ListingService

__all__ = [
    "CommodityService",
    "ListingService",
]
