from .commodity import Commodity
from .listing import Listing

__all__ = [
    "Commodity",
    "Listing",
]
