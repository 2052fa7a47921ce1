from marketplace.catalog.domain.models import Commodity, Listing
from marketplace.domain.models import SequenceCounter
from marketplace.insurance.domain.models import InsuranceClaim, InsurancePolicy
from marketplace.logistics.domain.models import Shipment
from marketplace.notifications.domain.models import Notification
from marketplace.ordering.domain.models import Order
from marketplace.producers.domain.models import Producer
from marketplace.tokenization.domain.models import AssetToken
from marketplace.validation.domain.models import Certificate, Validation

__all__ = [
    "AssetToken",
    "Certificate",
    "Commodity",
    "InsuranceClaim",
    "InsurancePolicy",
    "Listing",
    "Notification",
    "Order",
    "Producer",
    "SequenceCounter",
    "Shipment",
    "Validation",
]
