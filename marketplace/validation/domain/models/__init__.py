from .certificate import Certificate
from .validation import Validation

__all__ = [
    "Certificate",
    "Validation",
]
