from .claim import InsuranceClaim
from .policy import InsurancePolicy

__all__ = [
    "InsuranceClaim",
    "InsurancePolicy",
]
