from .domain.models.payment import Payment

__all__ = ["Payment"]
