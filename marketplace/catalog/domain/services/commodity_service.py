"""
CommodityService - platform commodity catalogue

The catalogue is shared by every tenant. Only super admins and tenant admins
may add to it.
"""

from typing import Any, Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q

from marketplace.catalog.domain.models import Commodity
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.rbac import ROLE_TENANT_ADMIN, has_any_role, is_super_admin

CATEGORIES = tuple(code for code, _ in Commodity.CATEGORY_CHOICES)


class CommodityService(BaseService):
    @BaseService.log_performance
    def list_commodities(
        self, category: Optional[str] = None, search: Optional[str] = None, include_inactive: bool = False
    ) -> ServiceResult[List[Commodity]]:
        queryset = Commodity.objects.all()
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        if category:
            queryset = queryset.filter(category=category.upper())
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search) | Q(hs_code__startswith=search)
            )
        return service_ok(list(queryset.order_by("name")))

    @BaseService.log_performance
    def create_commodity(self, actor, data: Dict[str, Any]) -> ServiceResult[Commodity]:
        if not (is_super_admin(actor) or has_any_role(actor, (ROLE_TENANT_ADMIN,))):
            return service_err(ErrorCodes.FORBIDDEN, "Only administrators can add commodities")

        category = (data.get("category") or "").upper()
        if category not in CATEGORIES:
            return service_err(
                ErrorCodes.VALIDATION_ERROR,
                f"category must be one of {', '.join(CATEGORIES)}",
                {"category": [f"'{category}' is not a valid choice."]},
            )

        name = (data.get("name") or "").strip()
        if Commodity.objects.filter(name__iexact=name).exists():
            return service_err(ErrorCodes.CONFLICT, f"Commodity '{name}' already exists", {"name": name})

        try:
            with transaction.atomic():
                commodity = Commodity.objects.create(
                    name=name,
                    category=category,
                    unit=data["unit"],
                    hs_code=data.get("hs_code", ""),
                    description=data.get("description", ""),
                    icon=data.get("icon", ""),
                    is_active=data.get("is_active", True),
                )
        except IntegrityError:
            return service_err(ErrorCodes.CONFLICT, f"Commodity '{name}' already exists", {"name": name})
        except Exception as e:
            return self.internal_error("create_commodity", e)

        self.logger.info(f"Created commodity {commodity.name} ({commodity.category})")
        return service_ok(commodity)
