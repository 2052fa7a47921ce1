"""
Seed a demo tenant with the commodity catalogue, a few producers and ACTIVE listings.

Usage:
    python manage.py seed_marketplace
    python manage.py seed_marketplace --tenant-slug demo-gh --country GH --password "Secret123!"

Running it twice is harmless: existing rows are reused and only missing ones are created.
"""

import logging
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from authentication.models import CustomUser, Tenant
from infrastructure.container import container
from marketplace.models import Commodity, Listing, Producer
from utils.rbac import ROLE_BUYER, ROLE_PRODUCER, ROLE_TENANT_ADMIN, ROLE_VALIDATOR


logger = logging.getLogger(__name__)


COMMODITIES = [
    ("Cocoa", "AGRICULTURE", "MT", "1801"),
    ("Coffee", "AGRICULTURE", "MT", "0901"),
    ("Cashew", "AGRICULTURE", "MT", "0801"),
    ("Shea Butter", "AGRICULTURE", "MT", "1515"),
    ("Gold", "MINERALS", "oz", "7108"),
    ("Diamonds", "MINERALS", "carat", "7102"),
    ("Carbon Credits", "ENVIRONMENTAL", "tCO2e", ""),
    ("Kente Cloth", "CULTURAL", "piece", "5806"),
]

# (email, name, producer type, [(commodity, title, quantity, price_per_unit)])
PRODUCERS = [
    (
        "kofi.farmer@example.com",
        "Kofi Mensah Farms",
        "FARMER",
        [("Cocoa", "Grade 1 fermented cocoa beans", "1000", "2.50"), ("Cashew", "Raw cashew nuts", "250", "1.20")],
    ),
    (
        "ama.coop@example.com",
        "Ashanti Growers Cooperative",
        "COOPERATIVE",
        [("Coffee", "Washed Arabica", "400", "4.10"), ("Shea Butter", "Unrefined shea butter", "120", "3.00")],
    ),
    ("yaw.miner@example.com", "Tarkwa Small-Scale Mining", "MINER", [("Gold", "Dore bars 92%", "50", "1850.00")]),
]


class Command(BaseCommand):
    help = "Seed a demo tenant, its staff, the commodity catalogue, producers and ACTIVE listings."

    def add_arguments(self, parser):
        parser.add_argument("--tenant-slug", type=str, default="demo", help="Slug of the demo tenant (default: demo)")
        parser.add_argument("--tenant-name", type=str, default="Demo Commodity Exchange")
        parser.add_argument("--country", type=str, default="GH", help="ISO country code of the tenant (default: GH)")
        parser.add_argument("--currency", type=str, default="USD")
        parser.add_argument(
            "--password", type=str, default="Demo!2345", help="Password given to every seeded account"
        )
        parser.add_argument("--skip-listings", action="store_true", help="Only seed tenant, users and catalogue")

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("Seeding marketplace..."))

        with transaction.atomic():
            tenant, created = Tenant.objects.get_or_create(
                slug=options["tenant_slug"],
                defaults={
                    "name": options["tenant_name"],
                    "country": options["country"],
                    "currency": options["currency"],
                },
            )
            self._report("tenant", tenant, created)

            admin = self._user(tenant, "admin@example.com", "Demo Admin", ROLE_TENANT_ADMIN, options["password"])
            self._user(tenant, "validator@example.com", "Demo Validator", ROLE_VALIDATOR, options["password"])
            self._user(tenant, "buyer@example.com", "Demo Buyer", ROLE_BUYER, options["password"])

            commodities = {}
            for name, category, unit, hs_code in COMMODITIES:
                commodity, created = Commodity.objects.get_or_create(
                    name=name, defaults={"category": category, "unit": unit, "hs_code": hs_code}
                )
                commodities[name] = commodity
                self._report("commodity", commodity, created)

        listing_count = 0
        for email, name, producer_type, listings in PRODUCERS:
            user = self._user(tenant, email, name, ROLE_PRODUCER, options["password"])
            producer = self._producer(admin, user, name, producer_type)
            if options["skip_listings"]:
                continue
            for commodity_name, title, quantity, price in listings:
                if Listing.objects.filter(producer=producer, title=title).exists():
                    self.stdout.write(self.style.WARNING(f"Listing already exists: {title}"))
                    continue
                self._active_listing(user, commodities[commodity_name], title, quantity, price)
                listing_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Marketplace seeding complete for tenant '{tenant.slug}'. Created {listing_count} listings."
            )
        )

    def _report(self, kind, obj, created):
        if created:
            self.stdout.write(self.style.SUCCESS(f"Created {kind}: {obj}"))
        else:
            self.stdout.write(self.style.WARNING(f"{kind.capitalize()} already exists: {obj}"))

    def _user(self, tenant, email, name, role, password):
        user = CustomUser.objects.filter(email=email).first()
        if user is not None:
            if user.tenant_id != tenant.pk:
                raise CommandError(f"{email} already belongs to another tenant")
            self._report("user", user, False)
            return user
        user = CustomUser.objects.create_user(
            username=email.split("@")[0], email=email, password=password, name=name, tenant=tenant, role=role
        )
        self._report("user", user, True)
        return user

    def _producer(self, admin, user, name, producer_type):
        existing = Producer.objects.filter(user=user).first()
        if existing is not None:
            self._report("producer", existing, False)
            return existing

        producers = container.producer_service()
        result = producers.register_producer(user, {"type": producer_type, "name": name, "email": user.email})
        if not result.ok:
            raise CommandError(f"Could not register producer {name}: {result.error_detail}")
        verified = producers.verify_producer(admin, result.value.pk)
        if not verified.ok:
            raise CommandError(f"Could not verify producer {name}: {verified.error_detail}")
        self._report("producer", verified.value, True)
        return verified.value

    def _active_listing(self, user, commodity, title, quantity, price):
        listings = container.listing_service()
        result = listings.create_listing(
            user,
            {
                "commodity_id": commodity.pk,
                "title": title,
                "quantity": Decimal(quantity),
                "price_per_unit": Decimal(price),
            },
        )
        if result.ok:
            result = listings.publish_listing(user, result.value.pk)
        if result.ok:
            result = listings.approve_listing(result.value.pk, quality_grade="A")
        if not result.ok:
            raise CommandError(f"Could not seed listing '{title}': {result.error_detail}")
        logger.info(f"Seeded listing {result.value.id}")
        self._report("listing", result.value, True)
        return result.value
