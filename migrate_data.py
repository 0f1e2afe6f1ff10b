#!/usr/bin/env python3
"""
Seed the gallery and testimonials tables with the studio's demo content.

Run once by hand after the Supabase tables exist:

    python migrate_data.py

A table that already holds any row is left untouched, so running the script
again is harmless. Needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or
SUPABASE_ANON_KEY) in the environment or in .env.
"""

import logging
import sys
from typing import Any, Dict, List

from config import load_settings
from database import Store, StoreError, create_store

logger = logging.getLogger("migrate_data")

# PostgREST "no rows" result; not a connection problem.
NO_ROWS_CODE = "PGRST116"

GALLERY_DATA = [
    {"id": "w1", "image": "https://images.unsplash.com/photo-1519741497674-611481863552?w=800", "title": "Elegant Wedding Ceremony", "category": "Wedding", "alt": "Wedding ceremony photo"},
    {"id": "w2", "image": "https://images.unsplash.com/photo-1465495976277-4387d4b0b4c6?w=800", "title": "Wedding Reception", "category": "Wedding", "alt": "Wedding reception photo"},
    {"id": "w3", "image": "https://images.unsplash.com/photo-1519741497674-611481863552?w=800", "title": "Bridal Portraits", "category": "Wedding", "alt": "Bridal portrait"},
    {"id": "e1", "image": "https://images.unsplash.com/photo-1511285560929-80b456fea0bc?w=800", "title": "Corporate Event", "category": "Events", "alt": "Corporate event photography"},
    {"id": "e2", "image": "https://images.unsplash.com/photo-1478146897152-7e675f0a3e0a?w=800", "title": "Birthday Celebration", "category": "Events", "alt": "Birthday party photography"},
    {"id": "e3", "image": "https://images.unsplash.com/photo-1511795409834-ef04bbd61622?w=800", "title": "Anniversary Party", "category": "Events", "alt": "Anniversary celebration"},
    {"id": "p1", "image": "https://images.unsplash.com/photo-1492684223066-81342ee5ff30?w=800", "title": "Family Portrait", "category": "Portraits", "alt": "Family portrait session"},
    {"id": "p2", "image": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=800", "title": "Professional Headshot", "category": "Portraits", "alt": "Corporate headshot"},
    {"id": "p3", "image": "https://images.unsplash.com/photo-1506794778202-cad84cf45f1d?w=800", "title": "Individual Portrait", "category": "Portraits", "alt": "Individual portrait"},
    {"id": "s1", "image": "https://images.unsplash.com/photo-1529626455594-4ff0802cfb7e?w=800", "title": "Fashion Studio", "category": "Studio Shoots", "alt": "Fashion photography"},
    {"id": "s2", "image": "https://images.unsplash.com/photo-1492684223066-81342ee5ff30?w=800", "title": "Beauty Portrait", "category": "Studio Shoots", "alt": "Beauty photography"},
    {"id": "pr1", "image": "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=800", "title": "Product Showcase", "category": "Products", "alt": "Product photography"},
    {"id": "pr2", "image": "https://images.unsplash.com/photo-1556742049-0cfed4f6a45d?w=800", "title": "E-commerce Product", "category": "Products", "alt": "Product photography"},
    {"id": "b1", "image": "https://images.unsplash.com/photo-1515488042361-ee00e0ddd4e4?w=800", "title": "Newborn Session", "category": "Baby Shoots", "alt": "Newborn photography"},
    {"id": "b2", "image": "https://images.unsplash.com/photo-1503454537195-1dcabb73ffb9?w=800", "title": "Baby Portrait", "category": "Baby Shoots", "alt": "Baby photography"},
]

TESTIMONIALS_DATA = [
    {"id": "1", "clientName": "Sarah & Michael Johnson", "clientImage": "https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=150", "service": "Wedding Photography", "rating": 5, "review": "Absolutely incredible! They captured every moment of our special day perfectly. The photos are stunning and we couldn't be happier. Highly recommend!", "date": "2024-01-15", "featured": True},
    {"id": "2", "clientName": "David Chen", "clientImage": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=150", "service": "Corporate Headshots", "rating": 5, "review": "Professional, efficient, and the results exceeded expectations. The team made me feel comfortable and the final photos are perfect for my professional profile.", "date": "2024-02-20", "featured": True},
    {"id": "3", "clientName": "Emily Rodriguez", "service": "Family Portraits", "rating": 5, "review": "Our family photos turned out beautifully! The photographer was patient with our kids and captured genuine moments. We'll treasure these forever.", "date": "2024-03-10", "featured": True},
    {"id": "4", "clientName": "James Wilson", "service": "Event Photography", "rating": 5, "review": "They photographed our company's annual event and did an amazing job. Great attention to detail and captured all the important moments.", "date": "2024-01-28", "featured": False},
    {"id": "5", "clientName": "Lisa Thompson", "clientImage": "https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=150", "service": "Baby Photography", "rating": 5, "review": "The newborn session was handled with such care and professionalism. The photos of our baby are absolutely precious. Thank you!", "date": "2024-02-14", "featured": True},
    {"id": "6", "clientName": "Robert Martinez", "service": "Product Photography", "rating": 5, "review": "Excellent product photography for our e-commerce store. The images are high quality and really showcase our products well. Great service!", "date": "2024-03-05", "featured": False},
]


def gallery_rows(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "image_url": item["image"],
            "title": item["title"],
            "category": item["category"],
            "description": item.get("alt") or "",
        }
        for item in items
    ]


def testimonial_rows(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "name": item["clientName"],
            "email": None,  # not collected by the site
            "rating": item["rating"],
            "comment": item["review"],
            "image_url": item.get("clientImage") or None,
        }
        for item in items
    ]


def seed_table(store: Store, table: str, rows: List[Dict[str, Any]], label: str) -> int:
    """Insert ``rows`` into ``table`` unless it already has data.

    Returns the number of rows created. Store failures are logged and
    reported as 0 so the caller can go on with the next table.
    """
    logger.info("Migrating %s data...", label)
    if not rows:
        logger.warning("No %s found to migrate", label)
        return 0
    logger.info("Found %d %s", len(rows), label)

    try:
        existing = store.select(table, "id", limit=1)
    except StoreError as e:
        logger.error("Could not check %s table: %s", table, e.message)
        return 0
    if existing:
        logger.warning("%s table already has data. Skipping migration.", table)
        logger.warning("To re-migrate, clear the %s table first in the Supabase dashboard.", table)
        return 0

    try:
        created = store.insert(table, rows)
    except StoreError as e:
        logger.error("Error migrating %s: %s", label, e.message)
        return 0

    logger.info("Successfully migrated %d %s", len(created), label)
    return len(created)


def check_connection(store: Store) -> None:
    """Probe both seeded tables; raises StoreError if either is unreachable."""
    for table in ("gallery", "testimonials"):
        try:
            store.select(table, "count", limit=1)
        except StoreError as e:
            if e.code != NO_ROWS_CODE:
                raise StoreError(f"{table.capitalize()} table error: {e.message}", code=e.code) from e


def run(store: Store) -> Dict[str, int]:
    """Seed both tables; one failing never stops the other."""
    return {
        "gallery": seed_table(store, "gallery", gallery_rows(GALLERY_DATA), "gallery items"),
        "testimonials": seed_table(store, "testimonials", testimonial_rows(TESTIMONIALS_DATA), "testimonials"),
    }


def main() -> int:
    settings = load_settings(prefer_service_role=True)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")

    if not settings.has_credentials:
        logger.error("Supabase credentials not found")
        logger.error("Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in .env or the environment")
        return 1

    logger.info("Starting data migration to Supabase...")
    store = create_store(settings)
    try:
        check_connection(store)
    except StoreError as e:
        logger.error("Migration failed: %s", e.message)
        logger.error("Make sure:")
        logger.error("  1. Your Supabase tables exist (gallery, testimonials)")
        logger.error("  2. SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) are correct")
        logger.error("  3. Your Supabase project is active")
        return 1
    logger.info("Connected to Supabase")

    counts = run(store)
    logger.info("Migration completed! gallery=%d testimonials=%d", counts["gallery"], counts["testimonials"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
