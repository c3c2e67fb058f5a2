"""
Order pricing.

The storefront computes the price client-side; the order endpoint recomputes
it here and rejects the order when the two disagree.
"""
import math
from typing import Dict, Iterable

PRICE_TOLERANCE = 0.01

PRICING_TIERS: Dict[str, dict] = {
    "simple": {
        "base_price": 299,
        "timeline": {
            "24h": {"multiplier": 2.5, "available": True},
            "3d": {"multiplier": 1.5, "available": True},
            "1w": {"multiplier": 1.0, "available": True},
            "2w": {"multiplier": 0.8, "available": True},
        },
        "max_features": 3,
        "included_features": ["User Authentication", "Basic CRUD", "Responsive Design"],
        "deliverables": ["Source Code", "Basic Documentation", "Deployment Guide"],
    },
    "medium": {
        "base_price": 799,
        "timeline": {
            "24h": {"multiplier": 2.0, "available": False},
            "3d": {"multiplier": 1.8, "available": True},
            "1w": {"multiplier": 1.0, "available": True},
            "2w": {"multiplier": 0.9, "available": True},
        },
        "max_features": 8,
        "included_features": [
            "Advanced Authentication",
            "Database Integration",
            "API Development",
            "Admin Panel",
            "Real-time Features",
        ],
        "deliverables": [
            "Source Code",
            "API Documentation",
            "Database Schema",
            "Deployment Guide",
            "Testing Suite",
        ],
    },
    "complex": {
        "base_price": 1999,
        "timeline": {
            "24h": {"multiplier": 3.0, "available": False},
            "3d": {"multiplier": 2.5, "available": False},
            "1w": {"multiplier": 1.2, "available": True},
            "2w": {"multiplier": 1.0, "available": True},
        },
        "max_features": 15,
        "included_features": [
            "Enterprise Authentication",
            "Multi-database Support",
            "Microservices Architecture",
            "Advanced Admin Panel",
            "Real-time Analytics",
            "Payment Integration",
            "Email System",
            "File Management",
        ],
        "deliverables": [
            "Source Code",
            "Complete Documentation",
            "API Documentation",
            "Database Schema",
            "Deployment Guide",
            "Testing Suite",
            "Performance Report",
            "Security Audit",
        ],
    },
}

# Feature add-ons (additional cost)
FEATURE_ADDONS: Dict[str, dict] = {
    "Payment Integration": {"price": 199, "timeline": "+1-2 days"},
    "Advanced Analytics": {"price": 149, "timeline": "+1 day"},
    "Multi-language Support": {"price": 99, "timeline": "+1 day"},
    "Mobile App": {"price": 499, "timeline": "+3-5 days"},
    "Custom Branding": {"price": 79, "timeline": "+0.5 days"},
    "SEO Optimization": {"price": 129, "timeline": "+1 day"},
    "Social Media Integration": {"price": 89, "timeline": "+0.5 days"},
    "Advanced Security": {"price": 199, "timeline": "+1 day"},
}

TIMELINE_NAMES = {
    "24h": "24 Hours (Rush)",
    "3d": "3 Days",
    "1w": "1 Week",
    "2w": "2 Weeks",
}

TIMELINE_HOURS = {
    "24h": 24,
    "3d": 72,
    "1w": 168,
    "2w": 336,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_order_price(complexity: str, timeline: str, features: Iterable[str]) -> int:
    tier = PRICING_TIERS[complexity]
    multiplier = tier["timeline"][timeline]["multiplier"]

    feature_price = sum(
        FEATURE_ADDONS[f]["price"]
        for f in features
        if f in FEATURE_ADDONS and f not in tier["included_features"]
    )
    return round_half_up((tier["base_price"] + feature_price) * multiplier)


def prices_match(submitted: float, computed: float) -> bool:
    return abs(computed - submitted) <= PRICE_TOLERANCE
