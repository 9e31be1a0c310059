#!/usr/bin/env python3
"""Seed a Stripe test account with the per-minute product and demo promo codes.

Usage:
    DLVRIT_STRIPE_SECRET_KEY=sk_test_... python scripts/seed_stripe_catalog.py
"""

import sys
from pathlib import Path

import stripe

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from dlvrit.common.config import get_settings

PRODUCT_NAME = "DLVRIT upload minutes"

PROMO_SEEDS = [
    {"code": "SAVE10", "percent_off": 10},
    {"code": "FIVER", "amount_off": 500},
]


def seed_catalog() -> None:
    settings = get_settings()
    api_key = settings.stripe_secret_key.get_secret_value()
    if not api_key.startswith("sk_test_"):
        sys.exit("Refusing to seed: DLVRIT_STRIPE_SECRET_KEY must be a test-mode key")

    existing = stripe.Product.search(query=f"name:'{PRODUCT_NAME}'", api_key=api_key)
    if existing.data:
        product = existing.data[0]
        print(f"  [skip] product {product.id} already exists")
    else:
        product = stripe.Product.create(name=PRODUCT_NAME, api_key=api_key)
        stripe.Price.create(
            product=product.id,
            unit_amount=settings.unit_amount,
            currency=settings.currency,
            api_key=api_key,
        )
        print(f"  [created] product {product.id} at {settings.unit_amount} {settings.currency}/min")

    for seed in PROMO_SEEDS:
        found = stripe.PromotionCode.list(code=seed["code"], active=True, limit=1, api_key=api_key)
        if found.data:
            print(f"  [skip] promo {seed['code']} already active")
            continue

        coupon_params = {"duration": "once"}
        if "percent_off" in seed:
            coupon_params["percent_off"] = seed["percent_off"]
        else:
            coupon_params["amount_off"] = seed["amount_off"]
            coupon_params["currency"] = settings.currency
        coupon = stripe.Coupon.create(api_key=api_key, **coupon_params)
        stripe.PromotionCode.create(coupon=coupon.id, code=seed["code"], api_key=api_key)
        print(f"  [created] promo {seed['code']}")

    print(f"\nDone. Use product_id={product.id} when placing orders.")


if __name__ == "__main__":
    seed_catalog()
