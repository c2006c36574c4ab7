#!/usr/bin/env python
from rich import print

from sdk.catalog_client import CatalogClient

SAMPLE_PRODUCTS = [
    ("Laptop", 1299.0, "most_viewed"),
    ("Mouse", 19.99, "most_popular"),
    ("Keyboard", 49.5, "most_reviewed"),
    ("Monitor", 229.0, "most_viewed"),
    ("Widget", 9.99, "most_viewed"),
]


def main():
    c = CatalogClient()
    print("Checking API...")
    print(c.health())

    # -----------------------------
    # Create products
    # -----------------------------
    print("\nCreating products...")
    for name, price, category in SAMPLE_PRODUCTS:
        print(c.create_product(name, price, category))

    # -----------------------------
    # Newest first, one category
    # -----------------------------
    print("\nListing most_viewed, newest first...")
    print(c.list_products(category="most_viewed", sort="desc"))

    # -----------------------------
    # Price filter with small pages
    # -----------------------------
    print("\nListing products up to $50, two per page...")
    first = c.list_products(max_price=50, sort="asc", limit=2)
    print(first)
    for page in range(2, first["totalPages"] + 1):
        print(c.list_products(max_price=50, sort="asc", limit=2, page=page))

    # -----------------------------
    # Categorized summary
    # -----------------------------
    print("\nCategorized summary...")
    print(c.categorized_products())


if __name__ == "__main__":
    main()
