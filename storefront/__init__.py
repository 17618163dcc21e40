"""Coffee-shop storefront service."""
