"""Storefront: shopping carts, checkout and orders on the Protean DDD framework."""
