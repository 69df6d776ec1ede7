"""Storefront: tag-cached catalogue and order backend."""
