"""
Cache Domain Module

Tagged cache domain: value objects, the cache entry entity, per-entity
tagging rules and the store contract consumed by the services.
"""
