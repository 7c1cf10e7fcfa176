"""
Cache Domain Module

Entities, value objects, codec, repository interfaces and domain services
for the expiring cache.
"""
