"""Discord gateway cache and coordination layer.

This package keeps the shared Redis cache in step with gateway events,
gates shard identifies across the fleet, and tracks shard health.

Usage:
    python -m gateway_cache.gateway status            # Show shard health
    python -m gateway_cache.gateway plan              # Show this node's shards
    python -m gateway_cache.gateway replay FILE       # Apply recorded events
"""
