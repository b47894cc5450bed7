"""
Boundary to the CDC backend HTTP API.

Usage:
    from backend.client import BackendClient

    async with BackendClient() as client:
        data = await client.get("/mappings")
"""

__all__ = ["BackendClient", "parse_model", "failure_message"]
