"""
Connection configuration for source and destination data stores.

Modules:
    registry: static catalog of data source types and their form fields
    config_builder: defaults, dotted field access, visibility and validation
    service: backend calls for testing, saving and introspecting connections

Usage:
    from connections.registry import registry
    from connections.config_builder import ConnectionConfigBuilder

    builder = ConnectionConfigBuilder()
    config = builder.create_default(DataSourceType.AWS_RDS_POSTGRES)
    config = builder.set_field(config, "tunnel.enabled", True)
"""

__all__ = [
    "DataSourceRegistry",
    "ConnectionConfigBuilder",
    "ConnectionService",
    "registry",
]
