"""
Builds and validates connection configs from registry field definitions.

A connection config is an open dictionary: ``type`` and ``name`` are always
present, every other key is declared by the registry entry of that type.
Dotted field names (``tunnel.sshHost``) address one level of nesting.
"""

import copy
from typing import Any, Dict, List, Optional
from models.base import DataSourceType
from schemas.connection import DataSourceFormField, TunnelConfig
from connections.registry import DataSourceRegistry, registry as default_registry
from core.exceptions import ValidationError
import logging

logger = logging.getLogger(__name__)

ConnectionConfig = Dict[str, Any]

MISSING = ""


def is_empty(value: Any) -> bool:
    """``None`` and blank strings are empty; ``0`` and ``False`` are values"""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class ConnectionConfigBuilder:
    """
    Stateless helper over connection config dictionaries.
    
    Every mutating operation returns a new dictionary and leaves its
    input untouched.
    """
    
    def __init__(self, registry: Optional[DataSourceRegistry] = None):
        self.registry = registry or default_registry
    
    def default_name(self, source_type: DataSourceType) -> str:
        return f"{self.registry.get(source_type).name} Connection"
    
    def create_default(self, source_type: DataSourceType) -> ConnectionConfig:
        """Config seeded with type, generated name and every declared default"""
        info = self.registry.get(source_type)
        config: ConnectionConfig = {
            "type": info.type.value,
            "name": self.default_name(info.type),
        }
        
        for field in info.config_fields:
            if field.has_default:
                config = self.set_field(config, field.name, field.default_value)
        
        return config
    
    def set_field(self, config: ConnectionConfig, field_name: str, value: Any) -> ConnectionConfig:
        """Return a copy of ``config`` with the (possibly dotted) field set"""
        updated = copy.deepcopy(config)
        parts = field_name.split(".")
        
        current = updated
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        
        current[parts[-1]] = value
        return updated
    
    def get_field(self, config: ConnectionConfig, field_name: str) -> Any:
        """Read a (possibly dotted) field; ``""`` when any segment is missing"""
        current: Any = config
        for part in field_name.split("."):
            if not isinstance(current, dict) or part not in current:
                return MISSING
            current = current[part]
        
        return MISSING if current is None else current
    
    def should_show(self, field: DataSourceFormField, config: ConnectionConfig) -> bool:
        if not field.depends_on:
            return True
        return bool(self.get_field(config, field.depends_on))
    
    def visible_fields(self, config: ConnectionConfig) -> List[DataSourceFormField]:
        info = self.registry.get(config["type"])
        return [f for f in info.config_fields if self.should_show(f, config)]
    
    def missing_fields(self, config: ConnectionConfig) -> List[str]:
        """Names of required, currently visible fields that are empty"""
        missing = []
        if is_empty(config.get("type")):
            missing.append("type")
            return missing
        if is_empty(config.get("name")):
            missing.append("name")
        
        for field in self.visible_fields(config):
            if field.required and is_empty(self.get_field(config, field.name)):
                missing.append(field.name)
        
        return missing
    
    def validate_for_submit(self, config: ConnectionConfig) -> None:
        """
        Check a config before it is sent to the backend.
        
        Fields hidden by ``should_show`` are exempt even when declared
        required.
        
        Raises:
            ValidationError: Listing every empty required field
        """
        missing = self.missing_fields(config)
        if missing:
            labels = [self._label(config, name) for name in missing]
            raise ValidationError(
                f"Missing required fields: {', '.join(labels)}",
                errors=[f"{label} is required" for label in labels],
                context={"type": config.get("type"), "fields": missing}
            )
    
    def finalize(self, config: ConnectionConfig) -> ConnectionConfig:
        """Copy ready for submission, with a blank name replaced by the generated one"""
        finalized = copy.deepcopy(config)
        if finalized.get("type") and is_empty(finalized.get("name")):
            finalized["name"] = self.default_name(finalized["type"])
        self.validate_for_submit(finalized)
        return finalized
    
    def tunnel_settings(self, config: ConnectionConfig) -> Optional[TunnelConfig]:
        tunnel = config.get("tunnel")
        if not isinstance(tunnel, dict) or not tunnel.get("enabled"):
            return None
        return TunnelConfig.model_validate(
            {k: v for k, v in tunnel.items() if not is_empty(v)}
        )
    
    def _label(self, config: ConnectionConfig, name: str) -> str:
        if name in ("type", "name"):
            return name
        field = self.registry.get(config["type"]).get_field(name)
        return field.label if field else name
