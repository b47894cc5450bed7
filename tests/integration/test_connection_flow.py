"""
Integration tests for configuring and testing a tunnelled connection
"""

import pytest
from connections.config_builder import ConnectionConfigBuilder
from connections.service import ConnectionService
from models.base import DataSourceType, DBType


class TestTunnelledConnection:
    """RDS connection through an SSH bastion"""
    
    def test_setting_ssh_port_on_empty_config(self):
        config = ConnectionConfigBuilder().set_field({}, "tunnel.sshPort", 2222)
        
        assert config["tunnel"]["sshPort"] == 2222
        assert "enabled" not in config["tunnel"]
    
    @pytest.mark.asyncio
    async def test_configure_test_and_save(self, backend_client, backend):
        backend.route("POST", "/connections/test-config", {
            "success": True,
            "message": "Connected through bastion.example.com",
            "metadata": {"version": "PostgreSQL 15.4", "capabilities": ["real_time_cdc"]},
        })
        backend.route("POST", "/connections/source-config", {"success": True, "message": "Source configuration saved"})
        
        builder = ConnectionConfigBuilder()
        service = ConnectionService(backend_client, builder)
        
        config = builder.create_default(DataSourceType.AWS_RDS_POSTGRES)
        for name, value in {
            "host": "prod.abc123.us-east-1.rds.amazonaws.com",
            "database": "app",
            "user": "postgres",
            "password": "secret",
            "region": "us-east-1",
            "tunnel.enabled": True,
            "tunnel.sshHost": "bastion.example.com",
            "tunnel.sshUser": "ec2-user",
            "tunnel.sshPort": 2222,
        }.items():
            config = builder.set_field(config, name, value)
        
        assert builder.missing_fields(config) == []
        assert builder.tunnel_settings(config).ssh_port == 2222
        
        result = await service.test_config(config)
        sent = backend.sent_json()
        message = await service.save_config(config, DBType.SOURCE)
        
        assert result.success
        assert result.metadata.capabilities == ["real_time_cdc"]
        assert sent["type"] == "aws_rds_postgres"
        assert sent["name"] == "AWS RDS PostgreSQL Connection"
        assert sent["tunnel"] == {
            "enabled": True,
            "sshPort": 2222,
            "sshHost": "bastion.example.com",
            "sshUser": "ec2-user",
        }
        assert message == "Source configuration saved"
