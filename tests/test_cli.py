"""Tests for CLI interface."""

import json
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import yaml
from click.testing import CliRunner

from spheron_provider.cli.config import get_provider, load_cli_config, mask_token, save_cli_config
from spheron_provider.cli.main import cli
from spheron_provider.exceptions import ApiError, ConfigurationError


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_load_default_config(self):
        """Test loading default configuration."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=True) as f:
            config_path = Path(f.name)

        # File doesn't exist, should return defaults
        config = load_cli_config(config_path)

        assert config == {'token': None, 'api_url': None}

    def test_save_and_load_config(self, tmp_path):
        """Test saving and loading configuration."""
        config_path = tmp_path / 'nested' / 'config.json'

        save_cli_config(config_path, {'token': 'test-token', 'api_url': 'https://api.test'})
        loaded_config = load_cli_config(config_path)

        assert loaded_config['token'] == 'test-token'
        assert loaded_config['api_url'] == 'https://api.test'
        assert config_path.stat().st_mode & 0o777 == 0o600

    def test_load_corrupt_config(self, tmp_path):
        """Test unreadable files fall back to defaults."""
        config_path = tmp_path / 'config.json'
        config_path.write_text('{not json')

        assert load_cli_config(config_path)['token'] is None

    @pytest.mark.parametrize("token,expected", [
        ('abcd1234efgh5678', 'abcd...5678'),
        ('short', '****'),
        (None, None),
    ])
    def test_mask_token(self, token, expected):
        assert mask_token(token) == expected

    def test_get_provider_without_token(self):
        """Test a missing token is reported as a configuration error."""
        with patch('spheron_provider.provider.config') as mock_config:
            mock_config.api.token = None
            mock_config.api.base_url = 'https://api.test'

            with pytest.raises(ConfigurationError) as exc_info:
                get_provider({'token': None, 'api_url': None})

        assert 'Missing Spheron API token' in exc_info.value.message

    def test_get_provider(self):
        provider = get_provider({'token': 'test-token', 'api_url': 'https://api.test'})

        assert provider.client.base_url == 'https://api.test'


class TestCLICommands:
    """Test CLI commands."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def temp_config(self, tmp_path):
        """Create temporary config file."""
        config_path = tmp_path / 'config.json'
        config_path.write_text(json.dumps({'token': 'abcd1234efgh5678', 'api_url': None}))
        return str(config_path)

    def test_cli_help(self, runner):
        """Test main CLI help."""
        result = runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Spheron provider CLI' in result.output
        assert 'resource' in result.output
        assert 'schema' in result.output

    def test_version_command(self, runner):
        """Test version command."""
        result = runner.invoke(cli, ['version'])

        assert result.exit_code == 0
        assert 'Spheron Provider CLI' in result.output
        assert 'Version: 0.1.0' in result.output

    def test_configure_command(self, runner, tmp_path):
        """Test configure command."""
        config_file = tmp_path / 'config.json'

        result = runner.invoke(cli, [
            '--config-file', str(config_file),
            'configure',
            '--token', 'abcd1234efgh5678',
            '--api-url', 'https://api.test'
        ])

        assert result.exit_code == 0
        assert 'Configuration saved' in result.output
        assert 'abcd...5678' in result.output
        assert 'abcd1234efgh5678' not in result.output

        saved_config = json.loads(config_file.read_text())
        assert saved_config == {'token': 'abcd1234efgh5678', 'api_url': 'https://api.test'}

    def test_config_show_command(self, runner, temp_config):
        """Test config show command masks the token."""
        result = runner.invoke(cli, ['--config-file', temp_config, 'config'])

        assert result.exit_code == 0
        assert 'abcd...5678' in result.output
        assert 'abcd1234efgh5678' not in result.output

    def test_schema_command(self, runner):
        """Test full schema output."""
        result = runner.invoke(cli, ['schema'])

        assert result.exit_code == 0
        output = json.loads(result.output)
        assert 'token' in output['provider']['attributes']
        assert set(output['resources']) == {'spheron_instance', 'spheron_domain'}

    def test_schema_command_single_resource(self, runner):
        result = runner.invoke(cli, ['schema', 'spheron_domain'])

        assert result.exit_code == 0
        assert 'instance_port' in json.loads(result.output)['attributes']

    def test_schema_command_unknown_resource(self, runner):
        result = runner.invoke(cli, ['schema', 'spheron_bucket'])

        assert result.exit_code != 0
        assert "Unknown resource type 'spheron_bucket'" in result.output

    def test_resource_help(self, runner):
        """Test resource command help."""
        result = runner.invoke(cli, ['resource', '--help'])

        assert result.exit_code == 0
        assert 'Resource lifecycle commands' in result.output
        for command in ('create', 'read', 'update', 'delete', 'import'):
            assert command in result.output


class TestResourceCommands:
    """Test resource lifecycle commands."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def mock_provider(self, domain_resource):
        """Patch the provider so commands run against the mocked API client."""
        provider = Mock()
        provider.get_resource.return_value = domain_resource

        with patch('spheron_provider.cli.resource_commands.get_provider', return_value=provider):
            yield provider

    @pytest.fixture
    def plan_file(self, tmp_path):
        path = tmp_path / 'plan.yaml'
        path.write_text(yaml.safe_dump({
            'name': 'app.example.com',
            'instance_port': 8080,
            'type': 'subdomain',
            'instance_id': 'instance-1'
        }))
        return str(path)

    @pytest.fixture
    def state_file(self, tmp_path):
        path = tmp_path / 'state.json'
        path.write_text(json.dumps({
            'type': 'spheron_domain',
            'state': {'id': 'domain-1', 'instance_id': 'instance-1'}
        }))
        return str(path)

    def test_create(self, runner, mock_provider, plan_file, tmp_path):
        """Test creating a resource writes its state."""
        output_file = tmp_path / 'out.json'

        result = runner.invoke(cli, [
            'resource', 'create', 'spheron_domain',
            '--plan', plan_file,
            '--output', str(output_file)
        ])

        assert result.exit_code == 0
        assert 'domain-1 created' in result.output
        assert 'Attribute' in result.output
        mock_provider.get_resource.assert_called_once_with('spheron_domain')

        written = json.loads(output_file.read_text())
        assert written['type'] == 'spheron_domain'
        assert written['state']['id'] == 'domain-1'
        assert written['state']['verified'] is True

    def test_create_failure(self, runner, mock_provider, mock_client, plan_file):
        """Test failed operations print diagnostics and abort."""
        mock_client.add_cluster_instance_domain.side_effect = ApiError("Domain already exists", status_code=409)

        result = runner.invoke(cli, ['resource', 'create', 'spheron_domain', '--plan', plan_file])

        assert result.exit_code != 0
        assert 'Unable to create domain' in result.output
        assert 'Domain already exists' in result.output

    def test_read_json(self, runner, mock_provider, state_file):
        """Test reading accepts wrapped state files."""
        result = runner.invoke(cli, ['resource', 'read', 'spheron_domain', '--state', state_file,
                                     '--format', 'json'])

        assert result.exit_code == 0
        assert '"instance_port": 8080' in result.output
        assert '"name": "app.example.com"' in result.output

    def test_update(self, runner, mock_provider, mock_client, tmp_path):
        path = tmp_path / 'plan.yaml'
        path.write_text(yaml.safe_dump({
            'id': 'domain-1',
            'name': 'app.example.com',
            'instance_port': 3000,
            'type': 'subdomain',
            'instance_id': 'instance-1'
        }))

        result = runner.invoke(cli, ['resource', 'update', 'spheron_domain', '--plan', str(path)])

        assert result.exit_code == 0
        assert 'domain-1 updated' in result.output
        mock_client.update_cluster_instance_domain.assert_called_once()

    def test_delete(self, runner, mock_provider, mock_client, state_file):
        result = runner.invoke(cli, ['resource', 'delete', 'spheron_domain', '--state', state_file, '--yes'])

        assert result.exit_code == 0
        assert 'domain-1 destroyed' in result.output
        mock_client.delete_cluster_instance_domain.assert_called_once_with('instance-1', 'domain-1')

    def test_delete_cancelled(self, runner, mock_provider, mock_client, state_file):
        result = runner.invoke(cli, ['resource', 'delete', 'spheron_domain', '--state', state_file], input='n\n')

        assert 'Cancelled' in result.output
        mock_client.delete_cluster_instance_domain.assert_not_called()

    def test_import_with_refresh(self, runner, mock_provider, mock_client):
        result = runner.invoke(cli, ['resource', 'import', 'spheron_domain', 'instance-1/domain-1',
                                     '--format', 'json'])

        assert result.exit_code == 0
        assert '"instance_port": 8080' in result.output
        mock_client.get_cluster_instance_domains.assert_called_once_with('instance-1')

    def test_import_without_refresh(self, runner, mock_provider, mock_client):
        result = runner.invoke(cli, ['resource', 'import', 'spheron_domain', 'domain-1', '--no-refresh',
                                     '--format', 'json'])

        assert result.exit_code == 0
        assert '"id": "domain-1"' in result.output
        mock_client.get_cluster_instance_domains.assert_not_called()

    def test_invalid_plan_file(self, runner, mock_provider, tmp_path):
        path = tmp_path / 'plan.yaml'
        path.write_text(yaml.safe_dump({'instance_port': 'not-a-port'}))

        result = runner.invoke(cli, ['resource', 'create', 'spheron_domain', '--plan', str(path)])

        assert result.exit_code != 0
        assert 'Invalid domain attributes' in result.output

    def test_unknown_resource_type(self, runner, plan_file):
        with patch('spheron_provider.cli.resource_commands.get_provider') as mock_get_provider:
            mock_get_provider.return_value.get_resource.side_effect = ConfigurationError(
                "Unknown resource type 'spheron_bucket'"
            )

            result = runner.invoke(cli, ['resource', 'create', 'spheron_bucket', '--plan', plan_file])

        assert result.exit_code != 0
        assert "Unknown resource type 'spheron_bucket'" in result.output
