"""
Unit tests for the CLI.

Tests the command group, global options, key generation and license
issue/verify commands.
"""

import pytest
from click.testing import CliRunner

from tiergate._version import __version__
from tiergate.cli.main import cli
from tiergate.config.settings import LICENSE_KEY_ENV_VAR


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv(LICENSE_KEY_ENV_VAR, raising=False)
    return CliRunner()


@pytest.fixture
def base_args(temp_dir):
    return ["--config", str(temp_dir / "config.yaml"), "--log-level", "ERROR"]


class TestCLIMain:
    """Test CLI main entry point."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Tiergate' in result.output
        assert '--config' in result.output
        assert '--log-level' in result.output
        assert '--verbose' in result.output
        assert 'keys' in result.output
        assert 'license' in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_exits(self, runner, temp_dir):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("logging:\n  level: LOUD\n")

        result = runner.invoke(cli, ['--config', str(config_path), 'license', 'features'])

        assert result.exit_code == 1
        assert 'Invalid configuration' in result.output


class TestKeysCommands:
    """Test key management commands."""

    def test_generate_verify_export(self, runner, base_args, temp_dir):
        private_path = temp_dir / "issuer.pem"
        public_path = temp_dir / "issuer.pub"

        result = runner.invoke(cli, base_args + [
            'keys', 'generate', '-p', str(private_path), '-u', str(public_path), '-P', 'pw',
        ])
        assert result.exit_code == 0, result.output
        assert 'Generated key pair' in result.output
        assert private_path.exists()

        result = runner.invoke(cli, base_args + ['keys', 'verify', '-p', str(private_path), '-P', 'pw'])
        assert result.exit_code == 0, result.output

        exported = temp_dir / "exported.pub"
        result = runner.invoke(cli, base_args + [
            'keys', 'export-public', '-p', str(private_path), '-u', str(exported), '-P', 'pw',
        ])
        assert result.exit_code == 0, result.output
        assert exported.read_bytes() == public_path.read_bytes()

    def test_generate_prompts_for_passphrase(self, runner, base_args, temp_dir):
        result = runner.invoke(
            cli,
            base_args + ['keys', 'generate', '-p', str(temp_dir / "k.pem"), '-u', str(temp_dir / "k.pub")],
            input="\n\n",
        )
        assert result.exit_code == 0, result.output
        assert 'NOT encrypted' in result.output

    def test_generate_refuses_existing(self, runner, base_args, key_files):
        private_path, public_path = key_files
        result = runner.invoke(cli, base_args + [
            'keys', 'generate', '-p', str(private_path), '-u', str(public_path), '-P', 'pw',
        ])
        assert result.exit_code == 1
        assert 'already exists' in result.output

    def test_verify_bad_key(self, runner, base_args, temp_dir):
        path = temp_dir / "bad.pem"
        path.write_text("not a key")
        result = runner.invoke(cli, base_args + ['keys', 'verify', '-p', str(path)])
        assert result.exit_code == 1


class TestLicenseCommands:
    """Test license issue, verify and features commands."""

    def _issue(self, runner, base_args, key_files, temp_dir, *extra):
        private_path, _ = key_files
        output = temp_dir / "license.key"
        result = runner.invoke(cli, base_args + [
            'license', 'issue',
            '-k', str(private_path),
            '-i', 'lic_cli_001',
            '-t', 'business',
            '--customer-name', 'Acme Corp',
            '--issued-at', '2026-01-01',
            '--expires-at', '2027-01-01',
            '-o', str(output),
            *extra,
        ])
        assert result.exit_code == 0, result.output
        return output.read_text().strip()

    def test_issue_and_verify(self, runner, base_args, key_files, temp_dir):
        _, public_path = key_files
        key = self._issue(
            runner, base_args, key_files, temp_dir,
            '-f', 'saml', '--limit', 'max_users=42', '-m', 'po=123',
        )

        result = runner.invoke(cli, base_args + [
            'license', 'verify', key, '--public-key', str(public_path), '--at', '2026-06-01',
        ])

        assert result.exit_code == 0, result.output
        assert 'License is valid' in result.output
        assert 'lic_cli_001' in result.output
        assert 'Tier: business' in result.output
        assert 'saml' in result.output
        assert 'max_users: 42' in result.output

    def test_issued_key_verifies_with_library(self, runner, base_args, key_files, temp_dir, verifier, now):
        key = self._issue(runner, base_args, key_files, temp_dir, '--limit', 'max_users=42')
        license = verifier.verify(key, now)

        assert license.id == 'lic_cli_001'
        assert license.limits.max_users == 42
        # Unspecified limits take the business defaults.
        assert license.limits.max_domains == 10

    def test_verify_expired(self, runner, base_args, key_files, temp_dir):
        _, public_path = key_files
        key = self._issue(runner, base_args, key_files, temp_dir)

        result = runner.invoke(cli, base_args + [
            'license', 'verify', key, '--public-key', str(public_path), '--at', '2027-01-01',
        ])

        assert result.exit_code == 1
        assert 'expired' in result.output

    def test_verify_not_yet_valid(self, runner, base_args, key_files, temp_dir):
        _, public_path = key_files
        key = self._issue(runner, base_args, key_files, temp_dir)

        result = runner.invoke(cli, base_args + [
            'license', 'verify', key, '--public-key', str(public_path), '--at', '2025-12-31',
        ])

        assert result.exit_code == 1
        assert 'not_yet_valid' in result.output

    def test_verify_against_embedded_key(self, runner, base_args, key_files, temp_dir):
        key = self._issue(runner, base_args, key_files, temp_dir)
        result = runner.invoke(cli, base_args + ['license', 'verify', key, '--at', '2026-06-01'])

        assert result.exit_code == 1
        assert 'invalid_signature' in result.output

    def test_verify_garbage(self, runner, base_args):
        result = runner.invoke(cli, base_args + ['license', 'verify', 'garbage'])
        assert result.exit_code == 1
        assert 'invalid_format' in result.output

    def test_verify_from_key_file(self, runner, base_args, key_files, temp_dir):
        _, public_path = key_files
        self._issue(runner, base_args, key_files, temp_dir)
        result = runner.invoke(cli, base_args + [
            'license', 'verify', '--key-file', str(temp_dir / "license.key"),
            '--public-key', str(public_path), '--at', '2026-06-01',
        ])
        assert result.exit_code == 0, result.output

    def test_issue_perpetual(self, runner, base_args, key_files, temp_dir, verifier, now):
        private_path, _ = key_files
        output = temp_dir / "perpetual.key"
        result = runner.invoke(cli, base_args + [
            'license', 'issue', '-k', str(private_path), '-t', 'pro', '--type', 'perpetual',
            '--issued-at', now.strftime('%Y-%m-%d'), '--perpetual', '-o', str(output),
        ])
        assert result.exit_code == 0, result.output
        assert verifier.verify(output.read_text().strip(), now).expires_at is None

    @pytest.mark.parametrize("limit", ['max_rockets=1', 'max_users=-1', 'max_users=ten', 'max_users'])
    def test_issue_rejects_bad_limits(self, runner, base_args, key_files, limit):
        private_path, _ = key_files
        result = runner.invoke(cli, base_args + [
            'license', 'issue', '-k', str(private_path), '-t', 'pro', '--limit', limit,
        ])
        assert result.exit_code == 2

    def test_issue_missing_private_key(self, runner, base_args, temp_dir):
        result = runner.invoke(cli, base_args + [
            'license', 'issue', '-k', str(temp_dir / "missing.pem"), '-t', 'pro',
        ])
        assert result.exit_code == 1
        assert 'not found' in result.output

    def test_features_for_tier(self, runner, base_args):
        result = runner.invoke(cli, base_args + ['license', 'features', '--tier', 'pro'])

        assert result.exit_code == 0
        assert 'custom_domains' in result.output
        assert 'saml' not in result.output

    def test_all_features(self, runner, base_args):
        result = runner.invoke(cli, base_args + ['license', 'features'])

        assert result.exit_code == 0
        assert 'saml' in result.output
        assert 'enterprise' in result.output
