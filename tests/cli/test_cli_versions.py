"""
Tests for versions and top-level CLI options.
"""

from click.testing import CliRunner

from hunt_store import __version__
from hunt_store.cli.main import cli


class TestVersionsCommand:
    """Test the versions command."""

    def test_app_versions(self):
        result = CliRunner().invoke(cli, ["versions", "--kind", "app"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "appData schema versions:"
        assert lines[1] == (
            "  0.9.0 (default for unversioned, deprecated -> 1.0.0): "
            "Legacy flat structure before nested organization"
        )
        assert lines[-1] == "  1.2.0 (latest): Video support and enhanced feature flags"

    def test_org_versions(self):
        result = CliRunner().invoke(cli, ["versions", "--kind", "org"])

        assert result.exit_code == 0
        assert "  1.1.0: Adds team and hunt upload tracking" in result.output
        assert "1.2.0 (latest)" in result.output

    def test_unknown_kind(self):
        result = CliRunner().invoke(cli, ["versions", "--kind", "hunt"])

        assert result.exit_code == 2


class TestCliGroup:
    """Test top-level options."""

    def test_version_option(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert f"hunt-store, version {__version__}" in result.output

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("audit", "migrate", "validate", "versions"):
            assert command in result.output

    def test_log_level_option(self):
        result = CliRunner().invoke(cli, ["--log-level", "debug", "versions", "--kind", "org"])

        assert result.exit_code == 0
