"""
Tests for validate command.

Tests validating document files from the command line.
"""

import json

from click.testing import CliRunner

from hunt_store.cli.main import cli


def _write(tmp_path, name, document):
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestValidateCommand:
    """Test the validate command."""

    def test_validate_latest_document(self, tmp_path, sample_app_v1_2):
        """Test validating a document already at the latest version."""
        path = _write(tmp_path, "app.json", sample_app_v1_2)

        result = CliRunner().invoke(cli, ["validate", str(path), "--kind", "app"])

        assert result.exit_code == 0
        assert "valid appData document (version 1.2.0)" in result.output
        assert "migrated" not in result.output

    def test_validate_migrates_legacy_document(self, tmp_path, legacy_org):
        path = _write(tmp_path, "org.json", legacy_org)

        result = CliRunner().invoke(cli, ["validate", str(path), "--kind", "org"])

        assert result.exit_code == 0
        assert "(version 1.2.0)" in result.output
        assert "migrated: 0.9.0->1.0.0, 1.0.0->1.1.0, 1.1.0->1.2.0" in result.output

    def test_validate_without_migration(self, tmp_path, legacy_app):
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(
            cli, ["validate", str(path), "--kind", "app", "--no-migrate", "--verbose"]
        )

        assert result.exit_code == 0
        assert "(version 0.9.0)" in result.output
        assert "[DEPRECATED_VERSION]" in result.output
        assert "migrated" not in result.output

    def test_validate_without_migration_keeps_stored_version(self, tmp_path, samples_by_kind):
        path = _write(tmp_path, "org.json", samples_by_kind["orgData"]["1.1.0"])

        result = CliRunner().invoke(
            cli, ["validate", str(path), "--kind", "org", "--no-migrate"]
        )

        assert result.exit_code == 0
        assert "(version 1.1.0)" in result.output
        assert "migrated" not in result.output

    def test_strict_rejects_unversioned_document(self, tmp_path, legacy_app):
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(cli, ["validate", str(path), "--kind", "app", "--strict"])

        assert result.exit_code == 1
        assert "is invalid!" in result.output
        assert "[MISSING_SCHEMA_VERSION]" in result.output

    def test_invalid_document_lists_errors(self, tmp_path, sample_org_v1_2):
        """Test that field-level errors are printed with their paths."""
        sample_org_v1_2["org"]["contacts"][0]["email"] = "not-an-email"
        path = _write(tmp_path, "org.json", sample_org_v1_2)

        result = CliRunner().invoke(
            cli, ["validate", str(path), "--kind", "org", "--verbose"]
        )

        assert result.exit_code == 1
        assert "[INVALID_STRING] org.contacts.0.email" in result.output
        assert "suggestion:" in result.output

    def test_health_report(self, tmp_path, legacy_app):
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(cli, ["validate", str(path), "--kind", "app", "--health"])

        assert result.exit_code == 0
        assert "Health score: 95" in result.output
        assert "Data was migrated" in result.output

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        result = CliRunner().invoke(cli, ["validate", str(path), "--kind", "app"])

        assert result.exit_code == 1
        assert "Invalid JSON in document file" in result.output

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["validate", str(tmp_path / "missing.json"), "--kind", "app"]
        )

        assert result.exit_code == 2

    def test_kind_is_required(self, tmp_path, sample_app_v1_2):
        path = _write(tmp_path, "app.json", sample_app_v1_2)

        result = CliRunner().invoke(cli, ["validate", str(path)])

        assert result.exit_code == 2
        assert "--kind" in result.output
