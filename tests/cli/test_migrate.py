"""
Tests for migrate command.

Tests migrating document files between schema versions.
"""

import json

from click.testing import CliRunner

from hunt_store.cli.main import cli


def _write(tmp_path, name, document):
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestMigrateCommand:
    """Test the migrate command."""

    def test_migrate_in_place(self, tmp_path, legacy_app):
        """Test migrating a legacy document overwrites the file."""
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(cli, ["migrate", str(path), "--kind", "app"])

        assert result.exit_code == 0
        assert "Migrated 0.9.0 -> 1.2.0" in result.output
        migrated = json.loads(path.read_text(encoding="utf-8"))
        assert migrated["schemaVersion"] == "1.2.0"
        assert migrated["organizations"][0]["orgSlug"] == "bhhs"

    def test_migrate_to_output_file(self, tmp_path, legacy_org):
        path = _write(tmp_path, "org.json", legacy_org)
        output = tmp_path / "org-1.1.json"

        result = CliRunner().invoke(
            cli, ["migrate", str(path), "--kind", "org", "--target", "1.1.0", "-o", str(output)]
        )

        assert result.exit_code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["schemaVersion"] == "1.1.0"
        # Source file is untouched
        assert "schemaVersion" not in json.loads(path.read_text(encoding="utf-8"))

    def test_dry_run_does_not_write(self, tmp_path, legacy_app):
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(cli, ["migrate", str(path), "--kind", "app", "--dry-run"])

        assert result.exit_code == 0
        assert '"schemaVersion": "1.2.0"' in result.output
        assert json.loads(path.read_text(encoding="utf-8")) == legacy_app

    def test_already_at_target(self, tmp_path, sample_org_v1_2):
        path = _write(tmp_path, "org.json", sample_org_v1_2)

        result = CliRunner().invoke(cli, ["migrate", str(path), "--kind", "org"])

        assert result.exit_code == 0
        assert "already at version 1.2.0" in result.output

    def test_unknown_target(self, tmp_path, legacy_app):
        path = _write(tmp_path, "app.json", legacy_app)

        result = CliRunner().invoke(
            cli, ["migrate", str(path), "--kind", "app", "--target", "3.0.0"]
        )

        assert result.exit_code == 1
        assert "Unknown appData schema version: 3.0.0" in result.output

    def test_failed_migration_reports_progress(self, tmp_path):
        """Test a step whose output fails validation stops the chain."""
        path = _write(tmp_path, "app.json", {"schemaVersion": "1.0.0", "app": {}})

        result = CliRunner().invoke(cli, ["migrate", str(path), "--kind", "app"])

        assert result.exit_code == 1
        assert "Migration failed" in result.output
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "schemaVersion": "1.0.0",
            "app": {},
        }

    def test_non_object_document(self, tmp_path):
        path = _write(tmp_path, "list.json", [1, 2, 3])

        result = CliRunner().invoke(cli, ["migrate", str(path), "--kind", "org"])

        assert result.exit_code == 1
        assert "Document must be a JSON object" in result.output
