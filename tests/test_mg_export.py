"""
Tests for the mg_export.py entry point.

Covers:
- Fatal exit on missing configuration
- Fatal exit on fetch failure
- Terraform on standard output, diagnostics elsewhere
- --input, --output, --summary and --generate-config
"""
import json
import os
import sys
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import mg_export
from mg2tf.utils import FetchError

MG_PREFIX = "/providers/Microsoft.Management/managementGroups/"
TENANT_ID = "tenant123"
SUB_GUID = "00000000-0000-0000-0000-000000000001"

ENTRIES = [
    {
        "id": MG_PREFIX + "finance",
        "name": "finance",
        "type": "Microsoft.Management/managementGroups",
        "properties": {"displayName": "az-ps-Finance Team", "parent": {"id": MG_PREFIX + TENANT_ID}},
    },
    {
        "id": f"/subscriptions/{SUB_GUID}",
        "name": SUB_GUID,
        "type": "Microsoft.Management/managementGroups/subscriptions",
        "properties": {"displayName": "Finance Prod", "parent": {"id": MG_PREFIX + "finance"}},
    },
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run from an empty directory with no Azure variables set."""
    for var in ("AZURE_SUBSCRIPTION_ID", "AZURE_TENANT_ID", "AZURE_ACCESS_TOKEN",
                "MG2TF_LOG_LEVEL", "MG2TF_OUTPUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def azure_env(monkeypatch):
    """Set the three required Azure variables."""
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "12345678-1234-1234-1234-123456789012")
    monkeypatch.setenv("AZURE_TENANT_ID", TENANT_ID)
    monkeypatch.setenv("AZURE_ACCESS_TOKEN", "token-abc")


# =============================================================================
# Configuration Errors
# =============================================================================

class TestMissingConfig:
    """Tests for fatal configuration errors."""

    def test_missing_env_exits(self, capsys):
        """Test missing variables exit with status 1 and a message on stderr."""
        with pytest.raises(SystemExit) as exc_info:
            mg_export.main([])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "AZURE_ACCESS_TOKEN" in captured.err

    def test_partial_env_exits(self, monkeypatch, capsys):
        """Test a single empty variable is fatal."""
        monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub")
        monkeypatch.setenv("AZURE_TENANT_ID", TENANT_ID)
        monkeypatch.setenv("AZURE_ACCESS_TOKEN", "")

        with pytest.raises(SystemExit) as exc_info:
            mg_export.main([])

        assert exc_info.value.code == 1

    def test_no_request_without_config(self):
        """Test the API is never called when configuration is missing."""
        with patch("mg_export.fetch_descendants") as mock_fetch:
            with pytest.raises(SystemExit):
                mg_export.main([])
        mock_fetch.assert_not_called()


# =============================================================================
# Fetch Errors
# =============================================================================

class TestFetchFailure:
    """Tests for fatal fetch errors."""

    def test_fetch_error_exits(self, azure_env, capsys):
        """Test a fetch failure exits 1 with no partial output."""
        with patch("mg_export.fetch_descendants", side_effect=FetchError("HTTP 401: expired")):
            with pytest.raises(SystemExit) as exc_info:
                mg_export.main([])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "HTTP 401: expired" in captured.err

    def test_missing_input_file_exits(self, azure_env):
        """Test an unreadable --input file is fatal."""
        with pytest.raises(SystemExit) as exc_info:
            mg_export.main(["--input", "does-not-exist.json"])
        assert exc_info.value.code == 1


# =============================================================================
# Successful Runs
# =============================================================================

class TestExport:
    """Tests for a full export run."""

    def test_terraform_on_stdout(self, azure_env, capsys):
        """Test blocks go to stdout and the node count to stderr."""
        with patch("mg_export.fetch_descendants", return_value=ENTRIES) as mock_fetch:
            assert mg_export.main([]) == 0

        credentials = mock_fetch.call_args[0][0]
        assert credentials.tenant_id == TENANT_ID
        assert credentials.access_token == "token-abc"

        captured = capsys.readouterr()
        assert captured.out.count('resource "prismacloud_account_group"') == 2
        assert f'\taccount_ids = ["{SUB_GUID}"]' in captured.out
        assert '\tchild_group_ids = ["Finance_Team---finance"]' in captured.out
        assert "There are 3 groups and subscriptions" in captured.err
        assert "There are" not in captured.out

    def test_root_rendered_last(self, azure_env, capsys):
        """Test blocks follow fetch order with the tenant root last."""
        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            mg_export.main([])

        out = capsys.readouterr().out
        assert out.index('"Finance_Team---finance" {') < out.index('"TENANT_ROOT---tenant123" {')

    def test_tenant_flag_overrides_env(self, azure_env, capsys):
        """Test --tenant names the synthetic root."""
        with patch("mg_export.fetch_descendants", return_value=[]):
            mg_export.main(["--tenant", "other-tenant"])

        assert '"TENANT_ROOT---other-tenant" {' in capsys.readouterr().out

    def test_input_file_needs_only_tenant(self, tmp_path, monkeypatch, capsys):
        """Test --input works without a token and never calls the API."""
        monkeypatch.setenv("AZURE_TENANT_ID", TENANT_ID)
        listing = tmp_path / "descendants.json"
        listing.write_text(json.dumps({"value": ENTRIES}))

        with patch("mg_export.fetch_descendants") as mock_fetch:
            assert mg_export.main(["--input", str(listing)]) == 0

        mock_fetch.assert_not_called()
        assert '"Finance_Team---finance" {' in capsys.readouterr().out

    def test_output_file(self, azure_env, tmp_path, capsys):
        """Test --output writes the blocks to a file instead of stdout."""
        target = tmp_path / "out" / "groups.tf"

        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            assert mg_export.main(["--output", str(target)]) == 0

        assert capsys.readouterr().out == ""
        content = target.read_text()
        assert content.count('resource "prismacloud_account_group"') == 2

    def test_unwritable_output_exits(self, azure_env, tmp_path, capsys):
        """Test an output path under a regular file exits 1 with a message."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        target = blocker / "out.tf"

        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            with pytest.raises(SystemExit) as exc_info:
                mg_export.main(["--output", str(target)])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Failed to write Terraform to" in captured.err
        assert str(target) in captured.err

    def test_numeric_log_level_in_config(self, azure_env, tmp_path, capsys):
        """Test a non-string log_level from the config file does not crash."""
        config = tmp_path / "mg2tf.yaml"
        config.write_text("log_level: 10\n")

        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            assert mg_export.main(["--config", str(config)]) == 0

        assert '"Finance_Team---finance" {' in capsys.readouterr().out

    def test_summary_goes_to_stderr(self, azure_env, capsys):
        """Test --summary prints the group table on stderr only."""
        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            mg_export.main(["--summary"])

        captured = capsys.readouterr()
        assert "Management Groups" in captured.err
        assert "Management Groups" not in captured.out

    def test_config_file_render_settings(self, azure_env, tmp_path, capsys):
        """Test render overrides from the config file reach the output."""
        config = tmp_path / "mg2tf.yaml"
        config.write_text("render:\n  description: Synced from Azure\n")

        with patch("mg_export.fetch_descendants", return_value=ENTRIES):
            mg_export.main(["--config", str(config)])

        out = capsys.readouterr().out
        assert '\tdescription = "Synced from Azure"' in out
        assert "Made by Terraform" not in out


class TestGenerateConfig:
    """Tests for --generate-config."""

    def test_prints_sample(self, capsys):
        """Test the sample config is printed without needing credentials."""
        assert mg_export.main(["--generate-config"]) == 0
        assert "render:" in capsys.readouterr().out
