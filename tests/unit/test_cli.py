"""
Unit tests for krbdiag.cli module.

Runs the command with fake network and login backends.
"""

import io

import pytest
from rich.console import Console
from typer.testing import CliRunner

from krbdiag.cli import main as cli_main
from krbdiag.cli.render import ReportRenderer
from krbdiag.core.exceptions import LoginError
from krbdiag.core.report import DiagnosticReport
from krbdiag.core.types import Status
from krbdiag.diagnostics.auth import AuthenticationTester
from krbdiag.diagnostics.runner import DiagnosticRunner
from tests.conftest import FakeBackend, FakeNetwork

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path, settings):
    path = tmp_path / "config.properties"
    path.write_text(
        f"keytabPath={settings.keytab_path}\n"
        f"principal={settings.principal}\n"
        f"krb5ConfPath={settings.krb5_conf_path}\n"
    )
    return path


@pytest.fixture
def use_fakes(monkeypatch, network):
    def install(backend):
        monkeypatch.setattr(
            cli_main,
            "DiagnosticRunner",
            lambda: DiagnosticRunner(
                prober=network.prober(), tester=AuthenticationTester(backend=backend)
            ),
        )
    return install


class TestCommand:
    """Tests for the krbdiag command."""

    def test_missing_settings_file(self, tmp_path):
        result = runner.invoke(cli_main.app, ["--config", str(tmp_path / "none.properties")])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_missing_required_keys(self, tmp_path):
        path = tmp_path / "config.properties"
        path.write_text("principal=u@R\n")
        result = runner.invoke(cli_main.app, ["--config", str(path), "--no-color"])
        assert result.exit_code == 1
        assert "keytabPath is not configured" in result.output
        assert "RESULT: DIAGNOSTIC FAILED" in result.output
        assert "Step 1" not in result.output

    def test_all_checks_pass(self, config_file, use_fakes):
        use_fakes(FakeBackend())
        result = runner.invoke(cli_main.app, ["--config", str(config_file), "--no-color"])
        assert result.exit_code == 0, result.output
        assert "Kerberos Connectivity Diagnostic Tool" in result.output
        assert "✓ Kerberos authentication" in result.output
        assert "RESULT: ALL CHECKS PASSED" in result.output

    def test_auth_failure_exits_one(self, config_file, use_fakes):
        use_fakes(FakeBackend(error=LoginError("Clock skew too great")))
        result = runner.invoke(cli_main.app, ["--config", str(config_file), "--no-color"])
        assert result.exit_code == 1
        assert "Root Cause: TIME SYNCHRONIZATION ERROR" in result.output
        assert "• Kerberos authentication" in result.output


class TestRenderer:
    """Tests for the terminal renderer."""

    def render(self, *results):
        buffer = io.StringIO()
        renderer = ReportRenderer(Console(file=buffer, no_color=True, width=100))
        report = DiagnosticReport(listener=renderer)
        report.section("Step X")
        for name, status, detail in results:
            report.add(name, status, detail)
        renderer.summary(report)
        return buffer.getvalue()

    def test_detail_lines_indented(self):
        output = self.render(("Keytab content", Status.PASSED, "Principals in keytab:\n   - a@R [MATCH]"))
        assert "  ✓ Keytab content\n" in output
        assert "    Principals in keytab:\n" in output
        assert "       - a@R [MATCH]\n" in output

    def test_warning_verdict(self):
        output = self.render(("udp_preference_limit", Status.WARNING, "Current value: 2"))
        assert "⚠ udp_preference_limit" in output
        assert "RESULT: PASSED WITH WARNINGS" in output
        assert "⚠ Warnings: 1" in output

    def test_failed_verdict_lists_checks(self):
        output = self.render(
            ("a", Status.FAILED, ""),
            ("b", Status.SKIPPED, ""),
            ("c", Status.FAILED, ""),
        )
        assert "RESULT: DIAGNOSTIC FAILED" in output
        assert output.index("• a") < output.index("• c")
        assert "○ Skipped:  1" in output
