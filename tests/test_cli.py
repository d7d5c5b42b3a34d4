"""Smoke tests for the CLI.

These tests verify CLI wiring without requiring rpm or rpmbuild; the
format stages are mocked.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from pkgshift import __version__
from pkgshift.cli import app
from pkgshift.errors import BuildError, ScanError
from pkgshift.models import Package

runner = CliRunner()


def _package() -> Package:
    return Package(
        name="hello",
        version="1.0",
        release="1",
        arch="i686",
        summary="Prints a greeting",
        copyright="GPL",
        distribution="Red Hat",
        file_list=["/usr/bin/hello"],
        postinst=b"#!/bin/sh\n",
    )


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        """CLI --help should return exit code 0."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "convert binary packages" in result.stdout

    def test_version_flag(self) -> None:
        """CLI --version should print version and exit 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_formats(self) -> None:
        """CLI formats should list rpm."""
        result = runner.invoke(app, ["formats"])
        assert result.exit_code == 0
        assert "rpm" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        """CLI config should show configuration."""
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Work directory" in result.stdout
        assert "rpmbuild" in result.stdout

    def test_config_json(self) -> None:
        """CLI config --json should output JSON."""
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        assert "rpm_command" in json.loads(result.stdout)


class TestCLIScan:
    """Test CLI scan command."""

    def test_scan(self) -> None:
        """CLI scan should print package metadata."""
        with patch("pkgshift.rpm.format.scan_package", return_value=_package()):
            result = runner.invoke(app, ["scan", "hello.rpm"])
        assert result.exit_code == 0
        assert "hello-1.0-1" in result.stdout
        assert "postinst" in result.stdout

    def test_scan_json(self) -> None:
        """CLI scan --json should output the model without raw scripts."""
        with patch("pkgshift.rpm.format.scan_package", return_value=_package()):
            result = runner.invoke(app, ["scan", "hello.rpm", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == "hello"
        assert data["arch"] == "i386"
        assert data["scripts"] == ["postinst"]
        assert "postinst" not in data

    def test_scan_failure(self) -> None:
        """CLI scan should exit 1 on a scan error."""
        with patch(
            "pkgshift.rpm.format.scan_package",
            side_effect=ScanError("Error querying rpm file"),
        ):
            result = runner.invoke(app, ["scan", "broken.rpm"])
        assert result.exit_code == 1

    def test_unknown_format(self) -> None:
        """CLI should reject unknown formats."""
        result = runner.invoke(app, ["scan", "x.pkg", "--format", "slp"])
        assert result.exit_code == 1


class TestCLIConvert:
    """Test CLI convert command."""

    def test_convert(self, tmp_path) -> None:
        """CLI convert should report the generated artifact."""
        with patch(
            "pkgshift.rpm.format.RpmFormat.convert",
            return_value=(_package(), "hello-1.0-1.i386.rpm"),
        ) as convert:
            result = runner.invoke(
                app, ["convert", "hello.rpm", "--workdir", str(tmp_path)]
            )
        assert result.exit_code == 0
        assert "hello-1.0-1.i386.rpm generated" in result.stdout
        assert convert.call_args[0][1] == tmp_path

    def test_build_options_forwarded(self) -> None:
        """CLI --build-options should reach the builder."""
        with patch("pkgshift.cli.get_format") as get_format:
            get_format.return_value.return_value.convert.return_value = (
                _package(),
                "x.rpm",
            )
            result = runner.invoke(
                app, ["convert", "hello.rpm", "--build-options=--sign"]
            )
        assert result.exit_code == 0
        assert get_format.return_value.call_args[1]["build_options"] == "--sign"

    def test_convert_failure(self) -> None:
        """CLI convert should exit 1 when a stage fails."""
        with patch(
            "pkgshift.rpm.format.RpmFormat.convert",
            side_effect=BuildError("Package build failed with exit code 1"),
        ):
            result = runner.invoke(app, ["convert", "hello.rpm"])
        assert result.exit_code == 1


class TestCLIInstall:
    """Test CLI install command."""

    def test_install(self) -> None:
        """CLI install should call the installer with the options."""
        with patch("pkgshift.rpm.format.install_package") as install:
            result = runner.invoke(
                app, ["install", "hello.rpm", "--options=--nodeps"]
            )
        assert result.exit_code == 0
        assert install.call_args[0][2] == "--nodeps"
