"""Tests for rpm/builder.py module.

Uses mocked subprocess for showrc queries and build execution.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from pkgshift.config import Settings
from pkgshift.errors import BuildError, BuildPrepError
from pkgshift.models import Package
from pkgshift.rpm.builder import (
    BuilderConfig,
    build_package,
    compose_build_command,
    parse_showrc,
    plan_build,
    query_builder_config,
)

MODERN_SHOWRC = """\
ARCHITECTURE AND OS:
build arch            : x86_64
compatible build archs: x86_64 noarch
build os              : Linux
install arch          : x86_64
"""

LEGACY_SHOWRC = """\
build arch            : i386
build os              : Linux
rpmdir                : /usr/src/redhat/RPMS
"""


@pytest.fixture
def settings() -> Settings:
    """Create default settings."""
    return Settings()


@pytest.fixture
def package(tmp_path) -> Package:
    """Create an unpacked architecture-specific package."""
    pkg = Package(name="hello", version="1.0", release="1", arch="i386")
    pkg.set_working_dir(tmp_path)
    return pkg


@pytest.fixture
def noarch_package(tmp_path) -> Package:
    """Create an unpacked architecture-independent package."""
    pkg = Package(name="docs", version="2-1", release="3", arch="all")
    pkg.set_working_dir(tmp_path)
    return pkg


class TestParseShowrc:
    """Tests for parse_showrc function."""

    def test_modern(self):
        """Should report no rpmdir for a modern builder."""
        config = parse_showrc(MODERN_SHOWRC)
        assert config.build_arch == "x86_64"
        assert config.rpmdir is None
        assert config.legacy is False
        assert config.noarch_keyword == "noarch"
        assert config.compatible_archs == ["x86_64", "noarch"]

    def test_legacy(self):
        """Should report rpmdir for a legacy builder."""
        config = parse_showrc(LEGACY_SHOWRC)
        assert config.build_arch == "i386"
        assert config.rpmdir == "/usr/src/redhat/RPMS"
        assert config.legacy is True

    def test_missing_build_arch(self):
        """Should fail when the build architecture is not reported."""
        with pytest.raises(BuildError):
            parse_showrc("build os              : Linux\n")

    def test_fallback_noarch_keyword(self):
        """Should use the fallback keyword when none is listed."""
        config = parse_showrc(LEGACY_SHOWRC, fallback_noarch="noarch")
        assert config.noarch_keyword == "noarch"

    def test_noarch_keyword_from_builder(self):
        """Should pick the builder's own architecture-independent keyword."""
        showrc = "build arch            : armv7hl\ncompatible build archs: armv7hl arm-noarch\n"
        config = parse_showrc(showrc)
        assert config.noarch_keyword == "arm-noarch"


class TestQueryBuilderConfig:
    """Tests for query_builder_config function."""

    def test_runs_showrc(self, settings):
        """Should parse the output of rpm --showrc."""
        result = MagicMock(stdout=MODERN_SHOWRC, returncode=0)
        with patch(
            "pkgshift.rpm.builder.subprocess.run", return_value=result
        ) as mock_run:
            config = query_builder_config(settings)

        assert mock_run.call_args[0][0] == ["rpm", "--showrc"]
        assert config.build_arch == "x86_64"

    def test_showrc_failure(self, settings):
        """Should raise BuildError when rpm --showrc fails."""
        error = subprocess.CalledProcessError(1, ["rpm", "--showrc"], stderr="boom")
        with patch("pkgshift.rpm.builder.subprocess.run", side_effect=error):
            with pytest.raises(BuildError) as exc_info:
                query_builder_config(settings)
        assert exc_info.value.code == "showrc_error"


class TestPlanBuild:
    """Tests for plan_build function."""

    def test_modern_arch_specific(self, package):
        """Should return a bare file name and no override flag."""
        plan = plan_build(package, parse_showrc(MODERN_SHOWRC))
        assert plan.arch == "x86_64"
        assert plan.arch_args == []
        assert plan.artifact == "hello-1.0-1.x86_64.rpm"

    def test_modern_noarch(self, noarch_package):
        """Should use --target for a modern builder."""
        plan = plan_build(noarch_package, parse_showrc(MODERN_SHOWRC))
        assert plan.arch == "noarch"
        assert plan.arch_args == ["--target", "noarch"]
        assert plan.artifact == "docs-2_1-3.noarch.rpm"

    def test_undeclared_arch(self, tmp_path):
        """Should build for the builder default without an override flag."""
        pkg = Package(name="hello", version="1.0", release="1")
        pkg.set_working_dir(tmp_path)
        plan = plan_build(pkg, parse_showrc(MODERN_SHOWRC))
        assert plan.arch == "x86_64"
        assert plan.arch_args == []
        assert plan.artifact == "hello-1.0-1.x86_64.rpm"

    def test_legacy_arch_specific(self, package):
        """Should nest the artifact under <rpmdir>/<arch>/."""
        plan = plan_build(package, parse_showrc(LEGACY_SHOWRC))
        assert plan.arch_args == []
        assert plan.artifact == "/usr/src/redhat/RPMS/i386/hello-1.0-1.i386.rpm"

    def test_legacy_noarch(self, noarch_package):
        """Should use --buildarch for a legacy builder."""
        plan = plan_build(noarch_package, parse_showrc(LEGACY_SHOWRC))
        assert plan.arch_args == ["--buildarch", "noarch"]
        assert plan.artifact == "/usr/src/redhat/RPMS/noarch/docs-2_1-3.noarch.rpm"


class TestComposeBuildCommand:
    """Tests for compose_build_command function."""

    def test_command(self, noarch_package, settings):
        """Should place flag, -bb, extra options and spec in order."""
        plan = plan_build(noarch_package, BuilderConfig(build_arch="x86_64"))
        cmd = compose_build_command(
            noarch_package, plan, "--define '_topdir /tmp/x' -v", settings
        )
        assert cmd == [
            "rpmbuild",
            "--target",
            "noarch",
            "-bb",
            "--define",
            "_topdir /tmp/x",
            "-v",
            "docs-2_1-3.spec",
        ]


class TestBuildPackage:
    """Tests for build_package function."""

    def test_success(self, package, settings, tmp_path):
        """Should run in the working directory and return the artifact."""
        config = parse_showrc(MODERN_SHOWRC)
        with patch(
            "pkgshift.rpm.builder.subprocess.run",
            return_value=MagicMock(returncode=0),
        ) as mock_run:
            artifact = build_package(package, settings, config=config)

        assert artifact == "hello-1.0-1.x86_64.rpm"
        assert mock_run.call_args[1]["cwd"] == tmp_path
        assert mock_run.call_args[0][0][-1] == "hello-1.0-1.spec"

    def test_queries_config(self, package, settings):
        """Should query rpm --showrc when no config is given."""
        responses = [
            MagicMock(stdout=LEGACY_SHOWRC, returncode=0),
            MagicMock(returncode=0),
        ]
        with patch("pkgshift.rpm.builder.subprocess.run", side_effect=responses):
            artifact = build_package(package, settings)
        assert artifact == "/usr/src/redhat/RPMS/i386/hello-1.0-1.i386.rpm"

    def test_build_failure(self, package, settings):
        """Should raise BuildError on a non-zero exit."""
        with patch(
            "pkgshift.rpm.builder.subprocess.run",
            return_value=MagicMock(returncode=1),
        ):
            with pytest.raises(BuildError) as exc_info:
                build_package(
                    package, settings, config=parse_showrc(MODERN_SHOWRC)
                )
        assert exc_info.value.exit_code == 1

    def test_builder_missing(self, package, settings):
        """Should raise BuildError with the OS error text."""
        with patch(
            "pkgshift.rpm.builder.subprocess.run",
            side_effect=FileNotFoundError("No such file or directory: 'rpmbuild'"),
        ):
            with pytest.raises(BuildError) as exc_info:
                build_package(
                    package, settings, config=parse_showrc(MODERN_SHOWRC)
                )
        assert "No such file" in str(exc_info.value)

    def test_requires_working_dir(self, settings):
        """Should refuse to build a package that was not unpacked."""
        pkg = Package(name="a", version="1", release="1")
        with pytest.raises(BuildPrepError):
            build_package(pkg, settings, config=parse_showrc(MODERN_SHOWRC))
