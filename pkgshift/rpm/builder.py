"""RPM build execution.

This module handles:
- Discovering builder configuration from ``rpm --showrc``
- Choosing the architecture override flag for the builder generation
- Running the build inside the working directory
- Composing the path of the built package

Legacy rpm reports an ``rpmdir`` and writes packages to
``<rpmdir>/<arch>/``; it spells the architecture override ``--buildarch``.
Newer builders do not report ``rpmdir``, honour the ``_rpmdir`` and
``_rpmfilename`` defines of the spec file, and spell it ``--target``.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
from dataclasses import dataclass, field

from pkgshift.arch import ARCH_ALL, builder_arch
from pkgshift.config import Settings
from pkgshift.errors import BuildError
from pkgshift.models import Package
from pkgshift.rpm.specfile import spec_filename

logger = logging.getLogger(__name__)

BUILD_ARCH_PATTERN = re.compile(r"^build arch\s+:\s(.*)$")
RPMDIR_PATTERN = re.compile(r"^rpmdir\s+:\s(.*)$")
COMPAT_ARCHS_PATTERN = re.compile(r"^compatible build archs\s*:\s(.*)$")

LEGACY_ARCH_FLAG = "--buildarch"
MODERN_ARCH_FLAG = "--target"


@dataclass
class BuilderConfig:
    """Builder configuration as reported by ``rpm --showrc``.

    Attributes:
        build_arch: Default output architecture.
        rpmdir: Output directory; only reported by legacy builders.
        noarch_keyword: Keyword for architecture-independent builds.
        compatible_archs: Architectures the builder can produce.
    """

    build_arch: str
    rpmdir: str | None = None
    noarch_keyword: str = "noarch"
    compatible_archs: list[str] = field(default_factory=list)

    @property
    def legacy(self) -> bool:
        """Whether this is a legacy builder that reports its output dir."""
        return self.rpmdir is not None


@dataclass
class BuildPlan:
    """How a package will be built and where the result lands."""

    arch: str
    arch_args: list[str]
    artifact: str


def parse_showrc(output: str, fallback_noarch: str = "noarch") -> BuilderConfig:
    """Parse ``rpm --showrc`` output.

    Args:
        output: Text printed by ``rpm --showrc``.
        fallback_noarch: Noarch keyword when the builder does not list one.

    Returns:
        BuilderConfig.

    Raises:
        BuildError: If the build architecture is not reported.
    """
    build_arch: str | None = None
    rpmdir: str | None = None
    compat: list[str] = []

    for line in output.splitlines():
        if match := BUILD_ARCH_PATTERN.match(line):
            build_arch = match.group(1).strip()
        elif match := RPMDIR_PATTERN.match(line):
            rpmdir = match.group(1).strip() or None
        elif match := COMPAT_ARCHS_PATTERN.match(line):
            compat = match.group(1).split()

    if not build_arch:
        raise BuildError(
            "rpm --showrc did not report a build architecture",
            code="showrc_error",
        )

    noarch = fallback_noarch
    if fallback_noarch not in compat:
        for arch in compat:
            if "noarch" in arch:
                noarch = arch
                break

    return BuilderConfig(
        build_arch=build_arch,
        rpmdir=rpmdir,
        noarch_keyword=noarch,
        compatible_archs=compat,
    )


def query_builder_config(settings: Settings) -> BuilderConfig:
    """Ask rpm how it is set up.

    Raises:
        BuildError: If rpm cannot be queried or reports no build arch.
    """
    cmd = [settings.rpm_command, "--showrc"]
    logger.debug("Querying builder configuration: %s", shlex.join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=settings.command_timeout,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise BuildError(
            f"rpm --showrc failed: {e.stderr}",
            exit_code=e.returncode,
            code="showrc_error",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise BuildError("rpm --showrc timed out", code="timeout") from e
    except OSError as e:
        raise BuildError(
            f"Failed to run rpm --showrc: {e}", code="execution_error"
        ) from e

    return parse_showrc(result.stdout, settings.noarch_keyword)


def plan_build(package: Package, config: BuilderConfig) -> BuildPlan:
    """Decide the output architecture, override flag and artifact path."""
    arch = builder_arch(package.arch, config.build_arch, config.noarch_keyword)
    filename = f"{package.full_name}.{arch}.rpm"

    arch_args: list[str] = []
    if config.legacy:
        artifact = f"{config.rpmdir}/{arch}/{filename}"
        if package.arch == ARCH_ALL:
            arch_args = [LEGACY_ARCH_FLAG, arch]
    else:
        artifact = filename
        if package.arch == ARCH_ALL:
            arch_args = [MODERN_ARCH_FLAG, arch]

    return BuildPlan(arch=arch, arch_args=arch_args, artifact=artifact)


def compose_build_command(
    package: Package,
    plan: BuildPlan,
    build_options: str,
    settings: Settings,
) -> list[str]:
    """Compose the build command line."""
    return [
        settings.rpmbuild_command,
        *plan.arch_args,
        "-bb",
        *shlex.split(build_options),
        spec_filename(package),
    ]


def build_package(
    package: Package,
    settings: Settings,
    build_options: str = "",
    config: BuilderConfig | None = None,
) -> str:
    """Build an RPM from a prepared working directory.

    Args:
        package: Unpacked package with its spec file written.
        settings: Application settings.
        build_options: Extra options passed verbatim to the builder.
        config: Builder configuration; queried from rpm when omitted.

    Returns:
        Path of the built package file.

    Raises:
        BuildError: If discovery fails or the build exits non-zero.
        BuildPrepError: If the package has not been unpacked.
    """
    workdir = package.require_working_dir()
    if config is None:
        config = query_builder_config(settings)

    plan = plan_build(package, config)
    cmd = compose_build_command(package, plan, build_options, settings)
    logger.info("Executing build: %s", shlex.join(cmd))
    logger.info("Working directory: %s", workdir)

    try:
        result = subprocess.run(
            cmd,
            cwd=workdir,
            timeout=settings.command_timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise BuildError(
            f"Package build timed out after {settings.command_timeout}s",
            exit_code=-1,
            code="build_timeout",
        ) from e
    except OSError as e:
        raise BuildError(
            f"Failed to execute build: {e}",
            code="execution_error",
        ) from e

    if result.returncode != 0:
        raise BuildError(
            f"Package build failed with exit code {result.returncode}",
            exit_code=result.returncode,
        )

    logger.info("Built %s", plan.artifact)
    return plan.artifact


__all__ = [
    "BuildPlan",
    "BuilderConfig",
    "LEGACY_ARCH_FLAG",
    "MODERN_ARCH_FLAG",
    "build_package",
    "compose_build_command",
    "parse_showrc",
    "plan_build",
    "query_builder_config",
]
