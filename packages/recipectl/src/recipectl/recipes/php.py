"""PHP project recipe: composer, phpunit/peridot, coverage and lint."""

from __future__ import annotations

import hashlib

from ..graph.model import BuildGraph, Call, Command, StepContext, Target, cmd
from .base import MKDIR, Recipe, phony

INSTALLER_URL = "https://getcomposer.org/installer"
INSTALLER_SIG_URL = "https://composer.github.io/installer.sig"
PHP_INI = "test/etc/php.ini"


def _verify_installer(step: StepContext) -> None:
    workdir = step.output.parent
    expected = (workdir / "expected.sig").read_text(encoding="utf-8").strip()
    actual = hashlib.sha384((workdir / "installer").read_bytes()).hexdigest()
    (workdir / "actual.sig").write_text(actual + "\n", encoding="utf-8")
    if actual != expected:
        raise ValueError(f"composer installer signature mismatch: expected {expected}, got {actual}")


class PhpRecipe(Recipe):
    name = "php"

    @property
    def sources(self) -> list[str]:
        return self.find("src", ".php")

    @property
    def test_sources(self) -> list[str]:
        return self.find("test")

    @property
    def uses_peridot(self) -> bool:
        return (self.project_root / "peridot.php").exists()

    @property
    def test_runner(self) -> str:
        return "peridot" if self.uses_peridot else "phpunit"

    @property
    def composer(self) -> str:
        """`composer` from PATH, or a locally installed phar."""
        found = self.which("composer", path=self.environ.get("PATH"))
        return found or f"{self.artifacts}/composer/composer.phar"

    @property
    def composer_installed(self) -> bool:
        return not self.composer.startswith(f"{self.artifacts}/")

    @property
    def composer_order_only(self) -> list[str]:
        return [] if self.composer_installed else [self.composer]

    def _composer(self, *args: str, **options: object) -> Command:
        return cmd(self.composer, *args, **options)

    def declare_composer(self, graph: BuildGraph) -> None:
        if not self.composer_installed:
            graph.add(
                Target(
                    name=self.composer,
                    action=(
                        MKDIR,
                        cmd("curl", "--create-dirs", "-#Lo", "{target_dir}/expected.sig", INSTALLER_SIG_URL),
                        cmd("curl", "--create-dirs", "-#Lo", "{target_dir}/installer", INSTALLER_URL),
                        Call(_verify_installer, "verify sha384 of {target_dir}/installer"),
                        cmd("php", "{target_dir}/installer", "--force", "--install-dir", "{target_dir}"),
                    ),
                    doc="install composer from source when it is not on PATH",
                )
            )
        order_only = self.composer_order_only
        graph.add(Target(name="vendor", prereqs=["composer.lock"], order_only=order_only, action=(self._composer("install"),)))
        graph.add(Target(name="composer.lock", prereqs=["composer.json"], order_only=order_only, action=(self._composer("update"),)))
        graph.add(Target(name="composer.json", order_only=order_only, action=(self._composer("init", "--no-interaction"),)))

    def _coverage_target(self, name: str, report_args: tuple[str, ...]) -> Target:
        runner_config = "peridot.php" if self.uses_peridot else "phpunit.coverage.xml"
        runner_args = () if self.uses_peridot else ("-c", "phpunit.coverage.xml")
        return Target(
            name=name,
            prereqs=[*self.sources, *self.test_sources, *self.req, runner_config],
            order_only=["vendor", *self.use],
            action=(
                MKDIR,
                cmd(
                    "phpdbg",
                    "-c",
                    PHP_INI,
                    "-qrr",
                    f"vendor/bin/{self.test_runner}",
                    *runner_args,
                    *self.config.test_args,
                    *report_args,
                ),
            ),
        )

    def declare_coverage(self, graph: BuildGraph) -> str:
        clover = f"{self.coverage_dir}/clover.xml"
        if self.uses_peridot:
            html_args = ("--reporter", "html-code-coverage", "--code-coverage-path={target_dir}")
            clover_args = ("--reporter", "clover-code-coverage", "--code-coverage-path={target}")
        else:
            html_args = ("--coverage-html={target_dir}",)
            clover_args = ("--coverage-clover={target}",)
        graph.add(self._coverage_target(self.coverage_report, html_args))
        graph.add(self._coverage_target(clover, clover_args))
        return clover

    def declare_lint(self, graph: BuildGraph) -> None:
        lint_log = f"{self.artifacts}/logs/lint"
        validate_log = f"{self.artifacts}/logs/composer-validate"
        graph.add(
            Target(
                name=lint_log,
                prereqs=["vendor", *self.sources],
                action=(MKDIR, cmd("vendor/bin/php-cs-fixer", "fix", tee="{target}")),
            )
        )
        graph.add(
            Target(
                name=validate_log,
                prereqs=["composer.json"],
                order_only=self.composer_order_only,
                action=(MKDIR, self._composer("validate", "--no-check-publish", tee="{target}")),
            )
        )
        graph.add(phony("lint", prereqs=[lint_log, validate_log], doc="php-cs-fixer and composer validation"))

    def declare(self, graph: BuildGraph) -> None:
        self.declare_composer(graph)
        graph.add(
            phony(
                "test",
                prereqs=["vendor", *self.req],
                order_only=self.use,
                action=(cmd("php", "-c", PHP_INI, f"vendor/bin/{self.test_runner}", *self.config.test_args),),
                doc=f"run all tests with {self.test_runner}",
            )
        )
        clover = self.declare_coverage(graph)
        self.declare_lint(graph)
        graph.add(phony("prepare", prereqs=["lint", "test"], doc="pre-commit checks"))
        graph.add(phony("ci", prereqs=["lint", clover], doc="lint and clover coverage"))


__all__ = ["PhpRecipe"]
