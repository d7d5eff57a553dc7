"""Tests for the deployment engine."""

import pytest

from msideploy.config import PrereqAccessPolicy
from msideploy.errors import NotFoundError, UnsupportedPackageTypeError
from msideploy.execution import ExitStatus
from msideploy.installer import (
    STATUS_DRY_RUN,
    STATUS_SKIPPED,
    Action,
    Plan,
    PlanStep,
    StepResult,
    apply_plan,
    has_failures,
    install_package,
    install_prereqs,
    install_with_prereqs,
    plan_package,
    plan_preambles,
    plan_prereqs,
    render_plan,
    repair_package,
    results_to_dicts,
    summarize_results,
    uninstall_package,
    uninstall_preambles,
)
from msideploy.manifest import load_manifest

from .conftest import NETFX_KEY, PREAMBLE_CODE, FakeRegistry, RecordingRunner

NETFX_PATH = rf"HKLM\{NETFX_KEY}"


def _msi_argv(settings, root, flag, verb):
    return [
        "msiexec.exe",
        flag,
        str(root / "product.msi"),
        "/qn",
        "/norestart",
        "/l*v",
        str(settings.log_dir / f"product-1.2.3-{verb}.log"),
    ]


class TestPlanPackage:
    @pytest.mark.parametrize(
        "action,flag,verb",
        [
            (Action.INSTALL_PACKAGE, "/i", "install"),
            (Action.UNINSTALL_PACKAGE, "/x", "uninstall"),
            (Action.REPAIR_PACKAGE, "/fa", "repair"),
        ],
    )
    def test_msi_commands(self, make_package, settings, action, flag, verb):
        root = make_package()
        plan = plan_package(load_manifest(root), root, settings, action)

        assert len(plan.steps) == 1
        step = plan.steps[0]
        assert step.action == action
        assert step.argv == _msi_argv(settings, root, flag, verb)
        assert step.cwd == root

    def test_legacy_setup_install(self, make_package, manifest_data, settings):
        manifest_data["PackageType"] = "LegacySetupPackage"
        manifest_data["InstallerFile"] = "setup.exe"
        root = make_package(manifest_data)

        plan = plan_package(load_manifest(root), root, settings, Action.INSTALL_PACKAGE)

        assert plan.steps[0].argv == [
            str(root / "setup.exe"),
            "/quiet",
            "/norestart",
            "/AcceptEULA",
            "/log",
            str(settings.log_dir / "product-1.2.3.log"),
        ]

    @pytest.mark.parametrize("action", [Action.UNINSTALL_PACKAGE, Action.REPAIR_PACKAGE])
    def test_legacy_setup_unsupported(self, make_package, manifest_data, settings, action):
        manifest_data["PackageType"] = "LegacySetupPackage"
        root = make_package(manifest_data)

        with pytest.raises(UnsupportedPackageTypeError) as exc_info:
            plan_package(load_manifest(root), root, settings, action)
        assert exc_info.value.package_type == "LegacySetupPackage"
        assert exc_info.value.operation == action.value

    def test_unknown_type_unsupported(self, make_package, manifest_data, settings):
        manifest_data["PackageType"] = "AppxPackage"
        root = make_package(manifest_data)

        with pytest.raises(UnsupportedPackageTypeError, match="AppxPackage"):
            plan_package(load_manifest(root), root, settings, Action.INSTALL_PACKAGE)


class TestPlanPreambles:
    def test_found_preamble_is_uninstalled(self, make_package, settings, installed_registry):
        manifest = load_manifest(make_package())
        plan = plan_preambles(manifest, installed_registry, settings)

        assert plan.steps[0].argv == ["msiexec.exe", "/x", PREAMBLE_CODE, "/qn", "/norestart"]
        assert "Old Product" in plan.steps[0].description

    def test_missing_preamble_is_noop(self, make_package, settings):
        manifest = load_manifest(make_package())
        plan = plan_preambles(manifest, FakeRegistry(), settings)

        assert len(plan.steps) == 1
        assert plan.steps[0].is_noop
        assert plan.actionable_steps == []

    def test_other_kinds_are_ignored(self, make_package, manifest_data, settings, installed_registry):
        manifest_data["Preambles"].insert(0, {"PreambleType": "StopService", "Data": "svc"})
        manifest = load_manifest(make_package(manifest_data))
        plan = plan_preambles(manifest, installed_registry, settings)

        assert [s.target for s in plan.steps] == [PREAMBLE_CODE]


class TestPlanPrereqs:
    def test_outdated_prereq_is_installed(self, make_package, settings, installed_registry):
        root = make_package()
        plan = plan_prereqs(load_manifest(root), root, installed_registry, settings)

        step = plan.steps[0]
        assert step.argv == [str(root / "prereqs\\ndp48.exe"), "/q", "/norestart"]
        assert step.target == NETFX_PATH + "\\Release"

    def test_absolute_installer_path_is_kept(self, make_package, manifest_data, settings):
        manifest_data["Prereqs"][0]["Path"] = r"C:\media\ndp48.exe"
        root = make_package(manifest_data)
        plan = plan_prereqs(load_manifest(root), root, FakeRegistry(), settings)

        assert plan.steps[0].argv[0] == r"C:\media\ndp48.exe"

    def test_satisfied_prereq_is_noop(self, make_package, settings):
        root = make_package()
        registry = FakeRegistry({NETFX_PATH: {"Release": 528040}})
        plan = plan_prereqs(load_manifest(root), root, registry, settings)

        assert plan.steps[0].is_noop

    def test_bad_command_line_is_noop(self, make_package, manifest_data, settings):
        manifest_data["Prereqs"][0]["CommandLine"] = '/log "unterminated'
        root = make_package(manifest_data)
        plan = plan_prereqs(load_manifest(root), root, FakeRegistry(), settings)

        assert plan.steps[0].is_noop
        assert "invalid command line" in plan.steps[0].description

    def test_escaped_quotes_in_command_line(self, make_package, manifest_data, settings):
        manifest_data["Prereqs"][0]["CommandLine"] = r'/v"INSTALLDIR=\"C:\Program Files\App\"" /qn'
        root = make_package(manifest_data)
        plan = plan_prereqs(load_manifest(root), root, FakeRegistry(), settings)

        assert plan.steps[0].argv[1:] == [r'/vINSTALLDIR="C:\Program Files\App"', "/qn"]


class TestApplyPlan:
    def _plan(self):
        return Plan(
            name="test",
            steps=[
                PlanStep(Action.UNINSTALL_PREAMBLE, "a", "uninstall a", argv=["msiexec.exe", "/x", "a"]),
                PlanStep(Action.INSTALL_PREREQ, "b", "satisfied"),
                PlanStep(Action.INSTALL_PACKAGE, "c", "install c", argv=["msiexec.exe", "/i", "c.msi"]),
            ],
        )

    def test_runs_steps_in_order_past_failures(self):
        runner = RecordingRunner(ExitStatus.NOT_LAUNCHED, ExitStatus.SUCCESS)
        results = apply_plan(self._plan(), runner)

        assert runner.calls == [["msiexec.exe", "/x", "a"], ["msiexec.exe", "/i", "c.msi"]]
        assert [r.status for r in results] == ["not-launched", STATUS_SKIPPED, "success"]
        assert results[0].message == "launch failed"
        assert has_failures(results)

    def test_dry_run_launches_nothing(self, runner):
        results = apply_plan(self._plan(), runner, dry_run=True)

        assert runner.calls == []
        assert [r.status for r in results] == [STATUS_DRY_RUN, STATUS_SKIPPED, STATUS_DRY_RUN]
        assert results[2].argv == ["msiexec.exe", "/i", "c.msi"]
        assert not has_failures(results)

    def test_reboot_required_is_not_a_failure(self):
        runner = RecordingRunner(ExitStatus.REBOOT_REQUIRED, ExitStatus.SUCCESS)
        results = apply_plan(self._plan(), runner)

        assert results[0].returncode == 3010
        assert not has_failures(results)

    def test_summaries(self):
        runner = RecordingRunner(ExitStatus.FAILED, ExitStatus.SUCCESS)
        results = apply_plan(self._plan(), runner)

        assert summarize_results(results) == {"failed": 1, "skipped": 1, "success": 1}
        dicts = results_to_dicts(results)
        assert dicts[0] == {
            "action": "uninstall-preamble",
            "target": "a",
            "status": "failed",
            "returncode": 1603,
            "argv": ["msiexec.exe", "/x", "a"],
            "message": "uninstall a",
        }
        assert dicts[1]["argv"] is None

    def test_render_plan(self):
        text = render_plan(self._plan())

        assert text.startswith("Plan: test")
        assert "1. * uninstall-preamble: a" in text
        assert "2. - install-prereq: b" in text
        assert "$ msiexec.exe /i c.msi" in text

    def test_render_empty_plan(self):
        assert "(nothing to do)" in render_plan(Plan(name="empty"))


class TestOperations:
    def test_uninstall_preambles(self, make_package, settings, installed_registry, runner):
        results = uninstall_preambles(
            make_package(), settings=settings, registry=installed_registry, runner=runner
        )

        assert runner.calls == [["msiexec.exe", "/x", PREAMBLE_CODE, "/qn", "/norestart"]]
        assert results[0].status == "success"

    def test_uninstall_preambles_not_installed(self, make_package, settings, runner):
        results = uninstall_preambles(
            make_package(), settings=settings, registry=FakeRegistry(), runner=runner
        )

        assert runner.calls == []
        assert [r.status for r in results] == [STATUS_SKIPPED]

    def test_preambles_without_entries_need_no_registry(self, make_package, manifest_data, settings, runner):
        manifest_data["Preambles"] = []
        assert uninstall_preambles(make_package(manifest_data), settings=settings, runner=runner) == []

    @pytest.mark.parametrize(
        "values,expect_install",
        [
            ({}, True),
            ({"Release": 461808}, True),
            ({"Release": 528040}, False),
            ({"Release": 533325}, False),
        ],
    )
    def test_install_prereqs(self, make_package, settings, runner, values, expect_install):
        registry = FakeRegistry({NETFX_PATH: values} if values else {})
        install_prereqs(make_package(), settings=settings, registry=registry, runner=runner)

        assert bool(runner.calls) == expect_install

    def test_install_prereqs_inaccessible_key(self, make_package, settings, runner):
        registry = FakeRegistry({NETFX_PATH: {"Release": 1}}, denied=[NETFX_PATH])

        results = install_prereqs(make_package(), settings=settings, registry=registry, runner=runner)
        assert runner.calls == []
        assert results[0].status == STATUS_SKIPPED

        settings.prereq_access_policy = PrereqAccessPolicy.INSTALL
        install_prereqs(make_package(), settings=settings, registry=registry, runner=runner)
        assert len(runner.calls) == 1

    def test_install_package_msi(self, make_package, settings, runner):
        root = make_package()
        results = install_package(root, settings=settings, runner=runner)

        assert runner.calls == [_msi_argv(settings, root, "/i", "install")]
        assert runner.cwds == [root]
        assert results[0].action == Action.INSTALL_PACKAGE

    def test_install_package_unknown_type_launches_nothing(self, make_package, manifest_data, settings, runner):
        manifest_data["PackageType"] = "Unknown"
        with pytest.raises(UnsupportedPackageTypeError):
            install_package(make_package(manifest_data), settings=settings, runner=runner)
        assert runner.calls == []

    def test_uninstall_and_repair(self, make_package, settings, runner):
        root = make_package()
        uninstall_package(root, settings=settings, runner=runner)
        repair_package(root, settings=settings, runner=runner)

        assert runner.calls == [
            _msi_argv(settings, root, "/x", "uninstall"),
            _msi_argv(settings, root, "/fa", "repair"),
        ]

    def test_root_defaults_to_settings(self, make_package, settings, runner):
        root = make_package()
        settings.root = root
        install_package(settings=settings, runner=runner)
        assert runner.calls[0][2] == str(root / "product.msi")

    def test_missing_manifest(self, temp_dir, settings, runner):
        with pytest.raises(NotFoundError):
            install_with_prereqs(temp_dir / "empty", settings=settings, runner=runner)


class TestInstallWithPrereqs:
    def test_three_invocations_in_order(self, make_package, settings, installed_registry):
        root = make_package()
        runner = RecordingRunner(ExitStatus.NOT_LAUNCHED)

        results = install_with_prereqs(
            root, settings=settings, registry=installed_registry, runner=runner
        )

        assert runner.calls == [
            ["msiexec.exe", "/x", PREAMBLE_CODE, "/qn", "/norestart"],
            [str(root / "prereqs\\ndp48.exe"), "/q", "/norestart"],
            _msi_argv(settings, root, "/i", "install"),
        ]
        assert [r.action for r in results] == [
            Action.UNINSTALL_PREAMBLE,
            Action.INSTALL_PREREQ,
            Action.INSTALL_PACKAGE,
        ]
        assert [r.status for r in results] == ["not-launched", "success", "success"]

    def test_unsupported_type_launches_nothing(self, make_package, manifest_data, settings, installed_registry, runner):
        manifest_data["PackageType"] = "Bogus"
        with pytest.raises(UnsupportedPackageTypeError):
            install_with_prereqs(
                make_package(manifest_data),
                settings=settings,
                registry=installed_registry,
                runner=runner,
            )
        assert runner.calls == []
        assert installed_registry.reads == []

    def test_nothing_to_do_but_package(self, make_package, settings, runner):
        registry = FakeRegistry({NETFX_PATH: {"Release": 533325}})
        results = install_with_prereqs(make_package(), settings=settings, registry=registry, runner=runner)

        assert len(runner.calls) == 1
        assert [r.status for r in results] == [STATUS_SKIPPED, STATUS_SKIPPED, "success"]

    def test_dry_run(self, make_package, settings, installed_registry, runner):
        results = install_with_prereqs(
            make_package(), settings=settings, registry=installed_registry, runner=runner, dry_run=True
        )

        assert runner.calls == []
        assert [r.status for r in results] == [STATUS_DRY_RUN] * 3


def test_step_result_failed():
    assert StepResult(Action.INSTALL_PACKAGE, "x", "busy").failed
    assert StepResult(Action.INSTALL_PACKAGE, "x", "timeout").failed
    assert not StepResult(Action.INSTALL_PACKAGE, "x", "reboot-required").failed
