"""Tests for the invocation lifecycle."""

import asyncio
import json
import logging

import httpx
import pytest

from tests.helpers.bench import FakeDashboard, make_clients, run, write_workload
from wb_common.build_info import BuildInfo
from wb_common.errors import ConfigurationError, RemoteRequestError, WorkloadExecutionError
from wb_controller.engine.controller import InvocationController
from wb_controller.engine.interrupts import ManualInterrupt
from wb_controller.models.outcome import RunStatus
from wb_controller.models.settings import BenchSettings


pytestmark = pytest.mark.unit_controller


class FakeExecutor:
    """Stand-in for the workload executor with scripted behaviours per workload name."""

    def __init__(self, behaviours=None) -> None:
        self.behaviours = behaviours or {}
        self.started: list[str] = []
        self.finished: list[str] = []

    async def __call__(self, context, workload) -> None:
        self.started.append(workload.name)
        behaviour = self.behaviours.get(workload.name)
        if behaviour is not None:
            await behaviour()
        self.finished.append(workload.name)


def _settings(tmp_path, files) -> BenchSettings:
    return BenchSettings(
        workload_files=files,
        report_folder=tmp_path / "reports",
        asset_folder=tmp_path / "assets",
        reason="unit test",
    )


def _workloads(tmp_path, *names):
    return [write_workload(tmp_path / f"{name}.json", name) for name in names]


def _run_controller(
    dashboard,
    tmp_path,
    files,
    environment,
    build_info,
    *,
    execute=None,
    interrupt=None,
    **handlers,
):
    async def scenario():
        clients = make_clients(dashboard, **handlers)
        kwargs = {} if execute is None else {"execute": execute}
        controller = InvocationController(
            _settings(tmp_path, files),
            clients=clients,
            interrupt=interrupt or ManualInterrupt(),
            collect_env=lambda: environment,
            collect_build=lambda: build_info,
            **kwargs,
        )
        try:
            return await controller.run()
        finally:
            await clients.aclose()

    return run(scenario())


def test_success_sends_no_status_report(fake_dashboard, tmp_path, environment, build_info) -> None:
    executor = FakeExecutor()
    files = _workloads(tmp_path, "one", "two")

    outcome = _run_controller(
        fake_dashboard, tmp_path, files, environment, build_info, execute=executor
    )

    assert outcome.status is RunStatus.SUCCESS
    assert outcome.exit_code == 0
    assert outcome.invocation_uuid == fake_dashboard.invocation_uuid
    assert executor.finished == ["one", "two"]
    assert [path for _, path, _ in fake_dashboard.calls] == ["machine", "invocation"]
    (invocation,) = fake_dashboard.bodies("invocation")
    assert invocation["max_workloads"] == 2
    assert invocation["reason"] == "unit test"
    assert invocation["commit"]["message"] == "Speed up indexing"


def test_missing_workload_file_marks_invocation_failed(
    fake_dashboard, tmp_path, environment, build_info
) -> None:
    executor = FakeExecutor()
    first, third = _workloads(tmp_path, "first", "third")
    missing = tmp_path / "second.json"

    outcome = _run_controller(
        fake_dashboard, tmp_path, [first, missing, third], environment, build_info, execute=executor
    )

    assert outcome.status is RunStatus.FAILURE
    assert outcome.exit_code == 1
    assert executor.started == ["first"]
    (report,) = fake_dashboard.failure_reports
    assert report["invocation_uuid"] == str(fake_dashboard.invocation_uuid)
    assert str(missing) in report["failure_reason"]
    assert fake_dashboard.cancel_reports == []


def test_execution_error_is_reported_with_its_message(
    fake_dashboard, tmp_path, environment, build_info
) -> None:
    async def fail() -> None:
        raise WorkloadExecutionError("command POST indexes returned status 500")

    executor = FakeExecutor({"one": fail})

    outcome = _run_controller(
        fake_dashboard,
        tmp_path,
        _workloads(tmp_path, "one", "two"),
        environment,
        build_info,
        execute=executor,
    )

    assert outcome.status is RunStatus.FAILURE
    assert isinstance(outcome.error, WorkloadExecutionError)
    assert executor.started == ["one"]
    assert fake_dashboard.failure_reports == [
        {
            "invocation_uuid": str(fake_dashboard.invocation_uuid),
            "failure_reason": "command POST indexes returned status 500",
        }
    ]


def test_fault_is_reported_as_panic_and_reraised(
    fake_dashboard, tmp_path, environment, build_info
) -> None:
    async def crash() -> None:
        raise KeyError("secret payload")

    executor = FakeExecutor({"one": crash})

    with pytest.raises(KeyError, match="secret payload"):
        _run_controller(
            fake_dashboard,
            tmp_path,
            _workloads(tmp_path, "one"),
            environment,
            build_info,
            execute=executor,
        )

    (report,) = fake_dashboard.failure_reports
    assert report["failure_reason"] == "Panicked"
    assert "secret payload" not in json.dumps(fake_dashboard.calls)


def test_interrupt_cancels_the_invocation(fake_dashboard, tmp_path, environment, build_info) -> None:
    interrupt = ManualInterrupt()

    async def block() -> None:
        interrupt.trigger()
        await asyncio.Event().wait()

    executor = FakeExecutor({"one": block})

    outcome = _run_controller(
        fake_dashboard,
        tmp_path,
        _workloads(tmp_path, "one", "two"),
        environment,
        build_info,
        execute=executor,
        interrupt=interrupt,
    )

    assert outcome.status is RunStatus.CANCELLED
    assert outcome.exit_code == 0
    assert executor.started == ["one"]
    assert executor.finished == []
    assert fake_dashboard.cancel_reports == [
        {"invocation_uuid": str(fake_dashboard.invocation_uuid)}
    ]
    assert fake_dashboard.failure_reports == []


def test_invocation_creation_failure_runs_nothing(tmp_path, environment, build_info) -> None:
    dashboard = FakeDashboard(failing={"invocation"})
    executor = FakeExecutor()

    with pytest.raises(RemoteRequestError, match="could not create new invocation"):
        _run_controller(
            dashboard,
            tmp_path,
            _workloads(tmp_path, "one"),
            environment,
            build_info,
            execute=executor,
        )
    assert executor.started == []
    assert dashboard.bodies("cancel-invocation") == []


def test_machine_info_failure_is_fatal(tmp_path, environment, build_info) -> None:
    dashboard = FakeDashboard(failing={"machine"})
    executor = FakeExecutor()

    with pytest.raises(RemoteRequestError, match="could not send machine info"):
        _run_controller(
            dashboard, tmp_path, _workloads(tmp_path, "one"), environment, build_info, execute=executor
        )
    assert dashboard.bodies("invocation") == []


def test_missing_commit_message_fails_before_any_request(
    fake_dashboard, tmp_path, environment
) -> None:
    executor = FakeExecutor()

    with pytest.raises(ConfigurationError, match="missing commit message"):
        _run_controller(
            fake_dashboard,
            tmp_path,
            _workloads(tmp_path, "one"),
            environment,
            BuildInfo(commit_sha1="abc123"),
            execute=executor,
        )
    assert fake_dashboard.calls == []
    assert executor.started == []


def test_failure_report_error_keeps_the_original_failure(
    tmp_path, environment, build_info
) -> None:
    dashboard = FakeDashboard(failing={"cancel-invocation"})

    async def fail() -> None:
        raise WorkloadExecutionError("index creation failed")

    outcome = _run_controller(
        dashboard,
        tmp_path,
        _workloads(tmp_path, "one"),
        environment,
        build_info,
        execute=FakeExecutor({"one": fail}),
    )

    assert outcome.status is RunStatus.FAILURE
    assert str(outcome.error) == "index creation failed"
    assert len(dashboard.failure_reports) == 1


def test_end_to_end_with_real_executor(fake_dashboard, tmp_path, environment, build_info) -> None:
    target_calls = []

    def target(request: httpx.Request) -> httpx.Response:
        target_calls.append((request.method, request.url.path))
        return httpx.Response(202, json={"taskUid": 1})

    files = [
        write_workload(
            tmp_path / "index.json",
            "index",
            commands=[{"route": "indexes", "body": {"inline": {"uid": "movies"}}}],
        ),
        write_workload(
            tmp_path / "search.json",
            "search",
            run_count=2,
            commands=[{"route": "indexes/movies/search", "body": {"inline": {"q": "x"}}}],
        ),
    ]

    outcome = _run_controller(
        fake_dashboard, tmp_path, files, environment, build_info, target=target
    )

    assert outcome.status is RunStatus.SUCCESS
    assert target_calls == [
        ("POST", "/indexes"),
        ("POST", "/indexes/movies/search"),
        ("POST", "/indexes/movies/search"),
    ]
    assert [body["name"] for body in fake_dashboard.bodies("workload")] == ["index", "search"]
    assert len(fake_dashboard.bodies("run")) == 3
    assert fake_dashboard.bodies("cancel-invocation") == []
    report_folder = tmp_path / "reports" / str(fake_dashboard.invocation_uuid)
    assert sorted(path.name for path in report_folder.glob("*.json")) == [
        "index-run1.json",
        "search-run1.json",
        "search-run2.json",
    ]


def test_unwritable_report_folder_is_a_reported_failure(
    fake_dashboard, tmp_path, environment, build_info, caplog
) -> None:
    (tmp_path / "reports").write_text("not a folder", encoding="utf-8")
    files = [
        write_workload(tmp_path / "index.json", "index", commands=[{"route": "indexes"}]),
    ]

    with caplog.at_level(logging.ERROR):
        outcome = _run_controller(fake_dashboard, tmp_path, files, environment, build_info)

    assert outcome.status is RunStatus.FAILURE
    assert outcome.exit_code == 1
    (report,) = fake_dashboard.failure_reports
    assert report["failure_reason"].startswith("could not write report")
    assert str(tmp_path / "reports") in report["failure_reason"]
    (record,) = [r for r in caplog.records if hasattr(r, "error")]
    assert record.error["type"] == "WorkloadExecutionError"
    assert record.error["context"]["path"].endswith("index-run1.json")


def test_failure_racing_an_interrupt_reports_both(
    fake_dashboard, tmp_path, environment, build_info
) -> None:
    interrupt = ManualInterrupt()

    async def trigger_then_fail() -> None:
        interrupt.trigger()
        raise WorkloadExecutionError("bulk load rejected")

    outcome = _run_controller(
        fake_dashboard,
        tmp_path,
        _workloads(tmp_path, "one", "two"),
        environment,
        build_info,
        execute=FakeExecutor({"one": trigger_then_fail}),
        interrupt=interrupt,
    )

    assert outcome.status is RunStatus.FAILURE
    assert fake_dashboard.cancel_reports == [
        {"invocation_uuid": str(fake_dashboard.invocation_uuid)}
    ]
    assert fake_dashboard.failure_reports == [
        {
            "invocation_uuid": str(fake_dashboard.invocation_uuid),
            "failure_reason": "bulk load rejected",
        }
    ]


def test_interrupt_during_a_target_request_cancels_the_invocation(
    fake_dashboard, tmp_path, environment, build_info
) -> None:
    interrupt = ManualInterrupt()
    target_calls = []

    async def target(request: httpx.Request) -> httpx.Response:
        target_calls.append(request.url.path)
        interrupt.trigger()
        await asyncio.Event().wait()
        return httpx.Response(200)

    files = [
        write_workload(tmp_path / "first.json", "first", commands=[{"route": "indexes"}]),
        write_workload(tmp_path / "second.json", "second", commands=[{"route": "search"}]),
    ]

    outcome = _run_controller(
        fake_dashboard,
        tmp_path,
        files,
        environment,
        build_info,
        interrupt=interrupt,
        target=target,
    )

    assert outcome.status is RunStatus.CANCELLED
    assert outcome.exit_code == 0
    assert target_calls == ["/indexes"]
    assert [body["name"] for body in fake_dashboard.bodies("workload")] == ["first"]
    assert fake_dashboard.bodies("run") == []
    assert fake_dashboard.cancel_reports == [
        {"invocation_uuid": str(fake_dashboard.invocation_uuid)}
    ]
    assert fake_dashboard.failure_reports == []
