"""Tests for MCP server surface."""

import json
import os
from unittest.mock import patch

import pytest

from buildlaunch_mcp.launch.invoker import LAUNCH_COMMAND, LaunchInvoker
from buildlaunch_mcp.launch.state import PrelaunchProcessError
from buildlaunch_mcp.launcher import Launcher
from buildlaunch_mcp.server import STATE_RESOURCE, create_server

from conftest import RecordingHost


def payload(result):
    """Tool response as a dict, whatever shape call_tool returns."""
    if isinstance(result, tuple):
        result = result[0]
    if isinstance(result, dict):
        return result
    return json.loads(result[0].text)


async def call(mcp, name, **arguments):
    return payload(await mcp.call_tool(name, arguments))


@pytest.fixture
def launcher():
    launcher = Launcher()
    yield launcher
    launcher.close()


@pytest.fixture
def wired_launcher(calls, runner):
    launcher = Launcher(invoker=LaunchInvoker(RecordingHost(calls)), runner=runner)
    yield launcher
    launcher.close()


@pytest.fixture
def workspace(tmp_path):
    """Solution with one project; launch files are added per test."""
    (tmp_path / "App.sln").touch()
    project_dir = tmp_path / "App"
    project_dir.mkdir()
    (project_dir / "App.csproj").touch()
    return tmp_path


class TestCreateServer:
    """Tests for tool and resource registration."""

    @pytest.mark.asyncio
    async def test_registers_launch_tools(self, launcher, tmp_path):
        mcp = create_server(launcher, str(tmp_path))

        tools = {tool.name for tool in await mcp.list_tools()}

        assert {
            "start_debug_build",
            "arm_launch",
            "report_project_build_done",
            "report_build_done",
            "get_launch_status",
            "detach_build_events",
        } <= tools

    @pytest.mark.asyncio
    async def test_registers_state_resource(self, launcher):
        mcp = create_server(launcher)

        uris = {str(resource.uri) for resource in await mcp.list_resources()}

        assert STATE_RESOURCE in uris



class TestLaunchToolResponses:
    """Tests for tool responses on the success and error paths."""

    @pytest.mark.asyncio
    async def test_reported_build_launches(self, wired_launcher, workspace, calls):
        (workspace / "launch.json").write_text("{}")
        mcp = create_server(wired_launcher, str(workspace))

        armed = await call(mcp, "arm_launch", project="App")
        target = armed["data"]["targetIdentifier"]
        reported = await call(mcp, "report_project_build_done", target_identifier=target, succeeded=True)
        response = await call(mcp, "report_build_done")

        assert armed["success"] is True
        assert target == os.path.join("App", "App.csproj")
        assert reported["data"]["pendingSuccess"] is True
        assert response["success"] is True
        assert response["data"]["launched"] is True
        assert calls[-1][0] == LAUNCH_COMMAND

    @pytest.mark.asyncio
    async def test_reported_failed_build_does_not_launch(self, wired_launcher, workspace, calls):
        (workspace / "launch.json").write_text("{}")
        mcp = create_server(wired_launcher, str(workspace))

        armed = await call(mcp, "arm_launch", project="App")
        target = armed["data"]["targetIdentifier"]
        await call(mcp, "report_project_build_done", target_identifier=target, succeeded=False)
        response = await call(mcp, "report_build_done", scope="project", action="rebuild")

        assert response["success"] is True
        assert response["data"]["launched"] is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_prelaunch_failure_reported_with_details(self, wired_launcher, runner, workspace, calls):
        (workspace / "launch.json").write_text("{}")
        script = workspace / "prelaunch.bat"
        script.touch()
        runner.run.side_effect = PrelaunchProcessError("cannot start", str(script))
        mcp = create_server(wired_launcher, str(workspace))

        armed = await call(mcp, "arm_launch", project="App")
        await call(
            mcp,
            "report_project_build_done",
            target_identifier=armed["data"]["targetIdentifier"],
            succeeded=True,
        )
        response = await call(mcp, "report_build_done")

        assert response["success"] is False
        assert response["error"] == "cannot start"
        assert response["details"]["type"] == "PrelaunchProcessError"
        assert response["details"]["scriptPath"] == str(script)
        assert calls == []

    @pytest.mark.asyncio
    async def test_arm_without_launch_json_lists_searched_directories(self, wired_launcher, workspace):
        mcp = create_server(wired_launcher, str(workspace))

        response = await call(mcp, "arm_launch", project="App")

        assert response["success"] is False
        assert response["details"]["type"] == "ConfigNotFoundError"
        assert len(response["details"]["searchedDirectories"]) == 2

    @pytest.mark.asyncio
    async def test_start_debug_build_without_launch_json_builds_nothing(self, wired_launcher, workspace):
        mcp = create_server(wired_launcher, str(workspace))

        with patch("asyncio.create_subprocess_exec") as mock_exec:
            response = await call(mcp, "start_debug_build", project="App")

        mock_exec.assert_not_called()
        assert response["success"] is False
        assert response["details"]["type"] == "ConfigNotFoundError"
        assert response["details"]["searchedDirectories"]

    @pytest.mark.asyncio
    async def test_status_after_launch(self, wired_launcher, workspace):
        (workspace / "launch.json").write_text("{}")
        mcp = create_server(wired_launcher, str(workspace))
        armed = await call(mcp, "arm_launch", project="App")
        await call(
            mcp,
            "report_project_build_done",
            target_identifier=armed["data"]["targetIdentifier"],
            succeeded=True,
        )
        await call(mcp, "report_build_done")

        status = await call(mcp, "get_launch_status")

        assert status["data"]["watcher"]["state"] == "idle"
        assert status["data"]["watcher"]["lastResult"]["launched"] is True
        assert status["data"]["watcher"]["lastError"] is None
