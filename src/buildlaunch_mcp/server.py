"""MCP Server for build-triggered debug launches."""

from __future__ import annotations

import json
import logging
import os

from mcp.server.fastmcp import Context, FastMCP
from pydantic import AnyUrl

from .build import BuildAction, BuildOutcome, BuildScope
from .launch import LaunchError
from .launcher import Launcher

logger = logging.getLogger(__name__)

STATE_RESOURCE = "launch://state"


def create_server(launcher: Launcher, project_path: str | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        launcher: Launcher owning the build session and watcher
        project_path: Root for relative project and solution paths
    """
    root = os.path.abspath(project_path) if project_path else os.getcwd()
    mcp = FastMCP("buildlaunch-mcp")

    async def notify_state_changed(ctx: Context) -> None:
        """Notify client that launch://state resource has changed."""
        try:
            if ctx.session:
                await ctx.session.send_resource_updated(AnyUrl(STATE_RESOURCE))
        except Exception:
            pass  # Notification failure shouldn't break the tool

    # ============== Launch Tools ==============

    @mcp.tool()
    async def start_debug_build(
        ctx: Context,
        project: str,
        solution: str | None = None,
        configuration: str = "Debug",
        platform: str | None = None,
    ) -> dict:
        """
        Build a project and start debugging it when the build succeeds.

        Looks for launch.json next to the solution first, then next to the
        project. If prelaunch.bat sits beside the chosen launch.json it runs
        to completion before the debugger is launched. Nothing is built when
        no launch.json is found.

        Args:
            project: Project file (.csproj/.vbproj/.fsproj) or its directory
            solution: Owning .sln (searched upward from the project if omitted)
            configuration: Build configuration (Debug/Release)
            platform: Build platform (solution default if omitted)
        """
        try:
            result = await launcher.start_debug_build(
                project,
                solution=solution,
                configuration=configuration,
                platform=platform,
                root=root,
            )
            await notify_state_changed(ctx)
            return {"success": True, "data": result}
        except LaunchError as e:
            return {"success": False, "error": str(e), "details": e.to_dict()}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def arm_launch(ctx: Context, project: str, solution: str | None = None) -> dict:
        """
        Arm the launcher for a project without building it.

        Use when the build is started elsewhere and its events are reported
        with report_project_build_done and report_build_done. Arming again
        replaces the previous target; only do it between builds.

        Args:
            project: Project file or its directory
            solution: Owning .sln (searched upward from the project if omitted)
        """
        try:
            target, project_file, config = await launcher.arm(project, solution, root)
            await notify_state_changed(ctx)
            return {
                "success": True,
                "data": {
                    "targetIdentifier": target,
                    "projectFile": str(project_file),
                    "launchConfig": config.to_dict(),
                },
            }
        except LaunchError as e:
            return {"success": False, "error": str(e), "details": e.to_dict()}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def report_project_build_done(
        target_identifier: str,
        succeeded: bool,
        configuration_name: str = "Debug",
        platform: str = "Any CPU",
        solution_configuration: str | None = None,
    ) -> dict:
        """
        Report that one project of an external build finished.

        Args:
            target_identifier: Project unique name (as returned by arm_launch)
            succeeded: Whether the project built successfully
            configuration_name: Project configuration
            platform: Project platform
            solution_configuration: Solution configuration (defaults to configuration|platform)
        """
        try:
            outcome = BuildOutcome(
                target_identifier=target_identifier,
                configuration_name=configuration_name,
                platform=platform,
                solution_configuration=solution_configuration
                or f"{configuration_name}|{platform}",
                succeeded=succeeded,
            )
            await launcher.events.publish_project_done(outcome)
            return {"success": True, "data": {"pendingSuccess": launcher.watcher.pending_success}}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def report_build_done(
        ctx: Context,
        scope: str = BuildScope.SOLUTION.value,
        action: str = BuildAction.BUILD.value,
    ) -> dict:
        """
        Report that an external build request finished.

        Launches the debugger if the armed project was last reported as
        built successfully. The launcher is disarmed afterwards either way.

        Args:
            scope: solution, batch or project
            action: build, rebuild, clean or deploy
        """
        try:
            launcher.take_cycle_outcome()
            await launcher.events.publish_build_done(BuildScope(scope), BuildAction(action))
            await notify_state_changed(ctx)

            outcome = launcher.take_cycle_outcome()
            if isinstance(outcome, LaunchError):
                return {"success": False, "error": str(outcome), "details": outcome.to_dict()}
            return {"success": True, "data": outcome.to_dict() if outcome else None}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @mcp.tool()
    async def get_launch_status() -> dict:
        """Get watcher state, armed target and the last launch and build results."""
        return {"success": True, "data": launcher.to_dict()}

    @mcp.tool()
    async def detach_build_events(ctx: Context) -> dict:
        """
        Stop listening to build events.

        The next arming subscribes again.
        """
        detached = launcher.watcher.detach()
        await notify_state_changed(ctx)
        return {"success": True, "data": {"detached": detached}}

    # ============== Resources ==============

    @mcp.resource(STATE_RESOURCE)
    async def get_launch_state() -> str:
        """
        Current launcher state.
        Includes: watcher state, armed target, launch config, last results
        """
        return json.dumps(launcher.to_dict(), indent=2)

    return mcp
