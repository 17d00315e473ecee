"""Tests for the MCP (Model Context Protocol) server."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from conftest import commit_all, git
from pr_impact.mcp.server import MCPServer
from pr_impact.repo.git import GitRepository


@pytest.fixture
def mcp_server(git_repo: Path) -> MCPServer:
    """Server rooted at git_repo, with a `feature` branch that deletes src/config.ts."""
    git(git_repo, "checkout", "-q", "-b", "feature")
    (git_repo / "src" / "config.ts").unlink()
    commit_all(git_repo, "remove config")
    git(git_repo, "checkout", "-q", "main")
    return MCPServer(root=git_repo)


async def _call(server: MCPServer, name: str, **arguments) -> dict:
    return await server._dispatch("tools/call", {"name": name, "arguments": arguments})


class TestMCPProtocol:
    @pytest.mark.asyncio
    async def test_initialize(self, tmp_path: Path):
        server = MCPServer(root=tmp_path)
        result = await server._dispatch("initialize", {
            "protocolVersion": "2024-11-05",
            "capabilities": {},
            "clientInfo": {"name": "test", "version": "1.0"},
        })
        assert result["protocolVersion"] == "2024-11-05"
        assert result["capabilities"]["tools"] == {"listChanged": False}
        assert result["serverInfo"]["name"] == "pr-impact"

    @pytest.mark.asyncio
    async def test_tools_list(self, tmp_path: Path):
        result = await MCPServer(root=tmp_path)._dispatch("tools/list", {})
        names = [t["name"] for t in result["tools"]]
        assert names == [
            "analyze_diff", "get_breaking_changes", "get_impact_graph", "get_risk_score",
        ]
        for tool in result["tools"]:
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"

    @pytest.mark.asyncio
    async def test_ping(self, tmp_path: Path):
        assert await MCPServer(root=tmp_path)._dispatch("ping", {}) == {}

    @pytest.mark.asyncio
    async def test_unknown_method(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unknown method"):
            await MCPServer(root=tmp_path)._dispatch("nonexistent/method", {})

    @pytest.mark.asyncio
    async def test_handle_message_error_response(self, tmp_path: Path):
        response = await MCPServer(root=tmp_path)._handle_message(
            {"jsonrpc": "2.0", "id": 7, "method": "bogus"}
        )
        assert response["id"] == 7
        assert response["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_handle_message_internal_error(self, tmp_path: Path, monkeypatch):
        server = MCPServer(root=tmp_path)

        async def crash(method: str, params: dict):
            raise RuntimeError("boom")

        monkeypatch.setattr(server, "_dispatch", crash)
        response = await server._handle_message({"jsonrpc": "2.0", "id": 3, "method": "ping"})
        assert response["id"] == 3
        assert response["error"] == {"code": -32603, "message": "boom"}

    @pytest.mark.asyncio
    async def test_notification_has_no_response(self, tmp_path: Path):
        response = await MCPServer(root=tmp_path)._handle_message(
            {"jsonrpc": "2.0", "method": "notifications/initialized"}
        )
        assert response is None


class TestMCPTools:
    @pytest.mark.asyncio
    async def test_analyze_diff_markdown(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "analyze_diff", base="main", head="feature")
        assert result["isError"] is False
        text = result["content"][0]["text"]
        assert text.startswith("# PR Impact Analysis")
        assert "parseConfig" in text

    @pytest.mark.asyncio
    async def test_analyze_diff_json(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "analyze_diff", base="main", head="feature", format="json")
        data = json.loads(result["content"][0]["text"])
        assert data["headBranch"] == "feature"
        assert [f["path"] for f in data["changedFiles"]] == ["src/config.ts"]

    @pytest.mark.asyncio
    async def test_breaking_changes(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "get_breaking_changes", base="main", head="feature")
        text = result["content"][0]["text"]
        assert "[HIGH] parseConfig in src/config.ts: removed export" in text
        assert "consumers: src/app.ts" in text

    @pytest.mark.asyncio
    async def test_no_breaking_changes(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "get_breaking_changes", base="main", head="main")
        assert result["content"][0]["text"] == "No breaking changes detected."

    @pytest.mark.asyncio
    async def test_impact_graph_for_file(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "get_impact_graph", file="src/config.ts", max_depth=1)
        data = json.loads(result["content"][0]["text"])
        assert data["directlyChanged"] == ["src/config.ts"]
        assert data["indirectlyAffected"] == ["src/app.ts"]
        assert data["edges"] == [{"from": "src/app.ts", "to": "src/config.ts", "type": "imports"}]

    @pytest.mark.asyncio
    async def test_impact_graph_skips_unreadable_file(self, mcp_server: MCPServer):
        os.symlink("loop.ts", mcp_server.root / "src" / "loop.ts")
        result = await _call(mcp_server, "get_impact_graph", file="src/config.ts")
        assert result["isError"] is False
        data = json.loads(result["content"][0]["text"])
        assert data["indirectlyAffected"] == ["src/app.ts", "src/cli.ts"]

    @pytest.mark.asyncio
    async def test_impact_graph_for_diff_reuses_cache(self, mcp_server: MCPServer):
        await _call(mcp_server, "get_impact_graph", base="main", head="feature")
        reverse_map = await mcp_server.cache.get(GitRepository(mcp_server.root))
        result = await _call(mcp_server, "get_impact_graph", base="main", head="feature")
        data = json.loads(result["content"][0]["text"])
        assert data["indirectlyAffected"] == ["src/app.ts", "src/cli.ts"]
        assert mcp_server.cache.repo_path == mcp_server.root.resolve()
        assert await mcp_server.cache.get(GitRepository(mcp_server.root)) is reverse_map

    @pytest.mark.asyncio
    async def test_risk_score(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "get_risk_score", base="main", head="feature")
        text = result["content"][0]["text"]
        assert text.startswith("Risk score: ")
        assert "Breaking changes: 100/100 (weight 0.3)" in text

    @pytest.mark.asyncio
    async def test_unknown_ref_is_tool_error(self, mcp_server: MCPServer):
        result = await _call(mcp_server, "get_risk_score", base="nope")
        assert result["isError"] is True
        assert "Unknown revision" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_not_a_repository(self, tmp_path: Path):
        result = await _call(MCPServer(root=tmp_path), "analyze_diff")
        assert result["isError"] is True
        assert "Not a git repository" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_unexpected_tool_failure_is_tool_error(self, tmp_path: Path, monkeypatch):
        server = MCPServer(root=tmp_path)

        async def broken(args: dict) -> str:
            raise OSError(40, "Too many levels of symbolic links")

        monkeypatch.setattr(server, "_tool_get_impact_graph", broken)
        response = await server._handle_message({
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": "get_impact_graph", "arguments": {"file": "src/config.ts"}},
        })
        result = response["result"]
        assert result["isError"] is True
        assert "Too many levels of symbolic links" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tmp_path: Path):
        result = await _call(MCPServer(root=tmp_path), "nonexistent")
        assert result["isError"] is True
        assert "Unknown tool" in result["content"][0]["text"]


class TestMCPConfig:
    def test_generate_claude_config(self):
        config = MCPServer.generate_claude_config("/path/to/project")
        assert config["pr-impact"]["command"] == "pr-impact"
        assert config["pr-impact"]["args"] == ["serve"]
        assert config["pr-impact"]["cwd"] == "/path/to/project"

    def test_generate_cursor_config(self):
        config = MCPServer.generate_cursor_config()
        assert config["mcpServers"]["pr-impact"]["cwd"] == "."
