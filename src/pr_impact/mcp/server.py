"""MCP Server: expose pr-impact analyses via the Model Context Protocol.

Implements the MCP protocol (JSON-RPC 2.0 over stdio with Content-Length
framing) directly, without an SDK. AI coding tools can call the analyses as
tools while reviewing a change.

Protocol reference: https://modelcontextprotocol.io/specification
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pr_impact import __version__
from pr_impact.analyzer import analyze_pr
from pr_impact.config import find_project_root, load_config
from pr_impact.diff.changes import collect_changed_files
from pr_impact.exceptions import PrImpactError
from pr_impact.impact.graph import build_impact_graph
from pr_impact.imports.cache import DependencyCache
from pr_impact.models import (
    AnalysisOptions,
    ChangedFile,
    FileCategory,
    FileStatus,
    Severity,
)
from pr_impact.output.json_reporter import format_json, to_json_data
from pr_impact.output.markdown import format_markdown
from pr_impact.repo.git import GitRepository

logger = logging.getLogger("pr_impact.mcp")

_REVISION_PROPERTIES = {
    "repo_path": {
        "type": "string",
        "description": "Repository path (default: the server's project root)",
    },
    "base": {
        "type": "string",
        "description": "Base revision (default: main, or master if main is missing)",
    },
    "head": {
        "type": "string",
        "description": "Head revision (default: HEAD)",
    },
}


class MCPServer:
    """Model Context Protocol server for pr-impact.

    Holds one DependencyCache for its whole lifetime so repeated tool calls
    against the same repository scan the import graph only once.
    """

    PROTOCOL_VERSION = "2024-11-05"
    SERVER_NAME = "pr-impact"
    SERVER_VERSION = __version__

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or find_project_root() or Path.cwd()
        self.cache = DependencyCache()
        self._tools = self._define_tools()

    def _define_tools(self) -> list[dict]:
        """Define the MCP tools we expose."""
        return [
            {
                "name": "analyze_diff",
                "description": (
                    "Run the full PR impact analysis between two revisions: changed files, "
                    "breaking changes, test coverage gaps, stale docs, impact graph and "
                    "risk score. Returns a markdown report (or JSON)."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        **_REVISION_PROPERTIES,
                        "format": {
                            "type": "string",
                            "enum": ["markdown", "json"],
                            "default": "markdown",
                        },
                        "max_depth": {
                            "type": "integer",
                            "description": "Max dependency depth for the impact graph",
                        },
                    },
                },
            },
            {
                "name": "get_breaking_changes",
                "description": (
                    "List exported symbols that were removed, renamed or changed between "
                    "two revisions, with the files that import them."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        **_REVISION_PROPERTIES,
                        "min_severity": {
                            "type": "string",
                            "enum": ["low", "medium", "high"],
                            "default": "low",
                        },
                    },
                },
            },
            {
                "name": "get_impact_graph",
                "description": (
                    "Show which files transitively import the changed files "
                    "(or a single given file)."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        **_REVISION_PROPERTIES,
                        "file": {
                            "type": "string",
                            "description": "Trace a single repo-relative file instead of the diff",
                        },
                        "max_depth": {"type": "integer", "default": 3},
                    },
                },
            },
            {
                "name": "get_risk_score",
                "description": "Weighted 0-100 risk score of a change with its factor breakdown.",
                "inputSchema": {
                    "type": "object",
                    "properties": dict(_REVISION_PROPERTIES),
                },
            },
        ]

    # =========================================================================
    # Tool handlers
    # =========================================================================

    async def _handle_tool_call(self, name: str, args: dict) -> str:
        handlers = {
            "analyze_diff": self._tool_analyze_diff,
            "get_breaking_changes": self._tool_get_breaking_changes,
            "get_impact_graph": self._tool_get_impact_graph,
            "get_risk_score": self._tool_get_risk_score,
        }
        handler = handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")
        return await handler(args)

    def _repo_path(self, args: dict) -> Path:
        return Path(args.get("repo_path") or self.root).resolve()

    async def _analyze(self, args: dict, **overrides: Any):
        repo_path = self._repo_path(args)
        options = AnalysisOptions(
            repo_path=str(repo_path),
            base_branch=args.get("base"),
            head_branch=args.get("head"),
            max_depth=args.get("max_depth"),
            **overrides,
        )
        return await analyze_pr(options, cache=self.cache)

    async def _tool_analyze_diff(self, args: dict) -> str:
        analysis = await self._analyze(args)
        if args.get("format") == "json":
            return format_json(analysis)
        return format_markdown(analysis)

    async def _tool_get_breaking_changes(self, args: dict) -> str:
        analysis = await self._analyze(args, skip_coverage=True, skip_docs=True)
        min_rank = Severity(args.get("min_severity", "low")).rank
        changes = [c for c in analysis.breaking_changes if c.severity.rank >= min_rank]
        if not changes:
            return "No breaking changes detected."

        lines = [f"Breaking changes ({len(changes)}):"]
        for c in changes:
            lines.append(
                f"  [{c.severity.value.upper()}] {c.symbol_name} in {c.file_path}: "
                f"{c.type.value.replace('_', ' ')}"
            )
            if c.before:
                lines.append(f"    before: {c.before}")
            if c.after:
                lines.append(f"    after:  {c.after}")
            if c.consumers:
                lines.append(f"    consumers: {', '.join(c.consumers)}")
        return "\n".join(lines)

    async def _tool_get_impact_graph(self, args: dict) -> str:
        repo_path = self._repo_path(args)
        repo = GitRepository(repo_path)
        await repo.verify_repository()
        config = load_config(repo_path)
        max_depth = args.get("max_depth")
        if max_depth is None:
            max_depth = config.impact.max_depth

        file = args.get("file")
        if file:
            changed = [ChangedFile(
                path=file,
                status=FileStatus.MODIFIED,
                category=FileCategory.SOURCE,
            )]
        else:
            base = args.get("base") or config.base_branch or await repo.default_base_branch()
            head = args.get("head") or "HEAD"
            await repo.resolve_ref(base)
            await repo.resolve_ref(head)
            changed = await collect_changed_files(repo, base, head)

        reverse_map = await self.cache.get(repo)
        graph = build_impact_graph(changed, reverse_map, max_depth)
        return json.dumps(to_json_data(graph), indent=2)

    async def _tool_get_risk_score(self, args: dict) -> str:
        analysis = await self._analyze(args)
        risk = analysis.risk_score
        lines = [f"Risk score: {risk.score}/100 ({risk.level.value})"]
        for factor in risk.factors:
            lines.append(
                f"  {factor.name}: {factor.score:g}/100 (weight {factor.weight:g}) "
                f"- {factor.description}"
            )
        return "\n".join(lines)

    # =========================================================================
    # MCP Protocol Implementation (JSON-RPC 2.0 over stdio)
    # =========================================================================

    async def run_stdio(self) -> None:
        """Run the MCP server over stdio (the standard transport)."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout.buffer
        )
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, None, loop)

        logger.info("pr-impact MCP server started (stdio transport)")

        while True:
            try:
                message = await self._read_message(reader)
            except (asyncio.IncompleteReadError, json.JSONDecodeError, ValueError) as e:
                logger.error("Could not read message: %s", e)
                break
            if message is None:
                break
            response = await self._handle_message(message)
            if response is not None:
                await self._write_message(writer, response)

        logger.info("MCP server shutting down")

    async def _read_message(self, reader: asyncio.StreamReader) -> dict | None:
        """Read a JSON-RPC message with Content-Length header."""
        content_length = 0
        while True:
            line = await reader.readline()
            if not line:
                return None
            line = line.decode("utf-8").strip()
            if not line:
                break  # End of headers
            if line.lower().startswith("content-length:"):
                content_length = int(line.split(":")[1].strip())

        if content_length == 0:
            return None

        body = await reader.readexactly(content_length)
        return json.loads(body.decode("utf-8"))

    async def _write_message(self, writer: asyncio.StreamWriter, message: dict) -> None:
        """Write a JSON-RPC response with Content-Length header."""
        body = json.dumps(message).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode()
        writer.write(header + body)
        await writer.drain()

    async def _handle_message(self, message: dict) -> dict | None:
        """Route a JSON-RPC message to the appropriate handler."""
        method = message.get("method", "")
        msg_id = message.get("id")
        params = message.get("params") or {}

        # Notifications (no id) don't get responses
        if msg_id is None:
            self._handle_notification(method, params)
            return None

        try:
            result = await self._dispatch(method, params)
            return {"jsonrpc": "2.0", "id": msg_id, "result": result}
        except ValueError as e:
            return {
                "jsonrpc": "2.0",
                "id": msg_id,
                "error": {"code": -32601, "message": str(e)},
            }
        except Exception as e:
            logger.exception("Request %s failed", method)
            return {
                "jsonrpc": "2.0",
                "id": msg_id,
                "error": {"code": -32603, "message": str(e)},
            }

    def _handle_notification(self, method: str, params: dict) -> None:
        """Handle a notification (no response needed)."""
        if method == "notifications/initialized":
            logger.info("Client initialized")
        elif method == "notifications/cancelled":
            logger.info("Request cancelled: %s", params.get("requestId"))

    async def _dispatch(self, method: str, params: dict) -> Any:
        """Dispatch a JSON-RPC method to its handler."""
        if method == "initialize":
            return self._rpc_initialize(params)
        elif method == "tools/list":
            return self._rpc_tools_list(params)
        elif method == "tools/call":
            return await self._rpc_tools_call(params)
        elif method == "ping":
            return {}
        else:
            raise ValueError(f"Unknown method: {method}")

    def _rpc_initialize(self, params: dict) -> dict:
        """Handle the initialize handshake."""
        return {
            "protocolVersion": self.PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
            },
            "serverInfo": {
                "name": self.SERVER_NAME,
                "version": self.SERVER_VERSION,
            },
        }

    def _rpc_tools_list(self, params: dict) -> dict:
        """List available tools."""
        return {"tools": self._tools}

    async def _rpc_tools_call(self, params: dict) -> dict:
        """Call a tool and return the result."""
        name = params.get("name", "")
        arguments = params.get("arguments") or {}

        try:
            result = await self._handle_tool_call(name, arguments)
            return {
                "content": [{"type": "text", "text": result}],
                "isError": False,
            }
        except (PrImpactError, ValueError) as e:
            logger.info("Tool %s failed: %s", name, e)
            return {
                "content": [{"type": "text", "text": f"Error: {e}"}],
                "isError": True,
            }
        except Exception as e:
            logger.exception("Tool %s crashed", name)
            return {
                "content": [{"type": "text", "text": f"Error: {e}"}],
                "isError": True,
            }

    # =========================================================================
    # MCP Config Generators
    # =========================================================================

    @staticmethod
    def generate_claude_config(project_path: str | None = None) -> dict:
        """Generate MCP config for Claude Code (~/.claude/mcp_servers.json)."""
        return {
            "pr-impact": {
                "command": "pr-impact",
                "args": ["serve"],
                "cwd": project_path or ".",
            }
        }

    @staticmethod
    def generate_cursor_config(project_path: str | None = None) -> dict:
        """Generate MCP config for Cursor (.cursor/mcp.json)."""
        return {
            "mcpServers": {
                "pr-impact": {
                    "command": "pr-impact",
                    "args": ["serve"],
                    "cwd": project_path or ".",
                }
            }
        }
