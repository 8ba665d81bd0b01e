"""
Factory for creating Harvest bridge MCP servers with different transport configurations.

This module handles server creation and tool registration, injecting a
shared `HarvestEngine` into the tools.
"""

import atexit
from functools import partial
from typing import Optional

import anyio
import structlog
from mcp.server.fastmcp import FastMCP

from .config import get_settings
from .core import (
    HarvestCountInput,
    HarvestRetrieveInput,
    HarvestSearchInput,
    ResponseFormat,
    format_record_markdown,
    format_records_table,
    format_result_json,
    truncate_if_needed,
)
from .engine import HarvestEngine
from .errors import HarvestBridgeError

logger = structlog.get_logger(__name__)

TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True
}


def create_harvest_server(
    transport: str,
    port: Optional[int] = None,
    engine: Optional[HarvestEngine] = None
) -> FastMCP:
    """
    Create a Harvest bridge MCP server with specified transport configuration.

    Args:
        transport: Transport type ("stdio" or "sse")
        port: Port number (required for SSE, ignored for STDIO)
        engine: Engine to serve requests with; built from environment
            settings when omitted

    Returns:
        Configured FastMCP server instance
    """
    if transport not in ("stdio", "sse"):
        raise ValueError(f"Unsupported transport: {transport}")

    if port:
        mcp = FastMCP("harvest_bridge_mcp", port=port)
    else:
        mcp = FastMCP("harvest_bridge_mcp")

    if engine is None:
        # The server owns this engine for the life of the process.
        engine = HarvestEngine(get_settings())
        atexit.register(engine.close)

    mcp._engine = engine
    logger.info("harvest_server_created", transport=transport, base_url=engine.base_url)

    _register_count_tool(mcp)
    _register_retrieve_tool(mcp)
    _register_search_tool(mcp)

    return mcp


def _error_output(error: HarvestBridgeError) -> str:
    logger.warning("harvest_tool_error", code=error.code.value, message=error.message)
    return format_result_json(error.to_tool_result())


def _register_count_tool(mcp: FastMCP):
    """Register the record count tool."""

    @mcp.tool(
        name="harvest_count_records",
        annotations={"title": "Count Harvest Records", **TOOL_ANNOTATIONS}
    )
    async def harvest_count_records(params: HarvestCountInput) -> str:
        """Count the Harvest records of a structure that match a qualification."""
        try:
            count = await anyio.to_thread.run_sync(
                partial(mcp._engine.count, params.structure, params.query, params.parameters)
            )
        except HarvestBridgeError as e:
            return _error_output(e)

        return format_result_json({"structure": params.structure, "count": count})


def _register_retrieve_tool(mcp: FastMCP):
    """Register the single record retrieval tool."""

    @mcp.tool(
        name="harvest_retrieve_record",
        annotations={"title": "Retrieve a Harvest Record", **TOOL_ANNOTATIONS}
    )
    async def harvest_retrieve_record(params: HarvestRetrieveInput) -> str:
        """Retrieve one Harvest record, e.g. a client by client_id."""
        try:
            record = await anyio.to_thread.run_sync(
                partial(
                    mcp._engine.retrieve,
                    params.structure,
                    params.query,
                    params.parameters,
                    params.fields,
                )
            )
        except HarvestBridgeError as e:
            return _error_output(e)

        if params.response_format == ResponseFormat.MARKDOWN:
            output = "# Harvest Record\n\n"
            output += f"**Structure:** {params.structure}\n\n"
            output += format_record_markdown(record, title=params.structure)
            return output

        return format_result_json({"structure": params.structure, "record": record})


def _register_search_tool(mcp: FastMCP):
    """Register the record search tool."""

    @mcp.tool(
        name="harvest_search_records",
        annotations={"title": "Search Harvest Records", **TOOL_ANNOTATIONS}
    )
    async def harvest_search_records(params: HarvestSearchInput) -> str:
        """List the Harvest records of a structure that match a qualification."""
        try:
            result = await anyio.to_thread.run_sync(
                partial(
                    mcp._engine.search,
                    params.structure,
                    params.query,
                    params.parameters,
                    params.fields,
                )
            )
        except HarvestBridgeError as e:
            return _error_output(e)

        if params.response_format == ResponseFormat.MARKDOWN:
            if not result.records:
                return (
                    f"No {params.structure} records found.\n\n"
                    "Suggestions:\n"
                    "- Check the qualification filters\n"
                    "- Task Assignments and User Assignments need a project_id"
                )

            output = "# Harvest Search Results\n\n"
            output += f"**Structure:** {params.structure}\n"
            if params.query:
                output += f"**Query:** {params.query}\n"
            output += f"**Records:** {len(result.records)}\n\n"
            output += format_records_table(result)
            return truncate_if_needed(output, result.records)

        payload = {
            "structure": params.structure,
            "query": params.query,
            "count": len(result.records),
            "fields": result.fields,
            "records": result.records,
        }
        return truncate_if_needed(format_result_json(payload), result.records)
