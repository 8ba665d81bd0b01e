#!/usr/bin/env -S uv run
"""
Harvest Application Bridge MCP Server (SSE Transport)

Thin wrapper that configures the server for SSE transport.
All business logic is in harvest_bridge_mcp package.

Credentials come from HARVEST_USERNAME, HARVEST_PASSWORD and HARVEST_ACCOUNT.
"""

from harvest_bridge_mcp import configure_logging, create_harvest_server
from harvest_bridge_mcp.config import get_settings

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)

# Create server with SSE configuration
mcp = create_harvest_server(transport="sse", port=8002)

if __name__ == "__main__":
    # Run with SSE transport
    mcp.run(transport="sse")
