#!/usr/bin/env -S uv run
"""
Harvest Application Bridge MCP Server (STDIO Transport)

Thin wrapper that configures the server for STDIO transport.
All business logic is in harvest_bridge_mcp package.

Credentials come from HARVEST_USERNAME, HARVEST_PASSWORD and HARVEST_ACCOUNT.
"""

from harvest_bridge_mcp import configure_logging, create_harvest_server
from harvest_bridge_mcp.config import get_settings

settings = get_settings()
configure_logging(settings.log_level, settings.log_format)

# Create server with STDIO configuration
mcp = create_harvest_server(transport="stdio", port=None)

if __name__ == "__main__":
    # Run with STDIO transport
    mcp.run(transport="stdio")
