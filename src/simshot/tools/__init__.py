"""MCP tool modules. Importing a module registers its tools with the server."""
