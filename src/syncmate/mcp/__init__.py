"""MCP (Model Context Protocol) server for syncmate."""
