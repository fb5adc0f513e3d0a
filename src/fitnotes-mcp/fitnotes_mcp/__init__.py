"""MCP server exposing the fitnotes corpus and workout tools."""
