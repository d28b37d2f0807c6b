"""MCP HTTP surface: tools, resources and prompts over FastAPI."""
