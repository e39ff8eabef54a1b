"""MCP servers exposing the onboarding engine as tools."""
