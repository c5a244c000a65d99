"""CLI commands for Longscript."""
