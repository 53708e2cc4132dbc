"""Core data model and room topology."""
