"""Command-line interface for rbac-policy-engine."""
