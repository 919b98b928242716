"""
Shared utilities for CFS components.

This package contains common functionality used across master, metanode,
datanode and the admin CLI:
- config: configuration file loading (JSON / YAML)
- errors: error taxonomy shared by the supervisor and the CLI
- logging_config: per-module logging setup
- schemas: pydantic wire models of the master admin API
- token_utils: volume authorization key derivation
"""
