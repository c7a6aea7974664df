"""
agentdeps -- skill and agent dependencies for coding agents.

Clones skill repositories into a local cache and reconciles their
skills and subagents into every configured agent's directories.
Everything the tool writes lives in a managed subdirectory, so
user-authored skills sitting next to it are never touched.
"""

__version__ = "0.1.0"

MANAGED_DIR_NAME = "_agentdeps_managed"

CONFIG_DIR_ENV = "AGENTDEPS_CONFIG_DIR"
CACHE_DIR_ENV = "AGENTDEPS_CACHE_DIR"
LOG_DIR_ENV = "AGENTDEPS_LOG_DIR"
