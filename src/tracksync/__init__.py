"""
tracksync - Keep local projects and tasks in sync with Linear.

Layers:
- core/: domain entities, status translation, ports
- adapters/: Linear GraphQL client, repositories, configuration
- application/: sync orchestrator and webhook handling
- cli/: command line interface
"""

__version__ = "0.1.0"
