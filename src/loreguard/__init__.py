"""
loreguard — access control for lorebook (world-info) files.

loreguard decides who may read, edit, delete or import a named lorebook.
Decisions are driven by naming conventions (personal ``$$-<handle>-``
prefixes and the ``#hidden#`` marker), the requester's role, and a
botmaker allow-list.

Package layout (src/loreguard/):
  core/       — configuration, constants, exceptions, logging setup
  access/     — policy engine, identity resolution, allow-lists, guards, trace
  cli/        — Click CLI entry point
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
