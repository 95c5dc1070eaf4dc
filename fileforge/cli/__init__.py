# =============================================================================
# fileforge/cli/__init__.py: CLI module overview
# =============================================================================
#
# Command-line access to the conversion service, run as
# `python -m fileforge.cli <command>`:
#
#   convert   Convert a local file, either in-process (same service graph
#             as the HTTP server) or through a running server (--server).
#   formats   List the target formats allowed for a MIME type.
#
# Heavy imports (the FastAPI app, providers) are deferred into the command
# functions so `--help` and argument errors return immediately.
# =============================================================================

"""CLI tools for fileforge.

- ``python -m fileforge.cli convert report.docx --to pdf``
- ``python -m fileforge.cli formats application/msword``
"""
