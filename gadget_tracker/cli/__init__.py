"""
cli — command-line interface for gadget-tracker.

Entry points
────────────
  python -m gadget_tracker
  gadget-tracker             (via pyproject.toml [project.scripts])

Subcommands: add | update | delete | list | find | history | total | demo
"""

from gadget_tracker.cli.main import build_parser, cmd_demo, cmd_list, main

__all__ = ["build_parser", "cmd_demo", "cmd_list", "main"]
