"""``gemini-chat`` command-line entry point.

Wires argument parsing to the handlers in ``cli_actions`` and ``cli_shell``.
Running without a subcommand starts the interactive ``chat`` shell.
"""

from __future__ import annotations

import sys
from typing import Optional

from ...base.http import close_all_clients
from .cli_actions import handle_ask, handle_mock_server, handle_models
from .cli_parser import COMMANDS, build_parser
from .cli_shell import handle_chat


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    p = build_parser()
    argv_list = list(sys.argv[1:] if argv is None else argv)
    if not argv_list or (argv_list[0] not in COMMANDS and argv_list[0] not in {"-h", "--help"}):
        argv_list = ["chat"] + argv_list
    args = p.parse_args(argv_list)

    try:
        if args.cmd == "ask":
            return handle_ask(args)
        if args.cmd == "models":
            return handle_models(args)
        if args.cmd == "mock-server":
            return handle_mock_server(args)
        return handle_chat(args)
    finally:
        close_all_clients()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
