#!/usr/bin/env python

import argparse

import shtab

from companion import __version__


def _comma_list(value):
    """Split ``py,rs, ts`` into ``["py", "rs", "ts"]``."""
    return [item.strip().lstrip(".") for item in value.split(",") if item.strip()]


def _add_project_arguments(parser):
    parser.add_argument(
        "-c",
        "--cwd",
        metavar="DIR",
        default=".",
        help="Project directory (default: current directory)",
    ).complete = shtab.DIRECTORY

    parser.add_argument(
        "-e",
        "--include",
        metavar="EXTS",
        type=_comma_list,
        default=None,
        help="Comma separated list of file extensions to index (e.g. py,rs,ts)",
    )

    parser.add_argument(
        "-x",
        "--exclude",
        metavar="DIR",
        action="append",
        default=[],
        help="Extra directory to exclude (can be used multiple times)",
    )

    parser.add_argument(
        "--max-files",
        metavar="N",
        type=int,
        default=None,
        help="Maximum number of files to index (default: 50, or the config file value)",
    )


def get_parser():
    """
    Argument parser for companion-chat.

    Persistent options live in .companion.conf.yml; the API key lives in the
    per-user settings file written by ``companion-chat configure``.
    """
    parser = argparse.ArgumentParser(
        prog="companion-chat",
        description="companion-chat is an AI coding assistant in your terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Use 'companion-chat --init-config' to create a sample configuration file
and 'companion-chat configure' to store your API key.
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show the version number and exit",
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Create a sample .companion.conf.yml configuration file and exit",
    )

    parser.add_argument(
        "--config",
        metavar="CONFIG_FILE",
        help="Specify the config file (default: search for .companion.conf.yml)",
    ).complete = shtab.FILE

    parser.add_argument(
        "--settings",
        metavar="SETTINGS_FILE",
        help="Specify the settings file holding the API key",
    ).complete = shtab.FILE

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
        default=False,
    )

    parser.add_argument(
        "--no-pretty",
        dest="pretty",
        action="store_false",
        default=True,
        help="Disable pretty, colorized output",
    )

    parser.add_argument(
        "--yes-always",
        action="store_true",
        help="Always say yes to every confirmation",
        default=False,
    )

    supported_shells_list = sorted(list(shtab.SUPPORTED_SHELLS))
    parser.add_argument(
        "--shell-completions",
        metavar="SHELL",
        choices=supported_shells_list,
        help="Print shell completion script for the specified shell and exit",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # One-shot agent modes
    for name, help_text in (
        ("plan", "Generate an action plan without touching any file"),
        ("interactive", "Propose changes and confirm each one"),
        ("auto", "Apply the proposed changes automatically"),
    ):
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        _add_project_arguments(sub)
        sub.add_argument(
            "instruction",
            metavar="INSTRUCTION",
            nargs="+",
            help="What the assistant should do",
        )
        if name == "auto":
            sub.add_argument(
                "--dry-run",
                action="store_true",
                default=False,
                help="Show the changes without applying them",
            )

    chat = subparsers.add_parser("chat", help="Start an interactive chat session")
    _add_project_arguments(chat)
    chat.add_argument(
        "--resume",
        metavar="CHAT_ID",
        help="Continue a saved conversation",
    )

    chats = subparsers.add_parser("chats", help="List saved conversations")
    chats.add_argument(
        "-c",
        "--cwd",
        metavar="DIR",
        default=".",
        help="Only list conversations of this project (default: current directory)",
    ).complete = shtab.DIRECTORY
    chats.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="List the conversations of every project",
    )
    chats.add_argument(
        "--delete",
        metavar="CHAT_ID",
        help="Delete a saved conversation",
    )

    configure = subparsers.add_parser("configure", help="Store the API key and provider")
    configure.add_argument(
        "--provider",
        metavar="PROVIDER",
        help="Provider to use (mistral or codestral)",
    )
    configure.add_argument(
        "--api-key",
        metavar="KEY",
        help="API key (prompted for when omitted)",
    )

    return parser
