"""Command-line entry point for copilot-cli."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, TextIO

from copilot_cli.api.service import OneShotRunner
from copilot_cli.domain.exceptions import BusinessError, InvalidInputError
from copilot_cli.infrastructure.logging.logger import logger
from copilot_cli.providers import MsalAuthProvider, create_copilot_client, get_default_auth_provider


PROG = "copilot-cli"

EXIT_SUCCESS = 0
EXIT_AUTH_ERROR = 1
EXIT_PERMISSION_DENIED = 2
EXIT_NETWORK_ERROR = 3
EXIT_INVALID_INPUT = 4
EXIT_CONVERSATION_ERROR = 5
EXIT_INTERRUPTED = 130

HELP_TEXT = f"""\
M365 Copilot Chat CLI - chat with Microsoft 365 Copilot from the terminal

USAGE:
  {PROG} login [--device-code]      Sign in with Microsoft Entra
  {PROG} logout                     Sign out and clear cached tokens
  {PROG} [--stream|-s] "<query>"    Send a one-shot query
  {PROG} help                       Display this help message

OPTIONS:
  --stream, -s                      Use streaming endpoint for response
  --device-code                     Sign in with a device code instead of a browser

AUTHENTICATION:
  Before using the CLI, you must authenticate:
    1. Run '{PROG} login'
    2. Sign in with your Microsoft 365 account in the browser
    3. Tokens are cached securely and refreshed automatically

EXAMPLES:
  {PROG} login
  {PROG} "What meetings do I have today?"
  {PROG} --stream "Summarize my recent emails from John"
  {PROG} -s "What's on my calendar?"
  {PROG} logout

EXIT CODES:
  0 - Success
  1 - Authentication error
  2 - Permission denied
  3 - Network error
  4 - Invalid input
  5 - Conversation error
"""


class _ArgumentParser(argparse.ArgumentParser):
    """argparse 默认以退出码 2 结束进程，这里改为抛出 InvalidInputError。"""

    def error(self, message: str):
        raise InvalidInputError(code="INVALID_ARGUMENTS", message=message)


def _query_parser() -> _ArgumentParser:
    parser = _ArgumentParser(prog=PROG, add_help=False)
    parser.add_argument("-s", "--stream", action="store_true")
    parser.add_argument("query", nargs="*")
    return parser


def _login_parser() -> _ArgumentParser:
    parser = _ArgumentParser(prog=f"{PROG} login", add_help=False)
    parser.add_argument("--device-code", action="store_true")
    return parser


def report_error(exc: BaseException, stderr: TextIO) -> int:
    """把异常写到 stderr 并返回对应的退出码。"""

    if isinstance(exc, BusinessError):
        message, code = exc.message, exc.exit_code
    else:
        message, code = f"Unexpected error: {exc}", EXIT_CONVERSATION_ERROR
    print(f"Error: {message}", file=stderr)
    return code


def run_login(auth: MsalAuthProvider, argv: List[str], stdout: TextIO, stderr: TextIO) -> int:
    try:
        args = _login_parser().parse_args(argv)
        if not args.device_code:
            print("Opening browser for Microsoft Entra authentication...", file=stdout)
            print("Please sign in with your Microsoft 365 account.\n", file=stdout)
        result = auth.login(device_code=args.device_code, notify=lambda msg: print(msg, file=stdout))
    except BusinessError as e:
        code = report_error(e, stderr)
        return code if code == EXIT_INVALID_INPUT else EXIT_AUTH_ERROR
    except Exception as e:
        logger.exception("Unexpected error during login")
        print(f"Error: Unexpected error during login: {e}", file=stderr)
        return EXIT_AUTH_ERROR

    print(f"\nSuccessfully authenticated as: {result.username}", file=stdout)
    if result.expires_at is not None:
        print(f"Token expires: {result.expires_at.astimezone():%Y-%m-%d %H:%M:%S %Z}", file=stdout)
    print(f"\nLogin successful! You can now use '{PROG}' to chat with M365 Copilot.", file=stdout)
    return EXIT_SUCCESS


def run_logout(auth: MsalAuthProvider, stdout: TextIO, stderr: TextIO) -> int:
    try:
        auth.logout()
    except Exception as e:
        logger.exception("Logout failed")
        print(f"Error: Logout failed: {e}", file=stderr)
        return EXIT_AUTH_ERROR
    print("Successfully logged out. Token cache cleared.", file=stdout)
    return EXIT_SUCCESS


def run_query(runner: OneShotRunner, argv: List[str], stdout: TextIO, stderr: TextIO) -> int:
    try:
        args = _query_parser().parse_intermixed_args(argv)
        query = " ".join(args.query)

        def emit(text: str) -> None:
            print(text, file=stdout, flush=True)

        runner.execute(query, emit, stream=args.stream)
    except KeyboardInterrupt:
        print("Error: Cancelled", file=stderr)
        return EXIT_INTERRUPTED
    except BusinessError as e:
        return report_error(e, stderr)
    except Exception as e:
        logger.exception("Unexpected error")
        return report_error(e, stderr)
    return EXIT_SUCCESS


def main(
    argv: Optional[List[str]] = None,
    *,
    auth: Optional[MsalAuthProvider] = None,
    runner: Optional[OneShotRunner] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """解析命令并分发，返回进程退出码。

    auth / runner 默认使用真实实现，测试时可注入桩对象。
    """

    argv = list(sys.argv[1:] if argv is None else argv)
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    if not argv:
        print("M365 Copilot Chat CLI\n", file=stdout)
        print("Interactive mode not yet implemented.", file=stdout)
        print(f"Run '{PROG} help' for usage information.\n", file=stdout)
        return EXIT_INVALID_INPUT

    command = argv[0].lower()
    if command in ("help", "--help", "-h"):
        print(HELP_TEXT, file=stdout, end="")
        return EXIT_SUCCESS

    try:
        if command in ("login", "logout"):
            auth = auth or get_default_auth_provider()
            if command == "login":
                return run_login(auth, argv[1:], stdout, stderr)
            return run_logout(auth, stdout, stderr)

        if runner is None:
            auth = auth or get_default_auth_provider()
            runner = OneShotRunner(auth, create_copilot_client(auth))
    except BusinessError as e:
        return report_error(e, stderr)
    return run_query(runner, argv, stdout, stderr)


def entrypoint() -> None:
    sys.exit(main())
