"""Command parser for CLI input."""

import shlex

from cli.constants import PERMISSIONS
from cli.models import (
    ChmodCommand,
    CollaboratorsCommand,
    CommandRequest,
    CreateCommand,
    ListCommand,
    LoginCommand,
    MkdirCommand,
    RemoveCommand,
    RenameCommand,
    ShareCommand,
    ShowCommand,
    UnshareCommand,
    WhoAmICommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        One of the command dataclasses in cli.models

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]
    parser = _PARSERS.get(command_name)
    if parser is None:
        raise ParseError(f"Unknown command: {command_name}")
    return parser(args)


def _expect(args: list[str], name: str, usage: str, minimum: int, maximum: int) -> None:
    if not minimum <= len(args) <= maximum:
        raise ParseError(f"usage: {name} {usage}")


def _check_permission(permission: str) -> str:
    if permission not in PERMISSIONS:
        raise ParseError(f"Permission must be one of: {', '.join(PERMISSIONS)}")
    return permission


def _parse_login(args: list[str]) -> LoginCommand:
    _expect(args, "login", "<api_key>", 1, 1)
    return LoginCommand(api_key=args[0])


def _parse_whoami(args: list[str]) -> WhoAmICommand:
    _expect(args, "whoami", "", 0, 0)
    return WhoAmICommand()


def _parse_ls(args: list[str]) -> ListCommand:
    _expect(args, "ls", "[folder_id]", 0, 1)
    return ListCommand(folder_id=args[0] if args else None)


def _parse_mkdir(args: list[str]) -> MkdirCommand:
    _expect(args, "mkdir", "<title> [parent_id]", 1, 2)
    return MkdirCommand(title=args[0], parent_id=args[1] if len(args) > 1 else None)


def _parse_create(args: list[str]) -> CreateCommand:
    _expect(args, "create", "<title> <local_path> [parent_id]", 2, 3)
    return CreateCommand(
        title=args[0],
        local_path=args[1],
        parent_id=args[2] if len(args) > 2 else None,
    )


def _parse_show(args: list[str]) -> ShowCommand:
    _expect(args, "show", "<id>", 1, 1)
    return ShowCommand(node_id=args[0])


def _parse_rename(args: list[str]) -> RenameCommand:
    _expect(args, "rename", "<id> <title>", 2, 2)
    return RenameCommand(node_id=args[0], title=args[1])


def _parse_rm(args: list[str]) -> RemoveCommand:
    _expect(args, "rm", "<id>", 1, 1)
    return RemoveCommand(node_id=args[0])


def _parse_share(args: list[str]) -> ShareCommand:
    _expect(args, "share", "<id> <email> [view|edit]", 2, 3)
    permission = _check_permission(args[2]) if len(args) > 2 else "view"
    return ShareCommand(node_id=args[0], email=args[1], permission=permission)


def _parse_chmod(args: list[str]) -> ChmodCommand:
    _expect(args, "chmod", "<id> <user_id> <view|edit>", 3, 3)
    return ChmodCommand(node_id=args[0], user_id=args[1], permission=_check_permission(args[2]))


def _parse_unshare(args: list[str]) -> UnshareCommand:
    _expect(args, "unshare", "<id> <user_id>", 2, 2)
    return UnshareCommand(node_id=args[0], user_id=args[1])


def _parse_collaborators(args: list[str]) -> CollaboratorsCommand:
    _expect(args, "collaborators", "<id>", 1, 1)
    return CollaboratorsCommand(node_id=args[0])


_PARSERS = {
    "login": _parse_login,
    "whoami": _parse_whoami,
    "ls": _parse_ls,
    "mkdir": _parse_mkdir,
    "create": _parse_create,
    "show": _parse_show,
    "rename": _parse_rename,
    "rm": _parse_rm,
    "share": _parse_share,
    "chmod": _parse_chmod,
    "unshare": _parse_unshare,
    "collaborators": _parse_collaborators,
}
