"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class LoginCommand:
    """Store an API key issued by the identity service."""

    api_key: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class WhoAmICommand:
    command: Literal["whoami"] = "whoami"


@dataclass(frozen=True)
class ListCommand:
    """List documents in a folder, or at root level."""

    folder_id: str | None = None
    command: Literal["ls"] = "ls"


@dataclass(frozen=True)
class MkdirCommand:
    title: str
    parent_id: str | None = None
    command: Literal["mkdir"] = "mkdir"


@dataclass(frozen=True)
class CreateCommand:
    """Create a file whose content is read from a local path."""

    title: str
    local_path: str
    parent_id: str | None = None
    command: Literal["create"] = "create"


@dataclass(frozen=True)
class ShowCommand:
    node_id: str
    command: Literal["show"] = "show"


@dataclass(frozen=True)
class RenameCommand:
    node_id: str
    title: str
    command: Literal["rename"] = "rename"


@dataclass(frozen=True)
class RemoveCommand:
    node_id: str
    command: Literal["rm"] = "rm"


@dataclass(frozen=True)
class ShareCommand:
    node_id: str
    email: str
    permission: str = "view"
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class ChmodCommand:
    node_id: str
    user_id: str
    permission: str
    command: Literal["chmod"] = "chmod"


@dataclass(frozen=True)
class UnshareCommand:
    node_id: str
    user_id: str
    command: Literal["unshare"] = "unshare"


@dataclass(frozen=True)
class CollaboratorsCommand:
    node_id: str
    command: Literal["collaborators"] = "collaborators"


CommandRequest = (
    LoginCommand
    | WhoAmICommand
    | ListCommand
    | MkdirCommand
    | CreateCommand
    | ShowCommand
    | RenameCommand
    | RemoveCommand
    | ShareCommand
    | ChmodCommand
    | UnshareCommand
    | CollaboratorsCommand
)
