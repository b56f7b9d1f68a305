"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from cli.config import Config
from cli.docstore_client import DocStoreClient
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
from common.logging_config import get_logger

logger = get_logger(__name__)


_client: Optional[DocStoreClient] = None


def get_client() -> DocStoreClient:
    """
    Get or create global DocStoreClient instance.
    """
    global _client
    if _client is None:
        logger.debug("Creating new DocStoreClient instance")
        config = Config(Path.home() / '.docstore' / 'config.json')
        _client = DocStoreClient(config)
    return _client


def handle_login(cmd: LoginCommand, client: DocStoreClient) -> str:
    return client.login(cmd.api_key)


def handle_whoami(cmd: WhoAmICommand, client: DocStoreClient) -> str:
    return client.whoami()


def handle_list(cmd: ListCommand, client: DocStoreClient) -> str:
    logger.info(f"Executing ls command: folder={cmd.folder_id or 'root'}")
    return client.list_documents(cmd.folder_id)


def handle_mkdir(cmd: MkdirCommand, client: DocStoreClient) -> str:
    return client.create_folder(cmd.title, cmd.parent_id)


def handle_create(cmd: CreateCommand, client: DocStoreClient) -> str:
    """
    Handle 'create' command: read a local text file and upload it as a new document.
    """
    logger.info(f"Executing create command: title={cmd.title} path={cmd.local_path}")
    return client.create_file(cmd.title, cmd.local_path, cmd.parent_id)


def handle_show(cmd: ShowCommand, client: DocStoreClient) -> str:
    return client.show(cmd.node_id)


def handle_rename(cmd: RenameCommand, client: DocStoreClient) -> str:
    return client.rename(cmd.node_id, cmd.title)


def handle_remove(cmd: RemoveCommand, client: DocStoreClient) -> str:
    logger.info(f"Executing rm command: id={cmd.node_id}")
    return client.delete(cmd.node_id)


def handle_share(cmd: ShareCommand, client: DocStoreClient) -> str:
    return client.share(cmd.node_id, cmd.email, cmd.permission)


def handle_chmod(cmd: ChmodCommand, client: DocStoreClient) -> str:
    return client.chmod(cmd.node_id, cmd.user_id, cmd.permission)


def handle_unshare(cmd: UnshareCommand, client: DocStoreClient) -> str:
    return client.unshare(cmd.node_id, cmd.user_id)


def handle_collaborators(cmd: CollaboratorsCommand, client: DocStoreClient) -> str:
    return client.collaborators(cmd.node_id)


HANDLERS = {
    LoginCommand: handle_login,
    WhoAmICommand: handle_whoami,
    ListCommand: handle_list,
    MkdirCommand: handle_mkdir,
    CreateCommand: handle_create,
    ShowCommand: handle_show,
    RenameCommand: handle_rename,
    RemoveCommand: handle_remove,
    ShareCommand: handle_share,
    ChmodCommand: handle_chmod,
    UnshareCommand: handle_unshare,
    CollaboratorsCommand: handle_collaborators,
}


def dispatch_command(cmd: CommandRequest, client: Optional[DocStoreClient] = None) -> str:
    """
    Dispatch a parsed command to its handler.

    Args:
        cmd: Parsed command
        client: Optional DocStoreClient for dependency injection (testing)
    """
    handler = HANDLERS.get(type(cmd))
    if handler is None:
        return f"Unknown command type: {type(cmd)}"
    return handler(cmd, client or get_client())
