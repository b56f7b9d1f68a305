"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "login", "whoami", "ls", "mkdir", "create", "show", "rename", "rm",
    "share", "chmod", "unshare", "collaborators", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#2E86DE bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;134;222m"
GREEN = "\033[92m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
 ____             ____  _
|  _ \\  ___   ___/ ___|| |_ ___  _ __ ___
| | | |/ _ \\ / __\\___ \\| __/ _ \\| '__/ _ \\
| |_| | (_) | (__ ___) | || (_) | | |  __/
|____/ \\___/ \\___|____/ \\__\\___/|_|  \\___|
{RESET}"""

WELCOME_TITLE = "DocStore CLI - Shared documents and folders"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "docstore> "

HELP_TEXT = """Available commands:
  login <api_key>                        Save API key and verify it
  whoami                                 Show profile and storage usage
  ls [folder_id]                         List documents (root when no folder given)
  mkdir <title> [parent_id]              Create a folder
  create <title> <local_path> [parent_id]
                                         Create a file from a local text file
  show <id>                              Show a document and your permission on it
  rename <id> <title>                    Rename a file or folder
  rm <id>                                Delete a document (folders recursively)
  share <id> <email> [view|edit]         Share with a user (default: view)
  chmod <id> <user_id> <view|edit>       Change a collaborator's permission
  unshare <id> <user_id>                 Revoke a collaborator's access
  collaborators <id>                     List owner and collaborators
  clear                                  Clear screen and redisplay welcome message
  help                                   Show this help
  exit                                   Exit REPL

Sharing a folder also shares every file inside it.
Examples:
  login dsk_0f8c...
  mkdir Reports
  create "Q3 notes.md" ./notes.md <folder_id>
  share <folder_id> bob@example.com edit
  chmod <folder_id> <bob_user_id> view"""

PERMISSIONS = ("view", "edit")
