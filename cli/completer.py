"""Custom completer for DocStore CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, PERMISSIONS

# Position (after the command name) of the argument each command completes.
_LOCAL_PATH_ARG = {"create": 1}
_PERMISSION_ARG = {"share": 2, "chmod": 2}


class DocStoreCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local path completion for the <local_path> argument of 'create'
    - Permission completion for 'share' and 'chmod'
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        current_word = "" if is_typing_new_token else tokens[-1]
        arg_index = len(tokens) - 1 if is_typing_new_token else len(tokens) - 2

        if _LOCAL_PATH_ARG.get(command) == arg_index:
            yield from self._complete_paths(current_word)
        elif _PERMISSION_ARG.get(command) == arg_index:
            for permission in PERMISSIONS:
                if permission.startswith(current_word):
                    yield Completion(permission, start_position=-len(current_word))

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete local file and directory paths relative to the working directory.
        """
        typed = Path(partial) if partial else Path(".")
        if partial.endswith("/") or not partial:
            directory, prefix = typed, ""
        else:
            directory, prefix = typed.parent, typed.name

        base = Path.cwd() / directory
        if not base.is_dir():
            return

        for item in sorted(base.iterdir()):
            if not item.name.startswith(prefix) or item.name.startswith("."):
                continue
            rel = item.name if str(directory) == "." else f"{directory.as_posix()}/{item.name}"
            if partial.startswith("./") and not rel.startswith("./"):
                rel = f"./{rel}"
            if item.is_dir():
                rel += "/"
            yield Completion(rel, start_position=-len(partial))
