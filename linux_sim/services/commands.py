"""
Command interpreter for linux-sim.

Tokenizes a raw command line, looks the command up in a fixed handler
table and runs it against a VirtualFileSystem. Every failure a handler can
hit is reported as an error CommandResult; nothing is raised to the caller.
"""

import logging
import re
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List

from linux_sim.schemas.commands import CommandResult
from linux_sim.schemas.filesystem import Directory, File

if TYPE_CHECKING:
    from linux_sim.services.filesystem import VirtualFileSystem

logger = logging.getLogger(__name__)

CLEAR_SENTINEL = "CLEAR"

REDIRECT_OVERWRITE = ">"
REDIRECT_APPEND = ">>"

RECURSIVE_FLAGS = ("-r", "-rf")

# "cd.." typed without a space, as on Windows
CD_DOTDOT = re.compile(r"^(\s*)cd\.\.(?=\s|$)")

HELP_TEXT = """Available Commands:

FILE OPERATIONS:
  ls [options]          List directory contents
    -a                 Show hidden files
    -l                 Long format
    -la                Both
  cd [directory]       Change directory
    cd..              Windows-style (no space)
  pwd                 Print working directory
  cat <file>          View file content
  cat > file          Create/overwrite file
  cat >> file         Append to file
  echo <text>         Print text
  echo > file         Write to file
  echo >> file        Append to file

DIRECTORY OPERATIONS:
  mkdir <dir>         Create directory
  rmdir <dir>         Remove empty directory
  rm <file>           Remove file
  rm -r <dir>         Remove directory recursively
  rm -rf <dir>        Force remove
  touch <file>        Create/update file

UTILITIES:
  clear              Clear terminal
  help               Show this help

EXAMPLES:
  ls -la
  cat welcome.txt
  echo "hello" > file.txt
  cat >> file.txt
  mkdir test
  rm -rf test
  cd.."""


class Command(str, Enum):
    """The closed set of commands the interpreter understands"""
    LS = "ls"
    CD = "cd"
    PWD = "pwd"
    CAT = "cat"
    MKDIR = "mkdir"
    RMDIR = "rmdir"
    RM = "rm"
    TOUCH = "touch"
    ECHO = "echo"
    CLEAR = "clear"
    HELP = "help"


def ok(output: str = "") -> CommandResult:
    return CommandResult(output=output, error=False)


def fail(output: str) -> CommandResult:
    return CommandResult(output=output, error=True)


def is_valid_name(name: str) -> bool:
    """A single path segment that can name a new node"""
    return "/" not in name and name not in (".", "..")


def find_redirect(args: List[str]) -> int:
    """Index of the first redirection token in `args`, or -1"""
    for index, arg in enumerate(args):
        if arg in (REDIRECT_OVERWRITE, REDIRECT_APPEND):
            return index
    return -1


def ls_sort_key(node):
    """
    Directories first, then by name ignoring case, lowercase before uppercase.

    Names compare by code point after case folding rather than by locale
    collation: punctuation keeps its ASCII order ("a-b" before "a_b") and
    accented letters sort after "z" instead of next to their base letter.
    """
    return (not isinstance(node, Directory), node.name.casefold(), node.name.swapcase())


class CommandDispatcher:
    """
    Runs shell command lines against one filesystem instance.

    The filesystem is passed in explicitly; the dispatcher keeps no tree
    state of its own.
    """

    def __init__(self, fs: "VirtualFileSystem"):
        self.fs = fs
        self.handlers: Dict[Command, Callable[[List[str]], CommandResult]] = {
            Command.LS: self._ls,
            Command.CD: self._cd,
            Command.PWD: self._pwd,
            Command.CAT: self._cat,
            Command.MKDIR: self._mkdir,
            Command.RMDIR: self._rmdir,
            Command.RM: self._rm,
            Command.TOUCH: self._touch,
            Command.ECHO: self._echo,
            Command.CLEAR: self._clear,
            Command.HELP: self._help,
        }

    def execute(self, line: str) -> CommandResult:
        """
        Execute one raw command line.

        The line is recorded in the filesystem's history before anything
        else, even when blank.

        Args:
            line: Command line exactly as typed

        Returns:
            CommandResult with output text and error flag
        """
        start_time = time.time()
        self.fs.command_history.append(line)

        line = CD_DOTDOT.sub(r"\1cd ..", line, count=1)

        parts = line.split()
        if not parts:
            return ok()

        name, args = parts[0], parts[1:]

        try:
            command = Command(name)
        except ValueError:
            logger.debug(f"Unknown command: {name}")
            return fail(f"{name}: command not found\nTry 'help' for available commands.")

        try:
            result = self.handlers[command](args)
        except Exception:
            logger.exception(f"Command {name} failed with args {args}")
            return fail(f"{name}: internal error")

        process_time = (time.time() - start_time) * 1000  # ms
        logger.debug(f"{name} processed in {process_time:.2f}ms (error={result.error})")

        return result

    # Listing and navigation

    def _ls(self, args: List[str]) -> CommandResult:
        show_all = "-a" in args or "-la" in args
        long_format = "-l" in args or "-la" in args

        directory = self.fs.get_current_directory()

        items = [
            child for child in directory.children
            if show_all or not child.is_hidden
        ]
        items.sort(key=ls_sort_key)

        if long_format:
            return ok(self._ls_long(items))

        return ok("  ".join(
            f"{item.name}/" if isinstance(item, Directory) else item.name
            for item in items
        ))

    def _ls_long(self, items) -> str:
        lines = []
        for item in items:
            metadata = item.metadata
            is_dir = isinstance(item, Directory)
            size = 0 if is_dir else metadata.size
            date = metadata.modified.strftime("%b %d")
            suffix = "/" if is_dir else ""

            lines.append(
                f"{metadata.permissions} {metadata.owner} {metadata.group} "
                f"{size:>8} {date} {item.name}{suffix}"
            )

        return "\n".join(lines)

    def _cd(self, args: List[str]) -> CommandResult:
        if not args:
            self.fs.current_path = self.fs.home_path
            return ok()

        target = args[0]
        new_path = self.fs.resolve_path(target)
        node = self.fs.get_node(new_path)

        if node is None:
            return fail(f"cd: no such directory: {target}")

        if not isinstance(node, Directory):
            return fail(f"cd: not a directory: {target}")

        self.fs.current_path = new_path
        return ok()

    def _pwd(self, args: List[str]) -> CommandResult:
        return ok(self.fs.current_path)

    # File content

    def _write_redirect(self, command: str, args: List[str], index: int) -> CommandResult:
        """
        Write the tokens before a redirection operator into its target file.

        ">" creates or overwrites, ">>" creates or appends. The joined
        tokens plus a newline are the unit written.
        """
        if index + 1 >= len(args):
            return fail(f"{command}: missing file operand")

        target = args[index + 1]
        content = " ".join(args[:index]) + "\n"
        append = args[index] == REDIRECT_APPEND

        parent, name = self.fs.get_parent(target)
        if not isinstance(parent, Directory) or not name:
            return fail(f"{command}: cannot create file: {target}")

        existing = parent.find_child(name)
        if isinstance(existing, Directory):
            return fail(f"{command}: {target}: Is a directory")

        if existing is not None:
            self.fs.write_file(existing, content, append=append)
        else:
            self.fs.create_file(parent, name, content)

        logger.debug(f"{command} {args[index]} {parent.path}/{name} ({len(content)} chars)")
        return ok()

    def _cat(self, args: List[str]) -> CommandResult:
        if not args:
            return fail("Usage: cat <file>")

        redirect_index = find_redirect(args)
        if redirect_index != -1:
            return self._write_redirect("cat", args, redirect_index)

        target = args[0]
        node = self.fs.get_node(target)

        if node is None:
            return fail(f"cat: {target}: No such file")

        if not isinstance(node, File):
            return fail(f"cat: {target}: Is a directory")

        return ok(node.content or "(empty file)")

    def _echo(self, args: List[str]) -> CommandResult:
        if not args:
            return ok()

        redirect_index = find_redirect(args)
        if redirect_index != -1:
            return self._write_redirect("echo", args, redirect_index)

        return ok(" ".join(args))

    # Creation and removal

    def _mkdir(self, args: List[str]) -> CommandResult:
        if not args:
            return fail("Usage: mkdir <directory>")

        name = args[0]
        parent = self.fs.get_current_directory()

        if parent.find_child(name) is not None:
            return fail(f"mkdir: cannot create directory '{name}': File exists")

        if not is_valid_name(name):
            return fail(f"mkdir: cannot create directory '{name}': Invalid name")

        self.fs.create_directory(parent, name)
        return ok(f"Created directory '{name}'")

    def _rmdir(self, args: List[str]) -> CommandResult:
        if not args:
            return fail("Usage: rmdir <directory>")

        name = args[0]
        parent = self.fs.get_current_directory()
        directory = parent.find_child(name)

        if not isinstance(directory, Directory):
            return fail(f"rmdir: failed to remove '{name}': No such file or directory")

        if directory.children:
            return fail(f"rmdir: failed to remove '{name}': Directory not empty")

        self.fs.remove_child(parent, directory)
        return ok(f"Removed directory '{name}'")

    def _rm(self, args: List[str]) -> CommandResult:
        if not args:
            return fail("Usage: rm <file>")

        recursive = any(arg in RECURSIVE_FLAGS for arg in args)
        name = next((arg for arg in args if arg not in RECURSIVE_FLAGS), None)

        if name is None:
            return fail("rm: missing operand")

        parent = self.fs.get_current_directory()
        item = parent.find_child(name)

        if item is None:
            return fail(f"rm: cannot remove '{name}': No such file or directory")

        if isinstance(item, Directory) and not recursive:
            return fail(f"rm: cannot remove '{name}': Is a directory (use -r flag)")

        self.fs.remove_child(parent, item)
        return ok(f"Removed '{name}'")

    def _touch(self, args: List[str]) -> CommandResult:
        if not args:
            return fail("Usage: touch <file>")

        name = args[0]
        parent = self.fs.get_current_directory()
        existing = parent.find_child(name)

        if existing is not None:
            self.fs.touch_node(existing)
            return ok(f"Updated '{name}'")

        if not is_valid_name(name):
            return fail(f"touch: cannot touch '{name}': Invalid name")

        self.fs.create_file(parent, name, "")
        return ok(f"Created file '{name}'")

    # Utilities

    def _clear(self, args: List[str]) -> CommandResult:
        return CommandResult(output=CLEAR_SENTINEL, error=False, clear=True)

    def _help(self, args: List[str]) -> CommandResult:
        return ok(HELP_TEXT)
