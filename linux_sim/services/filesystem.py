"""
Virtual filesystem service for linux-sim.

This service owns an in-memory tree of directories and files, resolves
shell-style paths against it, and exposes the read-only views (statistics,
tree listing, prompt) the terminal display refreshes after every command.
No real disk I/O ever happens.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from linux_sim.schemas.commands import CommandResult
from linux_sim.schemas.filesystem import (
    Directory, File, Node, NodeMetadata, Statistics, TreeEntry
)
from linux_sim.services.commands import CommandDispatcher

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

HOME_PATH = "/home/user"

DIR_PERMISSIONS = "drwxr-xr-x"
FILE_PERMISSIONS = "-rw-r--r--"
DEFAULT_OWNER = "user"
DEFAULT_GROUP = "users"

WELCOME_TEXT = """Welcome to Linux File System Simulator!

Try these commands:
• ls -la    # List all files with details
• cat welcome.txt    # View this file
• mkdir test    # Create directory
• rmdir test    # Remove empty directory
• rm -rf test   # Force remove
• cd..         # Windows-style cd
• cat >> file.txt  # Append to file
"""

BASHRC_TEXT = """# User specific aliases
alias ll='ls -la'
alias la='ls -A'
alias ..='cd ..'
"""


def utc_now() -> datetime:
    """Default clock: current time in UTC"""
    return datetime.now(timezone.utc)


def normalize(path: str) -> str:
    """
    Collapse a slash-separated path into its canonical absolute form.

    Empty and "." segments are dropped, ".." pops the previous segment and
    is ignored at the root, so the result never escapes "/".

    Args:
        path: Any slash-separated path

    Returns:
        Absolute path with a single leading slash
    """
    result: List[str] = []

    for part in path.split("/"):
        if part == "" or part == ".":
            continue
        if part == "..":
            if result:
                result.pop()
        else:
            result.append(part)

    return "/" + "/".join(result)


def join_path(parent_path: str, name: str) -> str:
    """Path of a child called `name` under `parent_path`"""
    return f"/{name}" if parent_path == "/" else f"{parent_path}/{name}"


def split_path(path: str) -> tuple[str, str]:
    """Split a normalized absolute path into (parent path, last segment)"""
    parent, _, name = path.rpartition("/")
    return parent or "/", name


class VirtualFileSystem:
    """
    An in-memory filesystem tree with a working directory.

    Each instance is independent: it seeds its own tree on construction and
    owns a CommandDispatcher that runs shell commands against it.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock: Clock = clock or utc_now

        now = self.clock()
        self.root = Directory(
            name="/",
            path="/",
            metadata=NodeMetadata(
                permissions=DIR_PERMISSIONS,
                owner="root",
                group="root",
                created=now,
                modified=now,
            ),
        )
        self.current_path = HOME_PATH
        self.home_path = HOME_PATH
        self.command_history: List[str] = []

        self._seed()
        self.dispatcher = CommandDispatcher(self)

    def _seed(self):
        """Build the fixed starting tree"""
        home = self.create_directory(self.root, "home")
        user = self.create_directory(home, "user")

        self.create_directory(user, "Documents")
        self.create_directory(user, "Downloads")
        self.create_directory(user, "Desktop")

        self.create_file(user, "welcome.txt", WELCOME_TEXT)
        self.create_file(user, ".bashrc", BASHRC_TEXT)

        etc = self.create_directory(self.root, "etc")
        self.create_file(etc, "hosts", "127.0.0.1 localhost")

    # Tree mutation

    def _new_metadata(self, permissions: str, size: Optional[int] = None) -> NodeMetadata:
        now = self.clock()
        return NodeMetadata(
            permissions=permissions,
            owner=DEFAULT_OWNER,
            group=DEFAULT_GROUP,
            created=now,
            modified=now,
            size=size,
        )

    def create_directory(self, parent: Directory, name: str) -> Directory:
        """
        Append a new empty directory to `parent`.

        Callers check for name collisions first.
        """
        directory = Directory(
            name=name,
            path=join_path(parent.path, name),
            metadata=self._new_metadata(DIR_PERMISSIONS),
        )
        parent.children.append(directory)
        parent.metadata.modified = self.clock()
        return directory

    def create_file(self, parent: Directory, name: str, content: str = "") -> File:
        """
        Append a new file to `parent`.

        Callers check for name collisions first.
        """
        file = File(
            name=name,
            path=join_path(parent.path, name),
            metadata=self._new_metadata(FILE_PERMISSIONS, size=len(content)),
            content=content,
        )
        parent.children.append(file)
        parent.metadata.modified = self.clock()
        return file

    def write_file(self, file: File, content: str, append: bool = False):
        """Replace or extend a file's content, keeping its size in step"""
        file.content = file.content + content if append else content
        file.metadata.size = len(file.content)
        file.metadata.modified = self.clock()

    def remove_child(self, parent: Directory, child: Node):
        """Detach `child` from `parent`; a directory takes its subtree with it"""
        parent.children.remove(child)
        parent.metadata.modified = self.clock()

    def touch_node(self, node: Node):
        node.metadata.modified = self.clock()

    # Path resolution

    def normalize(self, path: str) -> str:
        return normalize(path)

    def resolve_path(self, raw: str) -> str:
        """
        Turn a user-supplied path into a normalized absolute path.

        "~" and "~/..." expand to the home path, a leading "/" is absolute,
        anything else is relative to the current path. An empty string is
        the current path.

        Args:
            raw: Path as typed by the user

        Returns:
            Normalized absolute path
        """
        if not raw:
            return self.current_path

        if raw == "~":
            return self.home_path
        if raw.startswith("~/"):
            raw = self.home_path + raw[1:]

        if raw.startswith("/"):
            return normalize(raw)

        return normalize(f"{self.current_path}/{raw}")

    def get_node(self, path: str) -> Optional[Node]:
        """
        Look up the node at `path`.

        Args:
            path: Absolute or relative path

        Returns:
            The node, or None if a segment is missing or a file sits
            in the middle of the path
        """
        current: Node = self.root

        for part in self.resolve_path(path).split("/"):
            if not part:
                continue
            if not isinstance(current, Directory):
                return None
            child = current.find_child(part)
            if child is None:
                return None
            current = child

        return current

    def get_parent(self, path: str) -> tuple[Optional[Node], str]:
        """
        Locate the node that would own `path` and the name it would have.

        Returns:
            (parent node or None, last path segment); the segment is empty
            when `path` resolves to the root
        """
        parent_path, name = split_path(self.resolve_path(path))
        return self.get_node(parent_path), name

    def get_current_directory(self) -> Directory:
        """Directory at the current path, or the root if it has gone away"""
        node = self.get_node(self.current_path)
        if isinstance(node, Directory):
            return node

        logger.debug(f"Current path {self.current_path} no longer resolves, using root")
        return self.root

    # Caller-facing views

    def execute(self, line: str) -> CommandResult:
        """Run one raw command line against this filesystem"""
        return self.dispatcher.execute(line)

    def get_current_path(self) -> str:
        return self.current_path

    def get_home_path(self) -> str:
        return self.home_path

    def get_command_history(self) -> List[str]:
        return list(self.command_history)

    def get_prompt(self) -> str:
        """Shell prompt, with the home directory abbreviated to ~"""
        display_path = "~" if self.current_path == self.home_path else self.current_path
        return f"user@linux-sim:{display_path}$"

    def get_statistics(self) -> Statistics:
        """
        Count every directory and file below the root.

        Returns:
            Statistics with the root itself excluded
        """
        directory_count = 0
        file_count = 0

        stack: List[Node] = list(self.root.children)
        while stack:
            node = stack.pop()
            if isinstance(node, Directory):
                directory_count += 1
                stack.extend(node.children)
            else:
                file_count += 1

        return Statistics(directory_count=directory_count, file_count=file_count)

    def get_tree(self) -> List[TreeEntry]:
        """
        List the current directory's descendants for indented display.

        Entries come in structural pre-order (not the sorted order ls uses),
        with level 0 for direct children and a trailing slash on directory
        names.
        """
        return self._build_tree(self.get_current_directory(), 0)

    def _build_tree(self, directory: Directory, level: int) -> List[TreeEntry]:
        entries: List[TreeEntry] = []

        for child in directory.children:
            if child.name in (".", ".."):
                continue

            suffix = "/" if isinstance(child, Directory) else ""
            entries.append(TreeEntry(
                name=f"{child.name}{suffix}",
                type=child.type,
                path=child.path,
                level=level
            ))

            if isinstance(child, Directory):
                entries.extend(self._build_tree(child, level + 1))

        return entries
