from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field


class NodeMetadata(BaseModel):
    """Cosmetic ownership, permission and timestamp data for a node"""
    permissions: str
    owner: str
    group: str
    created: datetime
    modified: datetime
    size: Optional[int] = None


class Directory(BaseModel):
    """Directory node owning an ordered list of children"""
    type: Literal["dir"] = "dir"
    name: str
    path: str
    metadata: NodeMetadata
    children: list["Node"] = Field(default_factory=list)

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")

    def find_child(self, name: str) -> Optional["Node"]:
        """Return the direct child called `name`, if any"""
        for child in self.children:
            if child.name == name:
                return child
        return None


class File(BaseModel):
    """File node holding raw text content"""
    type: Literal["file"] = "file"
    name: str
    path: str
    metadata: NodeMetadata
    content: str = ""

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")


Node = Annotated[Union[Directory, File], Field(discriminator="type")]

Directory.model_rebuild()


class Statistics(BaseModel):
    """Recursive node counts, root excluded"""
    directory_count: int
    file_count: int


class TreeEntry(BaseModel):
    """One row of the indented directory tree listing"""
    name: str
    type: Literal["dir", "file"]
    path: str
    level: int
