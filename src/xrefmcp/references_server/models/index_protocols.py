"""
Capability interfaces the reference engine consumes from the AST/index layer.

The engine only talks to cursors, translation units and the source index
through these protocols, so any parser backend exposing them can be searched.
"""

from collections.abc import Callable, Iterator
from enum import Enum
from typing import Protocol

from .reference_models import CursorLocation, FileLocation, SourceLocation, UnsavedFile


class ChildVisit(Enum):
    """What a child visitor wants the traversal to do next."""

    BREAK = "break"  # Stop the traversal entirely
    CONTINUE = "continue"  # Move on to the next sibling without descending
    RECURSE = "recurse"  # Descend into the children of the current cursor


class Cursor(Protocol):
    """A handle to one AST node."""

    def is_valid(self) -> bool: ...

    def is_declaration(self) -> bool: ...

    def get_usr(self) -> str: ...

    def get_referenced(self) -> "Cursor": ...

    def get_source_location(self) -> SourceLocation: ...

    def get_location(self) -> CursorLocation: ...

    def get_children(self) -> list["Cursor"]: ...


class TranslationUnit(Protocol):
    """One parsed compilation unit with its own AST root."""

    @property
    def path(self) -> str: ...

    def get_cursor(self) -> Cursor: ...


class UnsavedFiles(Protocol):
    """The set of editor buffers the index parses instead of disk content."""

    def num_unsaved_files(self) -> int: ...

    def __iter__(self) -> Iterator[UnsavedFile]: ...


ChildVisitor = Callable[[Cursor, Cursor], ChildVisit]


class SourceIndex(Protocol):
    """Owner of parsed translation units and unsaved buffer contents."""

    @property
    def unsaved_files(self) -> UnsavedFiles: ...

    def referenced_cursor_for_file_location(self, location: FileLocation) -> Cursor: ...

    def get_translation_unit(self, file_path: str, force_reparse: bool = False) -> TranslationUnit | None: ...

    def visit_children(self, root: Cursor, visitor: ChildVisitor) -> bool: ...


def visit_children(root: Cursor, visitor: ChildVisitor) -> bool:
    """
    Pre-order traversal of the descendants of ``root``.

    ``visitor`` is called with each child and its parent. Returns True when
    the visitor asked to stop with ``ChildVisit.BREAK``.
    """
    # Explicit stack: left-nested expression chains run deeper than the recursion limit
    stack = [(root, iter(root.get_children()))]
    while stack:
        parent, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue
        result = visitor(child, parent)
        if result is ChildVisit.BREAK:
            return True
        if result is ChildVisit.RECURSE:
            stack.append((child, iter(child.get_children())))
    return False
