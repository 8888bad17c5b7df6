"""
TypeScript translation units and cursors built on tree-sitter trees.

A translation unit is one parsed file. On construction it runs a two pass
lexical binder over the tree:

1. Declarations: every binding introduced by the file is recorded in the
   scope it belongs to (functions, classes, interfaces, type aliases, enums,
   namespaces, variables, parameters, imports, catch parameters, type
   parameters) plus class members keyed by their class.
2. References: every identifier that is not itself a declaring name is looked
   up through its chain of enclosing scopes, in the value or type namespace
   depending on the identifier kind. ``this.member`` resolves against the
   enclosing class.

Cursors wrap single nodes and answer the questions the reference engine asks:
is this a declaration, what does it reference, what is its USR and where is it.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from ..models.reference_models import CursorLocation, SourceLocation

logger = logging.getLogger(__name__)


class DeclarationKind:
    """USR kind letters for each declaration flavour."""

    FUNCTION = "F"
    CLASS = "C"
    INTERFACE = "I"
    TYPE_ALIAS = "T"
    ENUM = "E"
    NAMESPACE = "N"
    VARIABLE = "V"
    PARAMETER = "P"
    IMPORT = "IM"
    TYPE_PARAMETER = "TP"
    METHOD = "M"
    FIELD = "FD"


VALUE = "value"
TYPE = "type"

SCOPE_TYPES = {
    "program",
    "statement_block",
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
    "class_declaration",
    "abstract_class_declaration",
    "class",
    "interface_declaration",
    "type_alias_declaration",
    "for_statement",
    "for_in_statement",
    "catch_clause",
    # Signatures own their parameters even without a body
    "function_signature",
    "method_signature",
    "abstract_method_signature",
    "call_signature",
    "construct_signature",
    "function_type",
    "constructor_type",
}

FUNCTION_SCOPE_TYPES = {
    "program",
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
}

CLASS_TYPES = {"class_declaration", "abstract_class_declaration", "class"}

# Scopes that contribute a named segment to the USR of what they contain
CONTAINER_KINDS = {
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
}

NAME_NODE_TYPES = {
    "identifier",
    "type_identifier",
    "property_identifier",
    "private_property_identifier",
    "shorthand_property_identifier_pattern",
}

PATTERN_NAME_TYPES = {"identifier", "shorthand_property_identifier_pattern"}


def node_key(node: Any) -> tuple[int, int, str]:
    """Identity of a node within one tree."""
    return (node.start_byte, node.end_byte, node.type)


@dataclass
class Declaration:
    """A binding introduced by the file."""

    node: Any  # The declaration node; equal to name_node for bare pattern names
    name_node: Any
    name: str
    kind: str
    chain: tuple = field(default_factory=tuple)  # Scopes from the root down to the binding scope
    usr: str = ""


class TreeSitterCursor:
    """Cursor over one node of a TypeScriptTranslationUnit; a None node is the null cursor."""

    def __init__(self, tu: "TypeScriptTranslationUnit", node: Any | None):
        self._tu = tu
        self._node = node

    @property
    def node(self) -> Any | None:
        return self._node

    def is_valid(self) -> bool:
        return self._node is not None

    def is_declaration(self) -> bool:
        return self._declaration() is not None

    def get_usr(self) -> str:
        declaration = self._declaration()
        return declaration.usr if declaration is not None else ""

    def get_spelling(self) -> str:
        declaration = self._declaration()
        if declaration is not None:
            return declaration.name
        if self._node is None:
            return ""
        return self._tu.node_text(self._node)

    def get_referenced(self) -> "TreeSitterCursor":
        if self._node is None:
            return self
        if self._declaration() is not None:
            return self
        declaration = self._tu.referenced_declaration(self._node)
        if declaration is None:
            return TreeSitterCursor(self._tu, None)
        return TreeSitterCursor(self._tu, declaration.node)

    def get_source_location(self) -> SourceLocation:
        line, column, _ = self._tu.position_of(self._anchor())
        return SourceLocation(self._tu.path, line, column)

    def get_location(self) -> CursorLocation:
        line, column, extent = self._tu.position_of(self._anchor())
        return CursorLocation(file_path=self._tu.path, line=line, column=column, extent=extent)

    def get_children(self) -> list["TreeSitterCursor"]:
        if self._node is None:
            return []
        return [TreeSitterCursor(self._tu, child) for child in self._node.named_children]

    def _declaration(self) -> Declaration | None:
        if self._node is None:
            return None
        return self._tu.declaration_for_node(self._node)

    def _anchor(self) -> Any:
        # Declarations are located at their name, like an editor shows them
        declaration = self._declaration()
        return declaration.name_node if declaration is not None else self._node

    def __repr__(self) -> str:
        if self._node is None:
            return "TreeSitterCursor(<null>)"
        location = self.get_location()
        return f"TreeSitterCursor({self._node.type} {location.line}:{location.column})"


class TypeScriptTranslationUnit:
    """A parsed TypeScript/TSX file together with its symbol bindings."""

    def __init__(self, path: str, tree: Any, source: bytes):
        self._path = path
        self._tree = tree
        self._source = source
        self._line_starts = [0]
        for index, byte in enumerate(source):
            if byte == 0x0A:
                self._line_starts.append(index + 1)

        self._scopes: dict[tuple, dict[str, dict[str, Declaration]]] = {}
        self._members: dict[tuple, dict[str, Declaration]] = {}
        self._declarations: dict[tuple, Declaration] = {}
        self._declaring_names: set[tuple] = set()
        self._declaration_names: dict[tuple, Declaration] = {}
        self._references: dict[tuple, Declaration] = {}

        self._collect_declarations()
        self._resolve_references()
        logger.debug(
            "Bound %s: %d declarations, %d references",
            path,
            len(self._declarations),
            len(self._references),
        )

    @property
    def path(self) -> str:
        return self._path

    @property
    def tree(self) -> Any:
        return self._tree

    @property
    def source(self) -> bytes:
        return self._source

    def get_cursor(self) -> TreeSitterCursor:
        return TreeSitterCursor(self, self._tree.root_node)

    def cursor_at(self, line: int, column: int) -> TreeSitterCursor:
        """Cursor for the smallest named node at a 1-based line and character column."""
        point = self._point_for(line, column)
        if point is None:
            return TreeSitterCursor(self, None)

        node = self._tree.root_node.named_descendant_for_point_range(point, point)
        if (node is None or node.type not in NAME_NODE_TYPES) and column > 1:
            # Caret placed just after an identifier still targets it
            previous = self._point_for(line, column - 1)
            if previous is not None:
                candidate = self._tree.root_node.named_descendant_for_point_range(previous, previous)
                if candidate is not None and candidate.type in NAME_NODE_TYPES:
                    node = candidate

        if node is None or node.type == "program":
            return TreeSitterCursor(self, None)
        owner = self._declaration_names.get(node_key(node))
        if owner is not None:
            # The name of a declaration stands for the declaration itself
            return TreeSitterCursor(self, owner.node)
        return TreeSitterCursor(self, node)

    def declaration_for_node(self, node: Any) -> Declaration | None:
        return self._declarations.get(node_key(node))

    def referenced_declaration(self, node: Any) -> Declaration | None:
        return self._references.get(node_key(node))

    def declarations(self) -> list[Declaration]:
        return sorted(self._declarations.values(), key=lambda d: d.name_node.start_byte)

    def node_text(self, node: Any) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def position_of(self, node: Any) -> tuple[int, int, int]:
        """1-based line, 1-based character column and character extent of a node."""
        row, byte_column = node.start_point
        line_start = self._line_starts[row] if row < len(self._line_starts) else len(self._source)
        prefix = self._source[line_start : line_start + byte_column]
        column = len(prefix.decode("utf-8", errors="replace")) + 1

        if node.start_point[0] == node.end_point[0]:
            extent = len(self.node_text(node))
        else:
            extent = 0
        return row + 1, column, extent

    def _point_for(self, line: int, column: int) -> tuple[int, int] | None:
        row = line - 1
        if row < 0 or row >= len(self._line_starts) or column < 1:
            return None
        line_start = self._line_starts[row]
        line_end = self._line_starts[row + 1] - 1 if row + 1 < len(self._line_starts) else len(self._source)
        text = self._source[line_start:line_end].decode("utf-8", errors="replace")
        byte_column = len(text[: column - 1].encode("utf-8"))
        return (row, byte_column)

    def _walk(self):
        """Pre-order walk yielding (node, parent, enclosing scopes, enclosing class)."""
        root = self._tree.root_node
        stack = [(root, None, (), None)]
        while stack:
            node, parent, scopes, class_node = stack.pop()
            yield node, parent, scopes, class_node
            child_scopes = scopes + (node,) if node.type in SCOPE_TYPES else scopes
            child_class = node if node.type in CLASS_TYPES else class_node
            for child in reversed(node.named_children):
                stack.append((child, node, child_scopes, child_class))

    def _collect_declarations(self) -> None:
        for node, parent, scopes, _ in self._walk():
            if not scopes:
                continue
            node_type = node.type
            own_chain = scopes + (node,)

            if node_type in ("function_declaration", "generator_function_declaration", "function_signature"):
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.FUNCTION, scopes, (VALUE,))
            elif node_type in ("class_declaration", "abstract_class_declaration"):
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.CLASS, scopes, (VALUE, TYPE))
            elif node_type in ("function_expression", "function", "generator_function"):
                # A named function expression is only visible inside itself
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.FUNCTION, own_chain, (VALUE,))
            elif node_type == "class":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.CLASS, own_chain, (VALUE, TYPE))
            elif node_type == "interface_declaration":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.INTERFACE, scopes, (TYPE,))
            elif node_type == "type_alias_declaration":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.TYPE_ALIAS, scopes, (TYPE,))
            elif node_type == "enum_declaration":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.ENUM, scopes, (VALUE, TYPE))
            elif node_type == "internal_module":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.NAMESPACE, scopes, (VALUE,))
            elif node_type == "variable_declarator":
                chain = self._function_chain(scopes) if parent.type == "variable_declaration" else scopes
                self._declare_pattern(node, node.child_by_field_name("name"), DeclarationKind.VARIABLE, chain)
            elif node_type in ("required_parameter", "optional_parameter"):
                self._declare_pattern(node, node.child_by_field_name("pattern"), DeclarationKind.PARAMETER, scopes)
            elif node_type == "arrow_function":
                parameter = node.child_by_field_name("parameter")
                if parameter is not None:
                    self._declare(parameter, parameter, DeclarationKind.PARAMETER, own_chain, (VALUE,))
            elif node_type == "catch_clause":
                parameter = node.child_by_field_name("parameter")
                if parameter is not None:
                    self._declare_pattern(None, parameter, DeclarationKind.VARIABLE, own_chain)
            elif node_type == "for_in_statement":
                kind = node.child_by_field_name("kind")
                if kind is not None:
                    chain = self._function_chain(scopes) if self.node_text(kind) == "var" else own_chain
                    self._declare_pattern(None, node.child_by_field_name("left"), DeclarationKind.VARIABLE, chain)
            elif node_type == "type_parameter":
                self._declare(node, node.child_by_field_name("name"), DeclarationKind.TYPE_PARAMETER, scopes, (TYPE,))
            elif node_type == "import_clause":
                for child in node.named_children:
                    if child.type == "identifier":
                        self._declare(child, child, DeclarationKind.IMPORT, scopes, (VALUE, TYPE))
            elif node_type == "namespace_import":
                for child in node.named_children:
                    if child.type == "identifier":
                        self._declare(node, child, DeclarationKind.IMPORT, scopes, (VALUE, TYPE))
            elif node_type == "import_specifier":
                name = node.child_by_field_name("name")
                alias = node.child_by_field_name("alias")
                if alias is not None:
                    # The exported name belongs to the other module
                    if name is not None:
                        self._declaring_names.add(node_key(name))
                    self._declare(node, alias, DeclarationKind.IMPORT, scopes, (VALUE, TYPE))
                else:
                    self._declare(node, name, DeclarationKind.IMPORT, scopes, (VALUE, TYPE))
            elif node_type == "export_specifier":
                alias = node.child_by_field_name("alias")
                if alias is not None:
                    self._declaring_names.add(node_key(alias))
            elif node_type in ("method_definition", "public_field_definition") and parent.type == "class_body":
                kind = DeclarationKind.METHOD if node_type == "method_definition" else DeclarationKind.FIELD
                self._declare_member(node, node.child_by_field_name("name"), kind, scopes)

    def _function_chain(self, scopes: tuple) -> tuple:
        for index in range(len(scopes) - 1, -1, -1):
            if scopes[index].type in FUNCTION_SCOPE_TYPES:
                return scopes[: index + 1]
        return scopes

    def _declare(self, node: Any, name_node: Any | None, kind: str, chain: tuple, namespaces: tuple) -> None:
        if name_node is None or name_node.type not in NAME_NODE_TYPES:
            return

        declaration = self._register(node, name_node, kind, chain)
        table = self._scopes.setdefault(node_key(chain[-1]), {VALUE: {}, TYPE: {}})
        for namespace in namespaces:
            table[namespace].setdefault(declaration.name, declaration)

    def _declare_pattern(self, node: Any | None, pattern: Any | None, kind: str, chain: tuple) -> None:
        if pattern is None:
            return
        if pattern.type == "identifier" and node is not None:
            self._declare(node, pattern, kind, chain, (VALUE,))
            return
        # Destructured names are their own declaration nodes
        for name_node in self._pattern_names(pattern):
            self._declare(name_node, name_node, kind, chain, (VALUE,))

    def _pattern_names(self, pattern: Any) -> list[Any]:
        names = []
        stack = [pattern]
        while stack:
            node = stack.pop()
            if node.type in PATTERN_NAME_TYPES:
                names.append(node)
            elif node.type == "pair_pattern":
                value = node.child_by_field_name("value")
                if value is not None:
                    stack.append(value)
            elif node.type in ("object_assignment_pattern", "assignment_pattern"):
                left = node.child_by_field_name("left")
                if left is not None:
                    stack.append(left)
            elif node.type in ("object_pattern", "array_pattern", "rest_pattern"):
                stack.extend(reversed(node.named_children))
        names.reverse()
        return names

    def _declare_member(self, node: Any, name_node: Any | None, kind: str, scopes: tuple) -> None:
        if name_node is None or name_node.type not in NAME_NODE_TYPES:
            return
        class_node = scopes[-1]
        declaration = self._register(node, name_node, kind, scopes)
        self._members.setdefault(node_key(class_node), {}).setdefault(declaration.name, declaration)

    def _register(self, node: Any, name_node: Any, kind: str, chain: tuple) -> Declaration:
        declaration = Declaration(node=node, name_node=name_node, name=self.node_text(name_node), kind=kind, chain=chain)
        declaration.usr = self._compute_usr(declaration)
        self._declarations[node_key(node)] = declaration
        self._declaration_names.setdefault(node_key(name_node), declaration)
        if node_key(node) != node_key(name_node):
            self._declaring_names.add(node_key(name_node))
        return declaration

    def _compute_usr(self, declaration: Declaration) -> str:
        name_node = declaration.name_node
        if name_node.is_missing or name_node.start_byte == name_node.end_byte or not declaration.name:
            return ""

        segments = []
        for scope in declaration.chain:
            if scope.type == "program":
                continue
            if scope.type == "statement_block" and scope.parent is not None and scope.parent.type == "internal_module":
                namespace = scope.parent.child_by_field_name("name")
                if namespace is not None and namespace.type == "identifier":
                    segments.append(f"@{DeclarationKind.NAMESPACE}@{self.node_text(namespace)}")
                    continue
            container_kind = CONTAINER_KINDS.get(scope.type)
            container_name = scope.child_by_field_name("name") if container_kind else None
            if container_name is not None and container_name.type in NAME_NODE_TYPES:
                segments.append(f"@{container_kind}@{self.node_text(container_name)}")
                continue
            # Local declaration: qualify with file and offset to keep it unique
            file_name = os.path.basename(self._path)
            return f"ts:{file_name}@{declaration.node.start_byte}@{declaration.kind}@{declaration.name}"

        segments.append(f"@{declaration.kind}@{declaration.name}")
        return "ts:" + "".join(segments)

    def _resolve_references(self) -> None:
        for node, parent, scopes, class_node in self._walk():
            node_type = node.type
            if node_type not in (
                "identifier",
                "type_identifier",
                "shorthand_property_identifier",
                "shorthand_property_identifier_pattern",
                "property_identifier",
                "private_property_identifier",
            ):
                continue

            key = node_key(node)
            if key in self._declarations or key in self._declaring_names or parent is None:
                continue

            if node_type in ("property_identifier", "private_property_identifier"):
                declaration = self._resolve_member(node, parent, class_node)
            elif node_type == "type_identifier":
                if parent.type == "nested_type_identifier":
                    continue
                declaration = self._lookup(self.node_text(node), TYPE, scopes)
            else:
                if parent.type == "nested_identifier":
                    continue
                declaration = self._lookup(self.node_text(node), VALUE, scopes)

            if declaration is not None:
                self._references[key] = declaration

    def _lookup(self, name: str, namespace: str, scopes: tuple) -> Declaration | None:
        for scope in reversed(scopes):
            table = self._scopes.get(node_key(scope))
            if table is not None and name in table[namespace]:
                return table[namespace][name]
        return None

    def _resolve_member(self, node: Any, parent: Any, class_node: Any | None) -> Declaration | None:
        if class_node is None or parent.type != "member_expression":
            return None
        receiver = parent.child_by_field_name("object")
        if receiver is None or receiver.type != "this":
            return None
        members = self._members.get(node_key(class_node), {})
        return members.get(self.node_text(node))
