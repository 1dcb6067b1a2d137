"""Import and export extraction for JavaScript, TypeScript and Vue files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Protocol

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from changecov.graph.models import ModuleFacts

_VUE_SCRIPT_RE = re.compile(r"<script\b([^>]*)>(.*?)</script\s*>", re.DOTALL | re.IGNORECASE)
_VUE_LANG_RE = re.compile(r"""\blang\s*=\s*["']?(\w+)""")

_EXT_LANGUAGE = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}


class ImportExtractor(Protocol):
    """Pluggable source-language import/export extraction."""

    def supports(self, path: Path) -> bool: ...

    def extract(self, path: Path, content: bytes) -> ModuleFacts: ...


def extract_vue_script(content: str) -> tuple[str, str]:
    """Concatenated ``<script>`` blocks of a single-file component and their language."""
    blocks: list[str] = []
    language = "javascript"
    for match in _VUE_SCRIPT_RE.finditer(content):
        attrs, body = match.group(1), match.group(2)
        lang = _VUE_LANG_RE.search(attrs)
        if lang and lang.group(1).lower() in ("ts", "tsx"):
            language = "tsx" if lang.group(1).lower() == "tsx" else "typescript"
        blocks.append(body)
    return "\n".join(blocks), language


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node is not None and node.text else ""


def _string_value(node: Any) -> str | None:
    if node is None or node.type not in ("string", "template_string"):
        return None
    if node.type == "template_string" and any(c.type == "template_substitution" for c in node.children):
        return None
    return _text(node).strip("'\"`")


class TreeSitterImportExtractor:
    """Extracts static imports, re-exports, ``require`` and dynamic ``import()``
    specifiers plus exported names using tree-sitter grammars.
    """

    def __init__(self) -> None:
        self._parser = tree_sitter.Parser()
        self._languages: dict[str, Any] = {
            "javascript": tree_sitter.Language(tree_sitter_javascript.language()),
            "typescript": tree_sitter.Language(tree_sitter_typescript.language_typescript()),
            "tsx": tree_sitter.Language(tree_sitter_typescript.language_tsx()),
        }

    def supports(self, path: Path) -> bool:
        suffix = path.suffix.lower()
        return suffix == ".vue" or suffix in _EXT_LANGUAGE

    def extract(self, path: Path, content: bytes) -> ModuleFacts:
        suffix = path.suffix.lower()
        if suffix == ".vue":
            script, language = extract_vue_script(content.decode("utf-8", errors="replace"))
            if not script.strip():
                return ModuleFacts()
            source = script.encode("utf-8")
        else:
            language = _EXT_LANGUAGE.get(suffix)
            if language is None:
                raise ValueError(f"Unsupported file extension: {suffix}")
            source = content

        self._parser.language = self._languages[language]
        tree = self._parser.parse(source)

        imports: list[str] = []
        exports: list[str] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type == "import_statement":
                source_node = node.child_by_field_name("source")
                if source_node is None:
                    # TypeScript: import x = require("...")
                    for child in node.named_children:
                        if child.type == "import_require_clause":
                            source_node = child.child_by_field_name("source")
                spec = _string_value(source_node)
                if spec:
                    imports.append(spec)
                continue
            if node.type == "export_statement":
                self._collect_export(node, imports, exports)
            elif node.type == "call_expression":
                spec = self._call_specifier(node)
                if spec:
                    imports.append(spec)
            stack.extend(reversed(node.children))

        return ModuleFacts(imports=tuple(dict.fromkeys(imports)), exports=tuple(dict.fromkeys(exports)))

    def _call_specifier(self, node: Any) -> str | None:
        func = node.child_by_field_name("function")
        if func is None or not (func.type == "import" or _text(func) == "require"):
            return None
        args = node.child_by_field_name("arguments")
        if args is None:
            return None
        for arg in args.named_children:
            return _string_value(arg)
        return None

    def _collect_export(self, node: Any, imports: list[str], exports: list[str]) -> None:
        source = _string_value(node.child_by_field_name("source"))
        if source:
            imports.append(source)
        before = len(exports)

        if any(child.type == "default" for child in node.children):
            exports.append("default")
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            name = declaration.child_by_field_name("name")
            if name is not None:
                exports.append(_text(name))
            else:
                for child in declaration.named_children:
                    if child.type == "variable_declarator":
                        exports.append(_text(child.child_by_field_name("name")))
            return

        for child in node.named_children:
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type == "export_specifier":
                        alias = spec.child_by_field_name("alias")
                        exports.append(_text(alias or spec.child_by_field_name("name")))
            elif child.type == "namespace_export":
                exports.append(_text(child.named_children[-1]) if child.named_children else "*")
        if source and len(exports) == before:
            exports.append("*")
