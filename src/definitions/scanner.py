"""Best-effort syntactic scanner for TypeScript declaration and test files.

This is not a parser. It removes comments, masks string contents so that
braces and keywords inside literals are ignored, tracks brace depth and then
uses regular expressions to pull out what the dependency analysis needs:
triple-slash directives, module specifiers, ambient module declarations and
top-level value declarations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

_LITERAL_OR_COMMENT = re.compile(
    r'("(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|`(?:\\.|[^`\\])*`)'
    r'|(//[^\n]*|/\*.*?\*/)',
    re.DOTALL,
)

_DIRECTIVE = re.compile(
    r'^\s*///\s*<reference\s+(path|types)\s*=\s*(["\'])(.*?)\2',
)

_IMPORT_PATTERNS = [
    # import x from "m"; import type { X } from "m"; export * from "m"
    re.compile(r'\b(?:import|export)\s+(?:type\s+)?[\w$*{}\s,]*?\bfrom\s*(["\'])([^"\'\n]+)\1'),
    # import "m"
    re.compile(r'\bimport\s*(["\'])([^"\'\n]+)\1'),
    # import x = require("m")
    re.compile(r'\bimport\s+[\w$]+\s*=\s*require\s*\(\s*(["\'])([^"\'\n]+)\1\s*\)'),
    # import("m") in type positions
    re.compile(r'\bimport\s*\(\s*(["\'])([^"\'\n]+)\1\s*\)'),
]

_STATEMENT_HEAD = re.compile(r'^[ \t]*([A-Za-z_$][\w$]*)', re.MULTILINE)

_AMBIENT_MODULE = re.compile(r'^(?:declare\s+)?module\s+(["\'])([^"\'\n]+)\1')
_NAMESPACE_EXPORT = re.compile(r'^export\s+as\s+namespace\s+([\w$]+)')
_VARIABLE = re.compile(r'^(?:declare\s+)?(?:var|let|const)\s+([\w$]+)')
_NAMED_VALUE = re.compile(
    r'^(?:declare\s+)?(?:abstract\s+)?(?:const\s+)?(?:function|class|enum)\s*\*?\s*([\w$]+)'
)
_NAMESPACE = re.compile(r'^(?:declare\s+)?(?:namespace|module)\s+([\w$]+)')
_VALUE_IN_NAMESPACE = re.compile(r'\b(?:var|let|const|function|class|enum|namespace|module)\b')

_STATEMENT_KEYWORDS = frozenset([
    "import", "export", "declare", "interface", "type", "var", "let", "const",
    "function", "class", "enum", "namespace", "module", "abstract", "async",
])


@dataclass
class SourceFile:
    """What the scanner extracted from one file."""
    file_name: str
    text: str
    referenced_files: List[str] = field(default_factory=list)
    type_references: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    ambient_modules: List[str] = field(default_factory=list)
    is_module: bool = False
    exports_something: bool = False
    namespace_export: Optional[str] = None
    globals: List[str] = field(default_factory=list)


def _blank(text: str) -> str:
    return re.sub(r'[^\n]', ' ', text)


def _views(text: str) -> Tuple[str, str]:
    """Return (code, skeleton).

    ``code`` has comments blanked out; ``skeleton`` additionally blanks the
    contents of string literals. Both keep every offset and newline of
    ``text``.
    """
    code: List[str] = []
    skeleton: List[str] = []
    last = 0
    for m in _LITERAL_OR_COMMENT.finditer(text):
        code.append(text[last:m.start()])
        skeleton.append(text[last:m.start()])
        literal, comment = m.group(1), m.group(2)
        if comment is not None:
            code.append(_blank(comment))
            skeleton.append(_blank(comment))
        else:
            code.append(literal)
            skeleton.append(literal[0] + _blank(literal[1:-1]) + literal[-1])
        last = m.end()
    code.append(text[last:])
    skeleton.append(text[last:])
    return "".join(code), "".join(skeleton)


def _depths(skeleton: str) -> List[int]:
    """Brace depth at every offset of ``skeleton``."""
    depths = [0] * (len(skeleton) + 1)
    depth = 0
    for i, ch in enumerate(skeleton):
        if ch == "{":
            depths[i] = depth
            depth += 1
            continue
        if ch == "}":
            depth = max(depth - 1, 0)
        depths[i] = depth
    depths[len(skeleton)] = depth
    return depths


def _directives(text: str, code: str) -> List[Tuple[str, str]]:
    """Triple-slash directives from the leading comment block of the file."""
    found = []
    in_block = False
    for raw_line, code_line in zip(text.split("\n"), code.split("\n")):
        if code_line.strip():
            break
        stripped = raw_line.strip()
        if in_block:
            in_block = "*/" not in stripped
            continue
        if stripped.startswith("/*"):
            in_block = "*/" not in stripped[2:]
            continue
        m = _DIRECTIVE.match(raw_line)
        if m:
            found.append((m.group(1), m.group(3)))
    return found


def _module_specifiers(code: str, skeleton: str) -> List[str]:
    hits = []
    for pattern in _IMPORT_PATTERNS:
        for m in pattern.finditer(code):
            # a keyword inside a string literal is blank in the skeleton
            if skeleton[m.start()] == " ":
                continue
            hits.append((m.start(2), m.group(2)))
    hits.sort()
    return list(dict.fromkeys(spec for _, spec in hits))


def _matching_brace(skeleton: str, start: int) -> int:
    depth = 0
    for i in range(start, len(skeleton)):
        if skeleton[i] == "{":
            depth += 1
        elif skeleton[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    return len(skeleton)


def _is_value_namespace(skeleton: str, head_end: int) -> bool:
    open_brace = skeleton.find("{", head_end)
    if open_brace == -1:
        return False
    body = skeleton[open_brace + 1:_matching_brace(skeleton, open_brace)]
    return bool(_VALUE_IN_NAMESPACE.search(body))


def scan_source(file_name: str, text: str) -> SourceFile:
    """Scan ``text`` and return the extracted ``SourceFile``."""
    src = SourceFile(file_name=file_name, text=text)
    code, skeleton = _views(text)

    for kind, value in _directives(text, code):
        if kind == "path":
            src.referenced_files.append(value)
        else:
            src.type_references.append(value)

    src.imports = _module_specifiers(code, skeleton)

    depths = _depths(skeleton)
    heads = []
    for m in _STATEMENT_HEAD.finditer(skeleton):
        if depths[m.start(1)] != 0 or m.group(1) not in _STATEMENT_KEYWORDS:
            continue
        # statement text from code so module names survive
        line_end = code.find("\n", m.start(1))
        heads.append((m.group(1), m.start(1), code[m.start(1):line_end if line_end != -1 else len(code)]))

    src.is_module = any(keyword in ("import", "export") for keyword, _, _ in heads)

    for keyword, start, statement in heads:
        ambient = _AMBIENT_MODULE.match(statement)
        if ambient:
            src.ambient_modules.append(ambient.group(2))
            continue
        if keyword == "import":
            continue
        src.exports_something = True
        namespace_export = _NAMESPACE_EXPORT.match(statement)
        if namespace_export:
            src.namespace_export = namespace_export.group(1)
            continue
        if src.is_module:
            continue
        # named values first: "declare const enum E" is an enum, not a variable
        for pattern in (_NAMED_VALUE, _VARIABLE):
            value = pattern.match(statement)
            if value:
                src.globals.append(value.group(1))
                break
        else:
            namespace = _NAMESPACE.match(statement)
            if namespace and _is_value_namespace(skeleton, start + namespace.end()):
                src.globals.append(namespace.group(1))

    return src
