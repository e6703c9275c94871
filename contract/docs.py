"""
Documentation recognizers: descriptions, summaries, tags and deprecation
markers next to a route declaration.

Looks backward (JSDoc, XML doc comments, line comments, annotations) and,
for Python, forward into the handler's docstring.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

BACKWARD = 500
FORWARD = 1000

_JSDOC = re.compile(r'/\*\*\s*((?:(?!\*/).)*?)\s*\*/\s*(?:@\w+(?:\([^()]*(?:\([^()]*\)[^()]*)*\))?\s*)*$', re.DOTALL)
_JSDOC_DESCRIPTION = re.compile(r'@description\s+(.+)')
_JSDOC_SUMMARY = re.compile(r'@summary\s+(.+)')
_JSDOC_TAGS = re.compile(r'@tags?\s+(.+)')
_XML_SUMMARY = re.compile(r'<summary>\s*(.*?)\s*</summary>', re.DOTALL)
_LINE_COMMENT = re.compile(r'^[ \t]*(?://+|#)[ \t]*(.+?)[ \t]*$', re.MULTILINE)
_PY_DOCSTRING = re.compile(
    r'\bdef\s+\w+\s*\((?:[^()]|\([^()]*\))*\)\s*(?:->\s*[^:]+)?:\s*(?:\'\'\'|""")(.*?)(?:\'\'\'|""")',
    re.DOTALL,
)

_OPERATION_SUMMARY = re.compile(r'@(?:ApiOperation|Operation)\s*\(\s*\{?\s*summary\s*[:=]\s*[\'"]([^\'"]+)[\'"]')
_DECORATOR_SUMMARY = re.compile(r'\bsummary\s*=\s*[\'"]([^\'"]+)[\'"]')
_DECORATOR_TAGS = re.compile(r'\btags\s*=\s*\[([^\]]*)\]')
_API_TAGS = re.compile(r'@(?:ApiTags|Tag)\s*\(\s*(?:name\s*=\s*)?[\'"]([^\'"]+)[\'"]')
_QUOTED = re.compile(r'[\'"]([^\'"]+)[\'"]')
_DEPRECATED = re.compile(r'@deprecated\b|@Deprecated\b|\[Obsolete\b|deprecated\s*=\s*True')

_NOISE = re.compile(r'^(?:eslint|prettier|noqa|type:|@ts-|TODO|FIXME|region|endregion|-+$|=+$)')


@dataclass
class DocInfo:
    description: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    deprecated: bool = False


def _clean_jsdoc(body: str) -> List[str]:
    return [re.sub(r'^\s*\*\s?', '', line).strip() for line in body.split("\n")]


def _first_text_line(lines: List[str]) -> Optional[str]:
    for line in lines:
        if line and not line.startswith("@"):
            return line
    return None


def _preceding_comment(before: str) -> Optional[str]:
    """Line comments directly above the declaration (decorator lines allowed in between)."""
    lines = before.rstrip().split("\n")
    collected: List[str] = []
    for line in reversed(lines):
        stripped = line.strip()
        if not stripped:
            if collected:
                break
            continue
        if stripped.startswith(("@", "[", "#[")):
            if collected:
                break
            continue
        m = _LINE_COMMENT.match(line)
        if not m:
            break
        text = m.group(1).lstrip("/").strip()
        if text and not text.startswith("<") and not _NOISE.match(text):
            collected.append(text)
    if not collected:
        return None
    return " ".join(reversed(collected))


def extract_docs(content: str, offset: int, lower: int = 0, upper: Optional[int] = None) -> DocInfo:
    info = DocInfo()
    before = content[max(lower, offset - BACKWARD):offset]
    end = offset + FORWARD if upper is None else min(offset + FORWARD, upper)
    after = content[offset:end]
    line_end = content.find("\n", offset)
    declaration = content[offset:line_end if line_end != -1 else len(content)]

    jsdoc = _JSDOC.search(before)
    if jsdoc:
        body = jsdoc.group(1)
        described = _JSDOC_DESCRIPTION.search(body)
        lines = _clean_jsdoc(body)
        info.description = described.group(1).strip() if described else _first_text_line(lines)
        summary = _JSDOC_SUMMARY.search(body)
        if summary:
            info.summary = summary.group(1).strip()
        tags = _JSDOC_TAGS.search(body)
        if tags:
            info.tags = [t for t in re.split(r'[,\s]+', tags.group(1).strip()) if t]

    if not info.description:
        xml = _XML_SUMMARY.search(before)
        if xml:
            text = " ".join(re.sub(r'^\s*///?\s?', '', line).strip() for line in xml.group(1).split("\n"))
            info.description = text.strip() or None

    if not info.description:
        docstring = _PY_DOCSTRING.search(after)
        if docstring:
            lines = [line.strip() for line in docstring.group(1).strip().split("\n")]
            info.description = lines[0] if lines and lines[0] else None

    if not info.description:
        info.description = _preceding_comment(before)

    decorated = before + declaration
    if not info.summary:
        summary = _OPERATION_SUMMARY.search(decorated) or _DECORATOR_SUMMARY.search(declaration)
        if summary:
            info.summary = summary.group(1)

    if not info.tags:
        tags = _DECORATOR_TAGS.search(declaration)
        if tags:
            info.tags = _QUOTED.findall(tags.group(1))
        else:
            info.tags = _API_TAGS.findall(before)

    info.deprecated = bool(_DEPRECATED.search(before[-300:] + declaration))
    return info
