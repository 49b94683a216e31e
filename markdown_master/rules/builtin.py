"""
Built-in Markdown rules.

Most rules here are a single regular expression; the few that need to look
at more than one line at a time (lists, links, front matter, math blocks)
walk the text themselves. Priorities leave gaps so plug-in rules can be
slotted in between.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import re

import yaml

from markdown_master.rules.base import RegexRule, Rule, RuleOutcome, split_fenced_blocks

logger = logging.getLogger(__name__)


# =============================================================================
# Stripping rules
# =============================================================================

class LinkRemovalRule(RegexRule):
    """Drop whole lines of the form ``[1] https://example.com``."""
    name = "link_removal"
    priority = 10
    pattern = r"^\[(\d+)\][ \t]+(https?://\S+)[ \t]*$"
    replacement = ""


class BoldRemovalRule(RegexRule):
    name = "bold_removal"
    priority = 30
    pattern = r"\*\*"
    replacement = ""


class ReferenceRemovalRule(RegexRule):
    """
    Drop numeric citation markers like ``[12]``.

    Reference-style link labels (``[text][1]``), their definitions
    (``[1]: url``) and links whose text is a number (``[1](url)``) are kept.
    Removal repeats until nothing matches so nested markers like ``[[1]2]``
    do not survive a single pass.
    """
    name = "reference_removal"
    priority = 40
    pattern = r"(?<!\])\[\d+\](?![:(\[])"
    replacement = ""

    def transform(self, text: str) -> RuleOutcome:
        total = 0
        while True:
            text, n = self._regex.subn(self.replacement, text)
            if not n:
                break
            total += n
        return RuleOutcome(text=text, substitutions=total)


# =============================================================================
# Spacing fixes
# =============================================================================

class SpaceAfterHeadingsRule(RegexRule):
    name = "space_after_headings"
    priority = 50
    dependencies = ("heading_conversion",)
    pattern = r"^(#{1,6})(?=[^\s#])"
    replacement = r"\1 "


class SpaceAfterListItemsRule(RegexRule):
    # "---" is a thematic break, not a list item
    name = "space_after_list_items"
    priority = 60
    pattern = r"^([ \t]*)-(?=[^\s-])"
    replacement = r"\1- "


class ExcessiveNewlinesRule(RegexRule):
    name = "excessive_newlines"
    priority = 70
    pattern = r"\n{3,}"
    replacement = "\n\n"


class OrderedListFormatRule(RegexRule):
    # digits right after the dot are a decimal number, not a list item
    name = "ordered_list_format"
    priority = 80
    pattern = r"^([ \t]*\d+)\.(?=[^\s\d])"
    replacement = r"\1. "


# =============================================================================
# Front matter
# =============================================================================

_FRONT_MATTER = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*$", re.DOTALL | re.MULTILINE)


class YamlMetadataRule(Rule):
    """
    Re-emit YAML front matter in block style with a stable layout.

    Only a block at the very start of the document counts as front matter.
    Blocks with comments are left alone since PyYAML drops them.
    """
    name = "yaml_metadata"
    priority = 85
    skip_code_blocks = False

    def transform(self, text: str) -> RuleOutcome:
        m = _FRONT_MATTER.match(text)
        if not m:
            return RuleOutcome(text=text)
        body = m.group(1)
        if any(line.lstrip().startswith("#") for line in body.splitlines()):
            logger.debug("Front matter has comments, leaving it untouched")
            return RuleOutcome(text=text)
        try:
            data = yaml.safe_load(body)
        except yaml.YAMLError as e:
            return RuleOutcome(text=text, warnings=[f"Front matter is not valid YAML: {e}"])
        if not isinstance(data, (dict, list)):
            return RuleOutcome(text=text)

        dumped = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
        if dumped == body:
            return RuleOutcome(text=text)
        return RuleOutcome(text=f"---\n{dumped}---{text[m.end():]}", substitutions=1)


# =============================================================================
# Code blocks and images
# =============================================================================

class CodeHighlightRule(Rule):
    """
    Tidy fenced code blocks: no blank lines right inside the fences, and a
    language tag on bare fences when a default language is configured.
    """
    name = "code_highlight"
    priority = 100
    skip_code_blocks = False

    def __init__(self, default_language: str = "", **kwargs):
        super().__init__(**kwargs)
        self.default_language = (default_language or "").strip()

    def _tidy(self, block: str) -> str:
        lines = block.splitlines(keepends=True)
        if len(lines) < 2:
            return block
        opening, body, closing = lines[0], lines[1:-1], lines[-1]
        m = re.match(r"^( {0,3})(`{3,}|~{3,})[ \t]*(.*?)[ \t]*(\r?\n)$", opening)
        if not m:
            return block
        fence = m.group(2)
        close = closing.strip()
        if not close or set(close) != {fence[0]} or len(close) < len(fence):
            # unclosed fence
            return block

        while body and not body[0].strip():
            body.pop(0)
        while body and not body[-1].strip():
            body.pop()

        if not m.group(3) and self.default_language:
            opening = f"{m.group(1)}{m.group(2)}{self.default_language}{m.group(4)}"
        return opening + "".join(body) + closing

    def transform(self, text: str) -> RuleOutcome:
        out: List[str] = []
        changed = 0
        for is_code, segment in split_fenced_blocks(text):
            if is_code:
                tidy = self._tidy(segment)
                if tidy != segment:
                    changed += 1
                segment = tidy
            out.append(segment)
        return RuleOutcome(text="".join(out), substitutions=changed)


_IMAGE = re.compile(r'!\[([^\]\n]*)\]\([ \t]*([^)\s]+)((?:[ \t]+"[^"\n]*")?)[ \t]*\)')


class ImageOptimizationRule(Rule):
    """Upgrade image links to https and trim stray whitespace."""
    name = "image_optimization"
    priority = 110

    def transform(self, text: str) -> RuleOutcome:
        changed = 0

        def _fix(m: re.Match) -> str:
            nonlocal changed
            alt, url, title = m.group(1).strip(), m.group(2), m.group(3).strip()
            if url.startswith("http:"):
                url = "https:" + url[len("http:"):]
            new = f"![{alt}]({url}{' ' + title if title else ''})"
            if new != m.group(0):
                changed += 1
            return new

        return RuleOutcome(text=_IMAGE.sub(_fix, text), substitutions=changed)


# =============================================================================
# Links
# =============================================================================

_EMPTY_LINK = re.compile(r"(?<![!\]])\[([^\]\n]+)\]\([ \t]*\)")
_INLINE_LINK = re.compile(r'(?<![!\]])\[[ \t]*([^\]\n]*?)[ \t]*\]\([ \t]*([^)\s]+)((?:[ \t]+"[^"\n]*")?)[ \t]*\)')
_REF_LINK = re.compile(r"(!?)\[([^\]\n]+)\]\[([^\]\n]*)\]")
_REF_DEF = re.compile(r'^ {0,3}\[([^\]\n]+)\]:[ \t]*(\S+)(?:[ \t]+"[^"\n]*")?[ \t]*(?:\n|\Z)', re.MULTILINE)

LINK_STYLES = ("keep", "inline", "reference")


class LinkFormatRule(Rule):
    """
    Clean up links.

    - ``[text]()`` becomes plain ``text``
    - whitespace inside ``[ text ]( url )`` is trimmed
    - ``link_style="inline"`` resolves ``[text][id]`` through its definition
      and drops definitions that were used
    - ``link_style="reference"`` turns inline links into numbered reference
      links, with the definitions appended at the end of the document
    """
    name = "link_format"
    priority = 115
    dependencies = ("link_removal", "reference_removal")
    skip_code_blocks = False

    def __init__(self, link_style: str = "keep", **kwargs):
        super().__init__(**kwargs)
        if link_style not in LINK_STYLES:
            raise ValueError(f"link_style must be one of {LINK_STYLES}, got {link_style!r}")
        self.link_style = link_style

    def _clean(self, text: str) -> Tuple[str, int]:
        text, n_empty = _EMPTY_LINK.subn(r"\1", text)
        changed = 0

        def _trim(m: re.Match) -> str:
            nonlocal changed
            title = m.group(3).strip()
            new = f"[{m.group(1)}]({m.group(2)}{' ' + title if title else ''})"
            if new != m.group(0):
                changed += 1
            return new

        return _INLINE_LINK.sub(_trim, text), n_empty + changed

    def _to_inline(self, prose: List[str]) -> Tuple[List[str], int]:
        defs: Dict[str, str] = {}
        for segment in prose:
            for m in _REF_DEF.finditer(segment):
                defs.setdefault(m.group(1).strip().lower(), m.group(2))

        used = set()
        count = 0

        def _resolve(m: re.Match) -> str:
            nonlocal count
            label = (m.group(3) or m.group(2)).strip().lower()
            if label not in defs:
                return m.group(0)
            used.add(label)
            count += 1
            return f"{m.group(1)}[{m.group(2)}]({defs[label]})"

        def _drop_def(m: re.Match) -> str:
            return "" if m.group(1).strip().lower() in used else m.group(0)

        out: List[str] = []
        for segment in prose:
            segment = _REF_LINK.sub(_resolve, segment)
            dropped = _REF_DEF.sub(_drop_def, segment)
            if dropped != segment:
                dropped = re.sub(r"\n{3,}", "\n\n", dropped)
            out.append(dropped)
        return out, count

    def _to_reference(self, prose: List[str]) -> Tuple[List[str], int, List[str]]:
        taken = set()
        ids: Dict[str, str] = {}
        for segment in prose:
            for m in _REF_DEF.finditer(segment):
                label = m.group(1).strip()
                taken.add(label)
                ids.setdefault(m.group(2), label)
        next_id = max([int(t) for t in taken if t.isdigit()] or [0]) + 1

        appendix: List[str] = []
        count = 0

        def _convert(m: re.Match) -> str:
            nonlocal next_id, count
            if m.group(3).strip():
                # titled links stay inline
                return m.group(0)
            url = m.group(2)
            if url not in ids:
                ids[url] = str(next_id)
                appendix.append(f"[{next_id}]: {url}")
                next_id += 1
            count += 1
            return f"[{m.group(1)}][{ids[url]}]"

        return [_INLINE_LINK.sub(_convert, s) for s in prose], count, appendix

    def transform(self, text: str) -> RuleOutcome:
        segments = split_fenced_blocks(text)
        prose_idx = [i for i, (is_code, _) in enumerate(segments) if not is_code]
        prose: List[str] = []
        total = 0
        for i in prose_idx:
            cleaned, n = self._clean(segments[i][1])
            prose.append(cleaned)
            total += n

        appendix: List[str] = []
        if self.link_style == "inline":
            prose, n = self._to_inline(prose)
            total += n
        elif self.link_style == "reference":
            prose, n, appendix = self._to_reference(prose)
            total += n

        out = [seg for _, seg in segments]
        for i, new in zip(prose_idx, prose):
            out[i] = new
        result = "".join(out)
        if appendix:
            result = result.rstrip("\n") + "\n\n" + "\n".join(appendix) + "\n"
        return RuleOutcome(text=result, substitutions=total)


# =============================================================================
# Lists and block quotes
# =============================================================================

_LIST_ITEM = re.compile(r"^([ \t]*)([-*+]|\d+[.)])([ \t]+)(.*)$")
_THEMATIC_BREAK = re.compile(r"^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$")


def _indent_width(ws: str) -> int:
    return len(ws.expandtabs(4))


class ListIndentationRule(Rule):
    """
    Re-indent nested list items to ``depth * indentation`` spaces.

    Depth comes from the relative indentation of items inside one list, so
    lists indented with tabs, two or three spaces all come out the same.
    Continuation lines move with the item above them. An optional
    ``bullet`` unifies unordered markers.
    """
    name = "list_indentation"
    priority = 130
    dependencies = ("space_after_list_items",)

    def __init__(self, indentation: int = 4, bullet: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        if int(indentation) < 1:
            raise ValueError(f"indentation must be positive, got {indentation!r}")
        if bullet not in (None, "", "-", "*", "+"):
            raise ValueError(f"bullet must be one of '-', '*', '+', got {bullet!r}")
        self.indentation = int(indentation)
        self.bullet = bullet or None

    def transform(self, text: str) -> RuleOutcome:
        lines = text.split("\n")
        stack: List[int] = []
        shift = 0
        changed = 0

        for i, line in enumerate(lines):
            m = _LIST_ITEM.match(line)
            if m and not _THEMATIC_BREAK.match(line):
                width = _indent_width(m.group(1))
                while stack and stack[-1] > width:
                    stack.pop()
                if not stack or stack[-1] < width:
                    stack.append(width)
                depth = len(stack) - 1
                marker = m.group(2)
                if self.bullet and marker in "-*+":
                    marker = self.bullet
                new_indent = depth * self.indentation
                shift = new_indent - width
                new = f"{' ' * new_indent}{marker} {m.group(4)}"
            elif not line.strip():
                new = line
            elif stack and line[:1] in (" ", "\t"):
                width = _indent_width(line[:len(line) - len(line.lstrip())])
                new = " " * max(0, width + shift) + line.lstrip()
            else:
                stack = []
                shift = 0
                new = line

            if new != line:
                lines[i] = new
                changed += 1
        return RuleOutcome(text="\n".join(lines), substitutions=changed)


_BLOCKQUOTE = re.compile(r"^( {0,3})((?:>[ \t]*)+)(.*)$", re.MULTILINE)


class BlockquoteFormatRule(Rule):
    """Write quote markers as ``> `` per level: ``>>text`` becomes ``> > text``."""
    name = "blockquote_format"
    priority = 135

    def transform(self, text: str) -> RuleOutcome:
        changed = 0

        def _fix(m: re.Match) -> str:
            nonlocal changed
            markers = " ".join(">" * m.group(2).count(">"))
            rest = m.group(3).rstrip()
            new = f"{m.group(1)}{markers} {rest}" if rest else f"{m.group(1)}{markers}"
            if new != m.group(0):
                changed += 1
            return new

        return RuleOutcome(text=_BLOCKQUOTE.sub(_fix, text), substitutions=changed)


# =============================================================================
# Math
# =============================================================================

_INLINE_PAREN_MATH = re.compile(r"\\\((.+?)\\\)")
# display math may not run across a blank line
_DISPLAY_BODY = r"((?:(?!\n[ \t]*\n).)+?)"
_DISPLAY_BRACKET_MATH = re.compile(r"^([ \t]*)\\\[" + _DISPLAY_BODY + r"\\\][ \t]*$", re.MULTILINE | re.DOTALL)
_DISPLAY_DOLLAR_MATH = re.compile(r"^([ \t]*)\$\$" + _DISPLAY_BODY + r"\$\$[ \t]*$", re.MULTILINE | re.DOTALL)


class MathFormatRule(Rule):
    """
    Normalize math delimiters to dollar syntax.

    ``\\( x \\)`` becomes ``$x$``; display math written as ``\\[ ... \\]`` or
    as ``$$ ... $$`` on its own lines gets its delimiters on separate lines.
    """
    name = "math_format"
    priority = 138

    def transform(self, text: str) -> RuleOutcome:
        changed = 0

        def _inline(m: re.Match) -> str:
            nonlocal changed
            changed += 1
            return f"${m.group(1).strip()}$"

        def _display(m: re.Match) -> str:
            nonlocal changed
            indent = m.group(1)
            new = f"{indent}$$\n{m.group(2).strip()}\n{indent}$$"
            if new != m.group(0):
                changed += 1
            return new

        text = _INLINE_PAREN_MATH.sub(_inline, text)
        text = _DISPLAY_BRACKET_MATH.sub(_display, text)
        text = _DISPLAY_DOLLAR_MATH.sub(_display, text)
        return RuleOutcome(text=text, substitutions=changed)


# =============================================================================
# Special characters
# =============================================================================

SPECIAL_CHAR_MODES = ("remove", "escape", "ignore")


class SpecialCharRule(Rule):
    """Remove or backslash-escape every character that is not a word character or whitespace."""
    name = "special_chars"
    priority = 140

    def __init__(self, handling: str = "ignore", **kwargs):
        super().__init__(**kwargs)
        if handling not in SPECIAL_CHAR_MODES:
            raise ValueError(f"handling must be one of {SPECIAL_CHAR_MODES}, got {handling!r}")
        self.handling = handling
        self._regex = re.compile(r"[^\w\s]")

    def transform(self, text: str) -> RuleOutcome:
        if self.handling == "remove":
            new, n = self._regex.subn("", text)
        elif self.handling == "escape":
            new, n = self._regex.subn(r"\\\g<0>", text)
        else:
            return RuleOutcome(text=text)
        return RuleOutcome(text=new, substitutions=n)
