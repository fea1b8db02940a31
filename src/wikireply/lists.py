from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

LIST_TAGS = {
    ":": "dl",
    ";": "dl",
    "*": "ul",
    "#": "ol",
}
ITEM_TAGS = {
    ":": "dd",
    ";": "dt",
    "*": "li",
    "#": "li",
}
ITEM_CHARS = {
    ("dl", "dd"): ":",
    ("dl", "dt"): ";",
    ("ul", "li"): "*",
    ("ol", "li"): "#",
}
LIST_TAG_TOKEN_RE = re.compile(r"(</?(?:dl|ul|ol|dd|dt|li)>)")


@dataclass
class Line:
    text: str


@dataclass
class ListItem:
    """A list item. An item holding a nested list has `children` instead of `text`."""

    kind: str
    text: str | None = None
    children: list = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return self.text is None


@dataclass
class ListNode:
    kind: str
    items: list[ListItem] = field(default_factory=list)


Entry = Union[Line, ListItem, ListNode]


def _list_tag(text: str):
    return LIST_TAGS.get(text[:1])


def lines_to_lists(lines, nested: bool = False) -> list:
    """Group lines (strings, `Line` or `ListItem` objects) into list trees.

    Consecutive lines sharing a list type form one `ListNode`. Inside a list, a run of items
    that carry list markup themselves becomes a nested node attached to the preceding item.
    """
    entries = [Line(line) if isinstance(line, str) else line for line in lines]
    result: list = []
    i = 0
    while i < len(entries):
        entry = entries[i]
        text = entry.text or ""
        list_tag = _list_tag(text)
        if not list_tag:
            result.append(entry)
            i += 1
            continue

        items = []
        j = i
        while j < len(entries) and _list_tag(entries[j].text or "") == list_tag:
            item_text = entries[j].text
            items.append(ListItem(ITEM_TAGS[item_text[0]], item_text[1:]))
            j += 1
        node = ListNode(list_tag, lines_to_lists(items, nested=True))

        if not nested:
            result.append(node)
        elif result:
            previous = result.pop()
            result.append(ListItem(previous.kind, children=[previous, node]))
        else:
            result.append(ListItem(entry.kind, children=[node]))
        i = j
    return result


def _sub_entries(entry) -> list:
    return entry.items if isinstance(entry, ListNode) else entry.children


def _item_to_tags(item) -> str:
    if isinstance(item, ListNode) or item.is_composite:
        inner = lists_to_tags(_sub_entries(item), nested=True)
    else:
        inner = item.text.strip()
    return f"<{item.kind}>{inner}</{item.kind}>"


def lists_to_tags(entries, nested: bool = False) -> str:
    rendered = []
    for entry in entries:
        if isinstance(entry, ListNode) or (isinstance(entry, ListItem) and entry.is_composite):
            inner = "".join(_item_to_tags(item) for item in _sub_entries(entry))
            rendered.append(f"<{entry.kind}>{inner}</{entry.kind}>")
        else:
            rendered.append(entry.text.strip() if nested else entry.text)
    return "\n".join(rendered)


def list_markup_to_tags(code: str) -> str:
    """Replace `:*#;` list markup with the respective HTML tags."""
    return lists_to_tags(lines_to_lists(code.split("\n")))


def tags_to_list_markup(code: str) -> str:
    """Render list tags produced by `list_markup_to_tags` back as prefix markup."""
    lines: list[str] = []
    list_stack: list[str] = []
    item_chars: list[str] = []
    line_open = False

    def start_line(prefix: str):
        nonlocal line_open
        lines.append(prefix)
        line_open = True

    for token in LIST_TAG_TOKEN_RE.split(code):
        if not token:
            continue
        match = LIST_TAG_TOKEN_RE.fullmatch(token)
        if match:
            tag = token.strip("</>")
            is_closing = token.startswith("</")
            if tag in {"dl", "ul", "ol"}:
                if is_closing:
                    if list_stack:
                        list_stack.pop()
                else:
                    list_stack.append(tag)
                line_open = False
            elif is_closing:
                if item_chars:
                    item_chars.pop()
                line_open = False
            else:
                list_kind = list_stack[-1] if list_stack else "dl"
                char = ITEM_CHARS.get((list_kind, tag), ":")
                item_chars.append(char)
                start_line("".join(item_chars))
            continue

        prefix = "".join(item_chars)
        pieces = token.split("\n")
        last = len(pieces) - 1
        for index, piece in enumerate(pieces):
            if index == 0:
                if line_open:
                    lines[-1] += piece
                elif piece:
                    start_line(prefix + piece)
            elif index == last and not piece:
                line_open = False
            elif item_chars and not piece:
                continue
            else:
                start_line(prefix + piece)
    return "\n".join(lines)
