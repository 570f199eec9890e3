"""Extract GitHub-flavoured markdown task-list items from a PR description."""

from __future__ import annotations

import re
from collections.abc import Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.tasklists import tasklists_plugin
from pydantic import BaseModel

_TASK_ITEM_CLASS = "task-list-item"
_CHECKED = 'checked="checked"'
_MARKER = re.compile(r"^\[[ xX]\]\s*")

_md = MarkdownIt("commonmark").use(tasklists_plugin)


class Task(BaseModel):
    name: str
    completed: bool


def _is_task_item(token: Token) -> bool:
    if token.type != "list_item_open":
        return False
    return _TASK_ITEM_CLASS in str(token.attrGet("class") or "").split()


def tasks(body: str | None) -> Iterator[Task]:
    """Yield each task-list item of *body* in document order.

    The body is tokenized as CommonMark, so items inside code blocks (fenced
    or indented) and HTML comments are not tasks. Nested items count as tasks
    of their own.
    """
    tokens = _md.parse(body or "")
    for index, token in enumerate(tokens[:-2]):
        if not _is_task_item(token):
            continue
        inline = tokens[index + 2]
        if inline.type != "inline" or not inline.children:
            continue
        checkbox = inline.children[0]
        name = _MARKER.sub("", inline.content).strip()
        if not name:
            continue
        yield Task(
            name=name,
            completed=checkbox.type == "html_inline" and _CHECKED in checkbox.content,
        )
