"""Mutable live document with a transaction pipeline and change listeners."""

import copy
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class DocumentNode:
    type: str
    attrs: dict = field(default_factory=dict)
    content: list["DocumentNode"] = field(default_factory=list)
    text: str | None = None       # text leaves only
    marks: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data) -> "DocumentNode":
        """Build a node tree from its JSON form. Malformed children are skipped."""
        if not isinstance(data, Mapping):
            return cls(type="doc")
        attrs = data.get("attrs")
        marks = data.get("marks")
        content = data.get("content")
        text = data.get("text")
        return cls(
            type=str(data.get("type") or "unknown"),
            attrs=dict(attrs) if isinstance(attrs, Mapping) else {},
            content=[
                cls.from_dict(child) for child in content if isinstance(child, Mapping)
            ] if isinstance(content, list) else [],
            text=text if isinstance(text, str) else None,
            marks=[dict(m) for m in marks if isinstance(m, Mapping)] if isinstance(marks, list) else [],
        )

    def to_dict(self) -> dict:
        data: dict = {"type": self.type}
        if self.attrs:
            data["attrs"] = copy.deepcopy(self.attrs)
        if self.text is not None:
            data["text"] = self.text
        if self.marks:
            data["marks"] = copy.deepcopy(self.marks)
        if self.content:
            data["content"] = [child.to_dict() for child in self.content]
        return data

    @property
    def text_content(self) -> str:
        if self.type == "text":
            return self.text or ""
        return "".join(child.text_content for child in self.content)

    def descendants(self, path: tuple[int, ...] = ()) -> Iterator[tuple[tuple[int, ...], "DocumentNode"]]:
        """Yield (path, node) for every node below this one, in document order."""
        for i, child in enumerate(self.content):
            child_path = path + (i,)
            yield child_path, child
            yield from child.descendants(child_path)


@dataclass
class AnnotationPatch:
    path: tuple[int, ...]
    key: str
    old: object
    new: object


TransactionHook = Callable[["Document"], list[AnnotationPatch]]
Listener = Callable[["Document"], None]


class Document:
    """The live document edited by the user.

    update() replaces the content, runs every transaction hook (each may
    return patches, which are applied before anyone is notified), then
    notifies subscribers. Hooks therefore finish before downstream views
    read the document.
    """

    def __init__(self, tree=None):
        self.root = DocumentNode.from_dict(tree if tree is not None else {"type": "doc", "content": []})
        self._hooks: list[TransactionHook] = []
        self._listeners: list[Listener] = []

    @classmethod
    def from_json(cls, tree) -> "Document":
        return cls(tree)

    def to_json(self) -> dict:
        return self.root.to_dict()

    def descendants(self):
        return self.root.descendants()

    def node_at(self, path: tuple[int, ...]) -> DocumentNode | None:
        node = self.root
        for i in path:
            if i < 0 or i >= len(node.content):
                return None
            node = node.content[i]
        return node

    def add_transaction_hook(self, hook: TransactionHook) -> Callable[[], None]:
        """Run hook on every update. Returns a callable that removes it."""
        self._hooks.append(hook)

        def remove():
            if hook in self._hooks:
                self._hooks.remove(hook)
        return remove

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Notify listener after every effective change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _set(self, patch: AnnotationPatch) -> bool:
        node = self.node_at(patch.path)
        if node is None:
            logger.debug("No node at %s, skipping patch", patch.path)
            return False
        if node.attrs.get(patch.key) == patch.new and patch.key in node.attrs:
            return False
        node.attrs[patch.key] = patch.new
        return True

    def _run_hooks(self) -> bool:
        changed = False
        for hook in list(self._hooks):
            for patch in hook(self) or []:
                changed = self._set(patch) or changed
        return changed

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def update(self, tree) -> None:
        """Replace the document content (one edit transaction)."""
        self.root = DocumentNode.from_dict(tree)
        self._run_hooks()
        self._notify()

    def apply(self, patches: list[AnnotationPatch]) -> bool:
        """Apply attribute patches. Subscribers hear about it only if something changed."""
        changed = False
        for patch in patches:
            changed = self._set(patch) or changed
        if changed:
            self._notify()
        return changed

    def set_attr(self, path: tuple[int, ...], key: str, value) -> bool:
        node = self.node_at(path)
        old = node.attrs.get(key) if node is not None else None
        return self.apply([AnnotationPatch(path=path, key=key, old=old, new=value)])
