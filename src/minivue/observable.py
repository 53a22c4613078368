"""Observable store — dicts and lists whose reads and writes are intercepted.

observe() wraps a plain dict or list in a ReactiveDict or ReactiveList. The
wrapper adopts the raw container as its backing store, and nested dicts and
lists are wrapped lazily the first time they are read (the backing slot is
then replaced by the wrapper, so this happens once per container).

Reads made while a watcher is active subscribe it: per key for dicts, per
list for lists. Writes notify the subscribers through the scheduler. A write
of the current value is a no-op: same object, or equal (==) when neither
side is a dict/list. Structured values only compare by identity.

Known limitation: a dict key that did not exist when the dict was converted
is not reactive. Plain assignment stores the value (itself made observable)
but reads of that key are not tracked and the new key is not announced to
watchers iterating the dict. Use set_reactive() to add a reactive key.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, TypeVar

from minivue import _anchor
from minivue._tracking import active_watcher
from minivue.dep import Dep

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


def _is_structured(value: object) -> bool:
    return isinstance(value, (dict, list, Reactive))


def _same(old: object, new: object) -> bool:
    if old is new:
        return True
    if _is_structured(old) or _is_structured(new):
        return False
    return old == new


class Reactive:
    """Base for the reactive wrappers. Holds the raw container and its own Dep.

    The Dep tracks the container as a whole: the key set of a dict, or
    every element of a list.
    """

    __slots__ = ("_raw", "_dep", "__weakref__")

    def __init__(self, raw) -> None:
        self._raw = raw
        self._dep = Dep()
        _anchor.wrappers[id(raw)] = self

    def _depend_child(self, value: object) -> None:
        if isinstance(value, Reactive):
            value._dep.depend()

    __hash__ = None

    def __eq__(self, other: object) -> bool:
        self._dep.depend()
        return to_raw(self) == to_raw(other)


class ReactiveDict(Reactive, Generic[KT, VT]):
    """A dict wrapper with one dependency registry per reactive key."""

    __slots__ = ("_deps", "_keys")

    def __init__(self, raw: dict[KT, VT]) -> None:
        super().__init__(raw)
        self._deps: dict[KT, Dep] = {}
        self._keys: set[KT] = set(raw)

    def _read(self, key: KT) -> VT:
        value = self._raw[key]
        if isinstance(value, (dict, list)):
            value = observe(value)
            self._raw[key] = value
        return value

    def _track_key(self, key: KT, value: object) -> None:
        if active_watcher() is None or key not in self._keys:
            return
        dep = self._deps.get(key)
        if dep is None:
            dep = self._deps[key] = Dep()
        dep.depend()
        self._depend_child(value)

    def _track_shape(self) -> None:
        self._dep.depend()

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        value = self._read(key)
        self._track_key(key, value)
        return value

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        if key in self._raw:
            return self[key]
        # Depend on the key set so a later set_reactive() of key re-runs us.
        self._track_shape()
        return default

    def __contains__(self, key: object) -> bool:
        self._track_shape()
        return key in self._raw

    def __len__(self) -> int:
        self._track_shape()
        return len(self._raw)

    def __iter__(self) -> Iterator[KT]:
        self._track_shape()
        return iter(list(self._raw))

    def __bool__(self) -> bool:
        self._track_shape()
        return bool(self._raw)

    def keys(self) -> list[KT]:
        self._track_shape()
        return list(self._raw)

    def values(self) -> list[VT]:
        return [value for _, value in self.items()]

    def items(self) -> list[tuple[KT, VT]]:
        self._track_shape()
        return [(key, self[key]) for key in list(self._raw)]

    # --- Write operations (notify) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        new = observe(value)
        if key not in self._keys:
            self._raw[key] = new
            return
        if _same(self._raw[key], new):
            return
        self._raw[key] = new
        dep = self._deps.get(key)
        if dep is not None:
            dep.notify()

    def __delitem__(self, key: KT) -> None:
        del self._raw[key]
        if key not in self._keys:
            return
        self._keys.discard(key)
        dep = self._deps.pop(key, None)
        if dep is not None:
            dep.notify()
        self._dep.notify()

    def pop(self, key: KT, *default: VT) -> VT:
        if key in self._raw:
            value = self._raw[key]
            del self[key]
            return value
        if default:
            return default[0]
        raise KeyError(key)

    def update(self, other=None, **kwargs: VT) -> None:
        values = dict(other or {}, **kwargs)
        for key, value in values.items():
            self[key] = value

    def clear(self) -> None:
        for key in list(self._raw):
            del self[key]

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        if key not in self._raw:
            self[key] = default
        return self[key]

    def __repr__(self) -> str:
        return f"ReactiveDict({to_raw(self)!r})"


class ReactiveList(Reactive, Generic[T]):
    """A list wrapper. Any read tracks the list; any effective mutation notifies."""

    __slots__ = ()

    def __init__(self, raw: list[T]) -> None:
        super().__init__(raw)

    def _read(self, index: int) -> T:
        value = self._raw[index]
        if isinstance(value, (dict, list)):
            value = observe(value)
            self._raw[index] = value
        return value

    def _track(self) -> None:
        self._dep.depend()

    def _notify(self) -> None:
        self._dep.notify()

    # --- Read operations (track) ---

    def __getitem__(self, index):
        self._track()
        if isinstance(index, slice):
            return [self._read(i) for i in range(*index.indices(len(self._raw)))]
        return self._read(index)

    def __len__(self) -> int:
        self._track()
        return len(self._raw)

    def __iter__(self) -> Iterator[T]:
        self._track()
        return iter([self._read(i) for i in range(len(self._raw))])

    def __contains__(self, item: object) -> bool:
        self._track()
        return item in self._raw

    def __bool__(self) -> bool:
        self._track()
        return bool(self._raw)

    def index(self, item: T, *args: int) -> int:
        self._track()
        return self._raw.index(item, *args)

    def count(self, item: T) -> int:
        self._track()
        return self._raw.count(item)

    # --- Write operations (notify) ---

    def append(self, item: T) -> None:
        self._raw.append(observe(item))
        self._notify()

    def extend(self, items: Iterable[T]) -> None:
        items = [observe(item) for item in items]
        if not items:
            return
        self._raw.extend(items)
        self._notify()

    def __iadd__(self, items: Iterable[T]) -> ReactiveList[T]:
        self.extend(items)
        return self

    def insert(self, index: int, item: T) -> None:
        self._raw.insert(index, observe(item))
        self._notify()

    def pop(self, index: int = -1) -> T:
        result = self._raw.pop(index)
        self._notify()
        return result

    def remove(self, item: T) -> None:
        self._raw.remove(item)
        self._notify()

    def clear(self) -> None:
        if not self._raw:
            return
        self._raw.clear()
        self._notify()

    def sort(self, *, key=None, reverse: bool = False) -> None:
        before = list(self._raw)
        self._raw.sort(key=key, reverse=reverse)
        if any(a is not b for a, b in zip(before, self._raw)):
            self._notify()

    def reverse(self) -> None:
        if len(self._raw) < 2:
            return
        self._raw.reverse()
        self._notify()

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            self._raw[index] = [observe(item) for item in value]
            self._notify()
            return
        new = observe(value)
        if _same(self._raw[index], new):
            return
        self._raw[index] = new
        self._notify()

    def __delitem__(self, index) -> None:
        del self._raw[index]
        self._notify()

    def __repr__(self) -> str:
        return f"ReactiveList({to_raw(self)!r})"


def observe(value):
    """Return the reactive view of a dict or list; other values pass through.

    Calling observe() again on the same raw container, or on a wrapper,
    returns the same wrapper.

    Usage:
        state = observe({"todos": [], "filter": "all"})
        state["todos"].append({"title": "write tests", "done": False})
    """
    if isinstance(value, Reactive):
        return value
    if isinstance(value, dict):
        cls = ReactiveDict
    elif isinstance(value, list):
        cls = ReactiveList
    else:
        return value
    existing = _anchor.wrappers.get(id(value))
    if existing is not None and existing._raw is value:
        return existing
    return cls(value)


def set_reactive(target: Reactive, key, value):
    """Add or replace a slot so that it is reactive, announcing new keys.

    On a ReactiveDict this is the only way to add a key after conversion
    that watchers can track. On a ReactiveList, key is an index; the index
    equal to the current length appends.
    """
    if isinstance(target, ReactiveList):
        if key == len(target._raw):
            target.append(value)
        else:
            target[key] = value
        return target._raw[key]
    if not isinstance(target, ReactiveDict):
        raise TypeError(f"set_reactive() needs a reactive dict or list, got {type(target).__name__}")
    if key in target._keys:
        target[key] = value
        return target._raw[key]
    target._raw[key] = observe(value)
    target._keys.add(key)
    target._dep.notify()
    return target._raw[key]


def delete_reactive(target: Reactive, key) -> None:
    """Delete a slot and notify its readers. Missing dict keys are ignored."""
    if isinstance(target, ReactiveList):
        del target[key]
        return
    if not isinstance(target, ReactiveDict):
        raise TypeError(f"delete_reactive() needs a reactive dict or list, got {type(target).__name__}")
    if key in target._raw:
        del target[key]


def is_reactive(value: object) -> bool:
    return isinstance(value, Reactive)


def to_raw(value, _memo: dict[int, object] | None = None):
    """Deep plain copy of a reactive value. Reads nothing through tracking."""
    if _memo is None:
        _memo = {}
    if isinstance(value, Reactive):
        value = value._raw
    if isinstance(value, dict):
        if id(value) in _memo:
            return _memo[id(value)]
        copy = _memo[id(value)] = {}
        for key, item in value.items():
            copy[key] = to_raw(item, _memo)
        return copy
    if isinstance(value, list):
        if id(value) in _memo:
            return _memo[id(value)]
        copy = _memo[id(value)] = []
        copy.extend(to_raw(item, _memo) for item in value)
        return copy
    return value
