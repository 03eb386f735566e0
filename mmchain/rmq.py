"""Balanced search tree with range-minimum queries over item priorities.

Items are ordered by a key function and carry a priority; every subtree
remembers the item with the smallest priority, so the minimum over any
closed key interval is found in logarithmic time.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


class _Node(Generic[T]):
    __slots__ = ("item", "key", "pri", "left", "right", "height", "size", "smin")

    def __init__(self, item: T, key: Any, pri: Any) -> None:
        self.item = item
        self.key = key
        self.pri = pri
        self.left: Optional[_Node[T]] = None
        self.right: Optional[_Node[T]] = None
        self.height = 1
        self.size = 1
        self.smin: _Node[T] = self


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _size(node: Optional[_Node]) -> int:
    return node.size if node is not None else 0


class RMQTree(Generic[T]):
    """AVL tree keyed by ``key(item)`` answering minimum-``priority(item)`` queries."""

    def __init__(self, key: Callable[[T], Any], priority: Callable[[T], Any]) -> None:
        self._key = key
        self._priority = priority
        self._root: Optional[_Node[T]] = None

    # ------------------------------------------------------------------
    # structural helpers

    @staticmethod
    def _update(node: _Node[T]) -> None:
        left, right = node.left, node.right
        node.height = 1 + max(_height(left), _height(right))
        node.size = 1 + _size(left) + _size(right)
        # ties favour the left subtree over the node, and the right over both
        smin = node if left is None or node.pri < left.smin.pri else left.smin
        if right is not None and not smin.pri < right.smin.pri:
            smin = right.smin
        node.smin = smin

    def _rotate_left(self, p: _Node[T]) -> _Node[T]:
        q = p.right
        assert q is not None
        p.right = q.left
        q.left = p
        self._update(p)
        self._update(q)
        return q

    def _rotate_right(self, p: _Node[T]) -> _Node[T]:
        q = p.left
        assert q is not None
        p.left = q.right
        q.right = p
        self._update(p)
        self._update(q)
        return q

    def _fix(self, node: _Node[T]) -> _Node[T]:
        self._update(node)
        balance = _height(node.right) - _height(node.left)
        if balance > 1:
            r = node.right
            assert r is not None
            if _height(r.right) < _height(r.left):
                node.right = self._rotate_right(r)
            return self._rotate_left(node)
        if balance < -1:
            lft = node.left
            assert lft is not None
            if _height(lft.left) < _height(lft.right):
                node.left = self._rotate_left(lft)
            return self._rotate_right(node)
        return node

    def _insert(self, node: Optional[_Node[T]], new: _Node[T]) -> tuple[_Node[T], _Node[T]]:
        if node is None:
            return new, new
        c = _cmp(new.key, node.key)
        if c == 0:
            return node, node
        if c < 0:
            node.left, found = self._insert(node.left, new)
        else:
            node.right, found = self._insert(node.right, new)
        if found is not new:
            return node, found
        return self._fix(node), found

    def _pop_min(self, node: _Node[T]) -> tuple[Optional[_Node[T]], _Node[T]]:
        if node.left is None:
            return node.right, node
        node.left, smallest = self._pop_min(node.left)
        return self._fix(node), smallest

    def _erase(self, node: Optional[_Node[T]], key: Any) -> tuple[Optional[_Node[T]], Optional[_Node[T]]]:
        if node is None:
            return None, None
        c = _cmp(key, node.key)
        if c < 0:
            node.left, removed = self._erase(node.left, key)
        elif c > 0:
            node.right, removed = self._erase(node.right, key)
        else:
            removed = node
            if node.right is None:
                return node.left, node
            if node.left is None:
                return node.right, node
            right, succ = self._pop_min(node.right)
            succ.left, succ.right = node.left, right
            node = succ
        if removed is None:
            return node, None
        return self._fix(node), removed

    def _walk(self, key: Any) -> tuple[list[_Node[T]], list[int]]:
        path: list[_Node[T]] = []
        cmps: list[int] = []
        p = self._root
        while p is not None:
            c = _cmp(key, p.key)
            path.append(p)
            cmps.append(c)
            if c < 0:
                p = p.left
            elif c > 0:
                p = p.right
            else:
                break
        return path, cmps

    # ------------------------------------------------------------------
    # public interface

    def insert(self, item: T) -> T:
        """Insert ``item``; return it, or the item already stored under its key."""
        new = _Node(item, self._key(item), self._priority(item))
        self._root, found = self._insert(self._root, new)
        return found.item

    def find(self, key: Any) -> Optional[T]:
        """Return the item stored under ``key``, or None."""
        p = self._root
        while p is not None:
            c = _cmp(key, p.key)
            if c == 0:
                return p.item
            p = p.left if c < 0 else p.right
        return None

    def interval(self, key: Any) -> tuple[Optional[T], Optional[T]]:
        """Return (largest item with key <= ``key``, smallest item with key >= ``key``)."""
        lower: Optional[_Node[T]] = None
        upper: Optional[_Node[T]] = None
        p = self._root
        while p is not None:
            c = _cmp(key, p.key)
            if c < 0:
                upper, p = p, p.left
            elif c > 0:
                lower, p = p, p.right
            else:
                lower = upper = p
                break
        return (
            lower.item if lower is not None else None,
            upper.item if upper is not None else None,
        )

    def rmq(self, lo: Any, hi: Any) -> Optional[T]:
        """Return the item of minimum priority with ``lo <= key <= hi``, or None."""
        if self._root is None:
            return None
        path_lo, cmp_lo = self._walk(lo)
        path_hi, cmp_hi = self._walk(hi)
        lca = None
        for i, (a, b) in enumerate(zip(path_lo, path_hi)):
            if a is b and cmp_lo[i] <= 0 and cmp_hi[i] >= 0:
                lca = i
                break
        if lca is None:
            return None
        best = path_lo[lca]
        for node, c in zip(path_lo[lca + 1:], cmp_lo[lca + 1:]):
            if c <= 0:
                if node.pri < best.pri:
                    best = node
                if node.right is not None and node.right.smin.pri < best.pri:
                    best = node.right.smin
        for node, c in zip(path_hi[lca + 1:], cmp_hi[lca + 1:]):
            if c >= 0:
                if node.pri < best.pri:
                    best = node
                if node.left is not None and node.left.smin.pri < best.pri:
                    best = node.left.smin
        return best.item

    def erase(self, key: Any) -> Optional[T]:
        """Remove and return the item stored under ``key``, or None."""
        self._root, removed = self._erase(self._root, key)
        return removed.item if removed is not None else None

    def erase_first(self) -> Optional[T]:
        """Remove and return the smallest item, or None if the tree is empty."""
        if self._root is None:
            return None
        self._root, smallest = self._pop_min(self._root)
        return smallest.item

    def iter_from(self, key: Any, reverse: bool = False) -> Iterator[T]:
        """Iterate from ``key`` upwards, or downwards when ``reverse`` is true.

        Iteration starts at the item under ``key`` if present, otherwise at the
        nearest item in the direction of travel.
        """
        stack: list[_Node[T]] = []
        p = self._root
        while p is not None:
            if reverse:
                if key >= p.key:
                    stack.append(p)
                    p = p.right
                else:
                    p = p.left
            else:
                if key <= p.key:
                    stack.append(p)
                    p = p.left
                else:
                    p = p.right
        while stack:
            node = stack.pop()
            yield node.item
            q = node.left if reverse else node.right
            while q is not None:
                stack.append(q)
                q = q.right if reverse else q.left

    def __len__(self) -> int:
        return _size(self._root)

    def __iter__(self) -> Iterator[T]:
        stack: list[_Node[T]] = []
        p = self._root
        while stack or p is not None:
            while p is not None:
                stack.append(p)
                p = p.left
            node = stack.pop()
            yield node.item
            p = node.right