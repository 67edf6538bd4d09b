"""Ordered, indexed registry shared by state and event collections."""

from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from loguru import logger

from state_machines.core.exceptions import DuplicateNodeError, UnknownNodeError


N = TypeVar("N")
SKIP_INDEX = object()


def _hashable(key: Any) -> bool:
    try:
        hash(key)
    except TypeError:
        return False
    return True


class NodeCollection(Generic[N]):
    """Keeps nodes in definition order with one lookup table per index."""

    def __init__(self, machine: Any, index: Optional[Dict[str, Callable[[N], Any]]] = None,
                 default_index: str = "name") -> None:
        """Initialize collection.

        Args:
            machine: Machine owning the nodes
            index: Mapping of index name to a key function; a key function
                may return ``SKIP_INDEX`` to leave a node out of that index
            default_index: Index used when none is given to lookups
        """
        self.machine = machine
        self._nodes: List[N] = []
        self._key_functions: Dict[str, Callable[[N], Any]] = index or {"name": lambda node: node.name}
        self._indices: Dict[str, Dict[Any, N]] = {name: {} for name in self._key_functions}
        self._default_index = default_index

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[N]:
        return iter(list(self._nodes))

    def __contains__(self, name: Any) -> bool:
        return self.get(name) is not None

    def keys(self, index: Optional[str] = None) -> List[Any]:
        """Keys of the given index in definition order."""
        index = index or self._default_index
        return [key for key in (self._key(index, node) for node in self._nodes) if key is not SKIP_INDEX]

    def at(self, position: int) -> N:
        """Node at a position in definition order."""
        return self._nodes[position]

    def add(self, node: N) -> N:
        """Add a node, rejecting keys another node already owns.

        Raises:
            DuplicateNodeError: If any index already has the node's key
        """
        self._check_keys(node)
        self._nodes.append(node)
        self._index(node)
        return node

    def concat(self, nodes) -> None:
        for node in nodes:
            self.add(node)

    def update(self, node: N) -> None:
        """Re-index a node whose keys have changed."""
        self._check_keys(node)
        for table in self._indices.values():
            for key in [key for key, other in table.items() if other is node]:
                del table[key]
        self._index(node)
        logger.debug(f"Re-indexed {node!r}")

    def get(self, key: Any, index: Optional[str] = None) -> Optional[N]:
        """Node owning the key, or None."""
        index = index or self._default_index
        if index not in self._indices:
            raise UnknownNodeError(f"{index!r} is an invalid index", {"index": index})

        if _hashable(key):
            node = self._indices[index].get(key)
            if node is not None:
                return node

        # Unhashable keys and deferred values are never indexed
        for node in self._nodes:
            node_key = self._key(index, node)
            if node_key is not SKIP_INDEX and not _hashable(node_key) and node_key == key:
                return node
        return None

    def fetch(self, key: Any, index: Optional[str] = None) -> N:
        """Node owning the key.

        Raises:
            UnknownNodeError: If no node owns the key
        """
        node = self.get(key, index)
        if node is None:
            raise UnknownNodeError(
                f"{key!r} is an invalid {index or self._default_index}",
                {"key": key, "index": index or self._default_index}
            )
        return node

    def _key(self, index: str, node: N) -> Any:
        return self._key_functions[index](node)

    def _index(self, node: N) -> None:
        for index in self._key_functions:
            key = self._key(index, node)
            if key is not SKIP_INDEX and _hashable(key):
                self._indices[index][key] = node

    def _check_keys(self, node: N) -> None:
        for index in self._key_functions:
            key = self._key(index, node)
            if key is SKIP_INDEX or not _hashable(key):
                continue
            existing = self._indices[index].get(key)
            if existing is not None and existing is not node:
                raise DuplicateNodeError(
                    f"{type(node).__name__} {index} {key!r} is already defined",
                    {"index": index, "key": key}
                )
