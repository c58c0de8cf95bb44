"""Precedence predicates deciding which of two available items is emitted first.

A predicate precedes(a, b) returns True if a has to be emitted before b. It
should be irreflexive and consistent for the items compared at the same time.
Nothing verifies this: a misbehaving predicate only affects the relative order
of the items involved, items are never lost or duplicated.
"""

from typing import Any, Callable, Optional, TypeVar
from typing_extensions import Protocol

_T = TypeVar('_T')
_T_contra = TypeVar('_T_contra', contravariant=True)


class Precedes(Protocol[_T_contra]):
	def __call__(self, a: _T_contra, b: _T_contra) -> bool:
		...


class SupportsLessThan(Protocol):
	def __lt__(self, other: Any) -> bool:
		...


def ascending(a: SupportsLessThan, b: SupportsLessThan) -> bool:
	"""Smaller items first, a k-way merge behaving like a min-heap.
	"""
	return a < b

def descending(a: SupportsLessThan, b: SupportsLessThan) -> bool:
	"""Greater items first, a k-way merge behaving like a max-heap.
	"""
	return b < a

def from_cmp(cmp: Callable[[_T, _T], int]) -> Precedes[_T]:
	"""Returns a predicate for an old-style three-way comparison function.

	cmp(a, b) returns a negative number if a is ordered before b, the same
	convention as used by functools.cmp_to_key.
	"""
	if not callable(cmp):
		raise TypeError(f'cmp must be callable, got {cmp!r}')

	def precedes(a: _T, b: _T) -> bool:
		return cmp(a, b) < 0

	return precedes

def by_key(
	key: Optional[Callable[[_T], Any]] = None,
	reverse: bool = False,
) -> Precedes[_T]:
	"""Returns a predicate comparing key(item), like heapq.merge(key=, reverse=).
	"""
	if key is None:
		return descending if reverse else ascending
	if not callable(key):
		raise TypeError(f'key must be callable, got {key!r}')

	if reverse:
		def precedes(a: _T, b: _T) -> bool:
			return key(b) < key(a)
	else:
		def precedes(a: _T, b: _T) -> bool:
			return key(a) < key(b)

	return precedes
