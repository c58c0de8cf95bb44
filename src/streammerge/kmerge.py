import asyncio
import collections
from enum import auto, Enum
import heapq
import logging
from typing import Any, Callable, Deque, Dict, Generic, Iterable, List, NamedTuple, Optional, TypeVar

from .comparators import ascending, by_key, descending, from_cmp, Precedes
from .errors import UpstreamError
from .slot import SourceSlot
from .utils import Source, to_async_iterator

L = logging.getLogger(__name__)

_T = TypeVar('_T')


class _HeapEntry(Generic[_T]):
	__slots__ = ['slot', 'el', 'precedes']

	def __init__(self, slot: SourceSlot[_T], precedes: Precedes[_T]) -> None:
		self.slot: SourceSlot[_T] = slot
		self.el: _T = slot.peek()
		self.precedes: Precedes[_T] = precedes

	def __lt__(self, other: '_HeapEntry[_T]') -> bool:
		first = self.precedes(self.el, other.el)
		if first != self.precedes(other.el, self.el):
			return first
		# Tie, the leftmost source wins.
		return self.slot.index < other.slot.index


class PullKind(Enum):
	ITEM = auto()
	END = auto()
	ERROR = auto()


class Pulled(NamedTuple):
	kind: PullKind
	item: Any = None
	error: Optional[UpstreamError] = None


class KMerge(Generic[_T]):
	"""KMerge lazily merges k ordered sources into a single ordered async
	iterator.

	The precedes predicate decides which of the items currently available
	from the sources is emitted next: precedes(a, b) is True if a comes first.
	Items which tie, i.e. neither precedes the other, are emitted in the order
	of their sources. Within a source, items keep their order. If every source
	is ordered according to precedes, the merged sequence is ordered as well.

	Each source is held by a SourceSlot, which buffers at most one item. Before
	an item is emitted, every source which is neither exhausted nor holding an
	item is pulled. The pulls run as tasks on the running event loop and are
	awaited together, so a slow source does not hold up pulls from the others.
	The peeked items are kept in a binary heap, selecting the next item takes
	O(log k) comparisons.

	If a source fails, the error is raised as UpstreamError by the next call
	as soon as it is observed. The failing source is dropped, the merge
	continues with the remaining sources on the following calls, no peeked
	item is lost. Use utils.abort_on_error() to stop on the first error
	instead.

	Once all sources are exhausted, every call raises StopAsyncIteration and
	all sources have been closed. aclose() closes the sources early, this
	cancels outstanding pulls and discards peeked items.
	"""

	def __init__(self, sources: Iterable[Source[_T]], precedes: Precedes[_T]) -> None:
		if not callable(precedes):
			raise TypeError(f'precedes must be callable, got {precedes!r}')

		self._precedes: Precedes[_T] = precedes
		self._slots: List[SourceSlot[_T]] = [
			SourceSlot(ind, to_async_iterator(source)) for ind, source in enumerate(sources)
		]
		self._heap: List[_HeapEntry[_T]] = []
		self._errors: Deque[UpstreamError] = collections.deque()
		self._terminated: bool = len(self._slots) == 0

	def __len__(self) -> int:
		"""Number of sources which are not yet exhausted.
		"""
		return sum(1 for slot in self._slots if not slot.is_exhausted())

	@property
	def terminated(self) -> bool:
		return self._terminated

	@property
	def buffered(self) -> int:
		"""Number of items currently peeked from sources but not yet emitted.
		"""
		return sum(1 for slot in self._slots if slot.has_peeked())

	def __aiter__(self) -> 'KMerge[_T]':
		return self

	async def __anext__(self) -> _T:
		if self._terminated:
			raise StopAsyncIteration
		if self._errors:
			raise self._errors.popleft()

		await self._fill()

		if not self._heap:
			L.debug('All %d sources are exhausted', len(self._slots))
			await self.aclose()
			raise StopAsyncIteration

		try:
			entry = heapq.heappop(self._heap)
		except Exception:
			# The predicate raised while the heap was being reordered.
			self._rebuild_heap()
			raise
		return entry.slot.take()

	async def pull_next(self) -> Pulled:
		"""Like __anext__() but reports the end and upstream errors as Pulled
		values instead of raising.
		"""
		try:
			el = await self.__anext__()
		except StopAsyncIteration:
			return Pulled(PullKind.END)
		except UpstreamError as e:
			return Pulled(PullKind.ERROR, error=e)
		return Pulled(PullKind.ITEM, el)

	async def _fill(self) -> None:
		# Invariant: a slot has an entry in the heap iff it has a peeked item.
		pending: Dict['asyncio.Task[Any]', SourceSlot[_T]] = {
			slot.start_pull(): slot for slot in self._slots if slot.needs_pull()
		}

		while pending:
			done, _ = await asyncio.wait(pending.keys(), return_when=asyncio.FIRST_COMPLETED)

			for slot in sorted((pending.pop(pull) for pull in done), key=lambda slot: slot.index):
				try:
					slot.settle()
				except UpstreamError as e:
					L.warning('Dropping source %d from merge: %r', e.source_index, e.error)
					self._errors.append(e)
					continue

				if slot.has_peeked():
					try:
						heapq.heappush(self._heap, _HeapEntry(slot, self._precedes))
					except Exception:
						self._rebuild_heap()
						raise

			# Remaining pulls stay with their slots and are picked up again by
			# the next call.
			if self._errors:
				raise self._errors.popleft()

	def _rebuild_heap(self) -> None:
		"""Restores the heap from the slots holding a peeked item.

		An exception raised by the predicate leaves the heap in an arbitrary
		state, possibly without the entry being popped.
		"""
		self._heap = [_HeapEntry(slot, self._precedes) for slot in self._slots if slot.has_peeked()]
		heapq.heapify(self._heap)

	async def aclose(self) -> None:
		"""Closes all sources. Further calls raise StopAsyncIteration.
		"""
		self._terminated = True
		self._heap.clear()
		self._errors.clear()

		first_error: Optional[BaseException] = None
		for slot in self._slots:
			try:
				await slot.aclose()
			except Exception as e:
				if first_error is None:
					first_error = e
		if first_error is not None:
			raise first_error

	async def __aenter__(self) -> 'KMerge[_T]':
		return self

	async def __aexit__(self, *exc_info: Any) -> None:
		await self.aclose()

def kmerge_by(sources: Iterable[Source[_T]], precedes: Precedes[_T]) -> KMerge[_T]:
	"""Merges sources, emitting a before b if precedes(a, b) is True.
	"""
	return KMerge(sources, precedes)

def kmerge_by_cmp(sources: Iterable[Source[_T]], cmp: Callable[[_T, _T], int]) -> KMerge[_T]:
	"""Merges sources using a three-way comparison function, see from_cmp().
	"""
	return KMerge(sources, from_cmp(cmp))

def kmerge_min(sources: Iterable[Source[Any]]) -> KMerge[Any]:
	"""Merges sources choosing the minimum available item first.
	"""
	return KMerge(sources, ascending)

def kmerge_max(sources: Iterable[Source[Any]]) -> KMerge[Any]:
	"""Merges sources choosing the maximum available item first.
	"""
	return KMerge(sources, descending)

def kmerge(
	*sources: Source[_T],
	key: Optional[Callable[[_T], Any]] = None,
	reverse: bool = False,
) -> KMerge[_T]:
	"""Async counterpart of heapq.merge().
	"""
	return KMerge(sources, by_key(key, reverse))
