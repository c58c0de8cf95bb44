import asyncio
import logging
from typing import Any, AsyncIterator, Generic, Optional, Tuple, TypeVar

from .errors import UpstreamError

L = logging.getLogger(__name__)

_T = TypeVar('_T')


class _End(object):
	pass

_END = _End()

async def _pull(source: AsyncIterator[_T]) -> Any:
	try:
		return await source.__anext__()
	except StopAsyncIteration:
		return _END


class SourceSlot(Generic[_T]):
	"""SourceSlot owns one upstream async iterator and at most one item peeked
	from it.

	The slot is exhausted once the upstream has signalled its end or failed.
	An exhausted slot never becomes un-exhausted and its upstream is never
	pulled again, i.e. the upstream is trusted to have fused completion.

	Pulls can be performed in two ways. ensure_peeked() awaits the pull
	directly. start_pull() and settle() split the pull into scheduling a task
	on the running event loop and folding its result into the slot, which
	allows a consumer to wait for several slots at once. There is at most one
	outstanding pull per slot.
	"""

	def __init__(self, index: int, source: AsyncIterator[_T]) -> None:
		self._index: int = index
		self._source: Optional[AsyncIterator[_T]] = source
		# Boxed, so that None is a valid item.
		self._peeked: Optional[Tuple[_T]] = None
		self._exhausted: bool = False
		self._pull: Optional['asyncio.Task[Any]'] = None

	@property
	def index(self) -> int:
		return self._index

	@property
	def pending(self) -> Optional['asyncio.Task[Any]']:
		"""The outstanding pull, if any.
		"""
		return self._pull

	def has_peeked(self) -> bool:
		return self._peeked is not None

	def is_exhausted(self) -> bool:
		return self._exhausted

	def needs_pull(self) -> bool:
		return not self._exhausted and self._peeked is None

	def peek(self) -> _T:
		if self._peeked is None:
			raise RuntimeError(f'slot {self._index} has no peeked item')
		return self._peeked[0]

	def take(self) -> _T:
		"""Returns the peeked item and clears the slot for the next pull.
		"""
		el = self.peek()
		self._peeked = None
		return el

	async def ensure_peeked(self) -> None:
		"""Pulls the next item from the upstream unless the slot already holds
		one or is exhausted.

		Raises UpstreamError if the upstream fails, the slot is exhausted
		afterwards.
		"""
		if not self.needs_pull():
			return

		pull = self.start_pull()
		await asyncio.wait((pull,))
		self.settle()

	def start_pull(self) -> 'asyncio.Task[Any]':
		"""Schedules a pull from the upstream, or returns the outstanding one.

		Must be called with a running event loop.
		"""
		if self._source is None:
			raise RuntimeError(f'slot {self._index} is closed')
		if not self.needs_pull():
			raise RuntimeError(f'slot {self._index} does not need a pull')

		if self._pull is None:
			self._pull = asyncio.ensure_future(_pull(self._source))
		return self._pull

	def settle(self) -> None:
		"""Folds the result of a finished pull into the slot.

		Does nothing if there is no pull or the pull is still running. Raises
		UpstreamError if the pull failed.
		"""
		pull = self._pull
		if pull is None or not pull.done():
			return
		self._pull = None

		try:
			el = pull.result()
		except Exception as e:
			self._exhaust()
			L.debug('Source %d failed: %r', self._index, e)
			raise UpstreamError(self._index, e) from e

		if el is _END:
			self._exhaust()
			L.debug('Source %d is exhausted', self._index)
		else:
			self._peeked = (el,)

	def _exhaust(self) -> None:
		self._exhausted = True
		self._peeked = None

	async def aclose(self) -> None:
		"""Cancels the outstanding pull, discards the peeked item and closes
		the upstream.

		The slot is exhausted afterwards. Calling aclose() again does nothing.
		"""
		self._exhaust()

		pull, self._pull = self._pull, None
		if pull is not None:
			pull.cancel()
			await asyncio.wait((pull,))
			if not pull.cancelled():
				# Mark as retrieved, the result is discarded anyway.
				pull.exception()

		source, self._source = self._source, None
		if source is None:
			return

		aclose = getattr(source, 'aclose', None)
		if aclose is not None:
			await aclose()
