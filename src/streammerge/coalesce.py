from typing import Any, AsyncIterator, Callable, Generic, NamedTuple, Optional, Tuple, TypeVar, Union

from .utils import Source, to_async_iterator

_T = TypeVar('_T')


class Split(NamedTuple):
	"""Returned by a coalesce function to refuse combining two items.
	"""
	previous: Any
	current: Any

CoalesceFunc = Callable[[_T, _T], Union[_T, Split]]


class Coalesce(Generic[_T]):
	"""Coalesce combines runs of consecutive items of a source.

	f(previous, current) is called for each pair of consecutive items and
	returns either the combined item, which then takes the place of previous,
	or Split(previous, current). On a split, previous is emitted and current
	is kept as the item to combine with the next one. The last kept item is
	emitted once the source ends.

	Example, summing up runs of items with the same sign:

		def same_sign(x, y):
			return x + y if (x >= 0) == (y >= 0) else Split(x, y)

		coalesce([-1, -2, -3, 3, 1, 0, -1], same_sign) -> -6, 4, -1
	"""

	def __init__(self, source: Source[_T], f: CoalesceFunc[_T]) -> None:
		if not callable(f):
			raise TypeError(f'f must be callable, got {f!r}')

		self._source: AsyncIterator[_T] = to_async_iterator(source)
		self._f: CoalesceFunc[_T] = f
		self._prev: Optional[Tuple[_T]] = None
		self._finished: bool = False

	def __aiter__(self) -> 'Coalesce[_T]':
		return self

	async def __anext__(self) -> _T:
		if self._finished:
			raise StopAsyncIteration

		while True:
			try:
				current = await self._source.__anext__()
			except StopAsyncIteration:
				self._finished = True
				if self._prev is None:
					raise
				prev, self._prev = self._prev, None
				return prev[0]

			if self._prev is None:
				self._prev = (current,)
				continue

			res = self._f(self._prev[0], current)
			if isinstance(res, Split):
				self._prev = (res.current,)
				return res.previous
			self._prev = (res,)

	async def aclose(self) -> None:
		self._finished = True
		self._prev = None
		aclose = getattr(self._source, 'aclose', None)
		if aclose is not None:
			await aclose()

def coalesce(source: Source[_T], f: CoalesceFunc[_T]) -> Coalesce[_T]:
	return Coalesce(source, f)
