import collections.abc
from typing import AsyncIterable, AsyncIterator, Generic, Iterable, List, Optional, TypeVar, Union

from .errors import UpstreamError

_T = TypeVar('_T')

Source = Union[AsyncIterable[_T], Iterable[_T]]

def to_async_iterator(source: Source[_T]) -> AsyncIterator[_T]:
	"""Returns an async iterator over source, which may be sync or async.

	Plain iterables are consumed synchronously from within the event loop,
	they must not block.
	"""
	if isinstance(source, collections.abc.AsyncIterable):
		return source.__aiter__()
	elif isinstance(source, collections.abc.Iterable):
		return _iterate(source)
	else:
		raise TypeError(f'{type(source).__name__!r} object is neither iterable nor async iterable')

async def _iterate(iterable: Iterable[_T]) -> AsyncIterator[_T]:
	for el in iterable:
		yield el

async def collect(source: Source[_T]) -> List[_T]:
	"""Drains source and returns its items as a list.
	"""
	it = to_async_iterator(source)
	return [el async for el in it]


class AbortOnError(Generic[_T]):
	"""AbortOnError turns the first UpstreamError of source into a fused end.

	Once the error has been raised, every further call raises the same error
	instance again, instead of continuing with the remaining sources. The end
	of source is fused, too.
	"""

	def __init__(self, source: Source[_T]) -> None:
		self._source: AsyncIterator[_T] = to_async_iterator(source)
		self._error: Optional[UpstreamError] = None
		self._finished: bool = False

	@property
	def error(self) -> Optional[UpstreamError]:
		return self._error

	def __aiter__(self) -> 'AbortOnError[_T]':
		return self

	async def __anext__(self) -> _T:
		if self._error is not None:
			raise self._error
		if self._finished:
			raise StopAsyncIteration

		try:
			return await self._source.__anext__()
		except StopAsyncIteration:
			self._finished = True
			raise
		except UpstreamError as e:
			self._error = e
			raise

	async def aclose(self) -> None:
		self._finished = True
		aclose = getattr(self._source, 'aclose', None)
		if aclose is not None:
			await aclose()

def abort_on_error(source: Source[_T]) -> AbortOnError[_T]:
	return AbortOnError(source)
