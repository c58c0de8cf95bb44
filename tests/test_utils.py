import asyncio
import pytest # type: ignore[import]
from typing import AsyncIterator

from streammerge import abort_on_error, collect, kmerge_min, to_async_iterator, UpstreamError

async def _failing() -> AsyncIterator[int]:
	yield 2
	raise ValueError('boom')

def test_to_async_iterator() -> None:
	async def agen() -> AsyncIterator[int]:
		yield 1
		yield 2

	assert asyncio.run(collect(to_async_iterator([1, 2]))) == [1, 2]
	assert asyncio.run(collect(to_async_iterator(iter(range(3))))) == [0, 1, 2]
	assert asyncio.run(collect(to_async_iterator(agen()))) == [1, 2]

	with pytest.raises(TypeError):
		to_async_iterator(3) # type: ignore[arg-type]

def test_abort_on_error_repeats_error() -> None:
	async def run() -> None:
		it = abort_on_error(kmerge_min([[1, 3, 5], _failing()]))
		assert await it.__anext__() == 1
		assert await it.__anext__() == 2

		with pytest.raises(UpstreamError) as exc_info:
			await it.__anext__()
		error = exc_info.value
		assert error.source_index == 1
		assert it.error is error

		for _ in range(3):
			with pytest.raises(UpstreamError) as exc_info:
				await it.__anext__()
			assert exc_info.value is error

		await it.aclose()

	asyncio.run(run())

def test_abort_on_error_without_error() -> None:
	async def run() -> None:
		it = abort_on_error(kmerge_min([[1, 3], [2]]))
		assert await collect(it) == [1, 2, 3]
		with pytest.raises(StopAsyncIteration):
			await it.__anext__()
		assert it.error is None

	asyncio.run(run())
