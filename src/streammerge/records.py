import orjson
from os import PathLike
from typing import Any, AsyncIterator, BinaryIO, Callable, Sequence, Tuple, TYPE_CHECKING, Union

if TYPE_CHECKING:
	_AnyPathLike = PathLike[Any]
else:
	_AnyPathLike = PathLike

_PathType = Union[str, bytes, _AnyPathLike]

KeyedRecord = Tuple[Any, Any] # (key, record)


class InvalidRecord(ValueError):
	pass


def key_getter(path: str) -> Callable[[Any], Any]:
	"""Returns a function looking up the dot-separated path in a record.

	"a.b" looks up record["a"]["b"]. A missing field raises KeyError.
	"""
	if len(path) == 0:
		raise ValueError('key path must not be empty')

	parts: Sequence[str] = path.split('.')

	def get(record: Any) -> Any:
		el = record
		for part in parts:
			el = el[part]
		return el

	return get

async def read_records(file: BinaryIO, key: Callable[[Any], Any]) -> AsyncIterator[KeyedRecord]:
	"""Reads JSON Lines records from file, yielding (key(record), record).

	Blank lines are skipped. Raises InvalidRecord for lines which are not
	valid JSON or records lacking the key.
	"""
	for line_no, line in enumerate(file, 1):
		if len(line.strip()) == 0:
			continue

		try:
			record = orjson.loads(line)
		except orjson.JSONDecodeError as e:
			raise InvalidRecord(f'line {line_no}: {e}') from e

		try:
			record_key = key(record)
		except (KeyError, IndexError, TypeError) as e:
			raise InvalidRecord(f'line {line_no}: no key {e}') from e

		yield record_key, record

async def read_records_path(path: _PathType, key: Callable[[Any], Any]) -> AsyncIterator[KeyedRecord]:
	with open(path, mode='rb') as file:
		async for keyed_record in read_records(file, key):
			yield keyed_record

def write_record(file: BinaryIO, record: Any) -> None:
	file.write(orjson.dumps(record))
	file.write(b'\n')
