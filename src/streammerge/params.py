from enum import auto, Enum
from importlib import resources
import json
import jsonschema
import logging
from typing import Any, AnyStr, Callable, Dict, IO


class Order(Enum):
	ASCENDING = auto()
	DESCENDING = auto()


def parse_order(s: str) -> Order:
	try:
		return Order[s.upper()]
	except KeyError:
		raise ValueError(f'Invalid order {s!r}') from None

def parse_log_level(s: str) -> int:
	level = logging.getLevelName(s.upper())
	if not isinstance(level, int):
		raise ValueError(f'Invalid log level {s!r}')
	return level

# Top-level fields of the merge params which are parsed further after validation
_merge_fields: Dict[str, Callable[[str], Any]] = {
	'order': parse_order,
	'log_level': parse_log_level,
}

# Build the complete import path of the package holding the schemas directory
_schema_package = '.'.join(__name__.split('.')[:-1])

def load_schema(schema_file_name: str, schema_package: str = _schema_package) -> Any:
	schema_file = resources.files(schema_package) / 'schemas' / schema_file_name
	with schema_file.open('rb') as f:
		return json.load(f)

def load_merge_params(params_file: IO[AnyStr]) -> Dict[str, Any]:
	"""Loads and validates the parameters of the merge command, see
	schemas/merge.json.

	order is transformed into an Order, log_level into a logging level.
	"""
	params: Dict[str, Any] = json.load(params_file)
	jsonschema.validate(params, load_schema('merge.json'))

	for name, parse in _merge_fields.items():
		if name in params:
			params[name] = parse(params[name])

	return params
