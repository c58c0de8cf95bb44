import argparse
import asyncio
import logging
import operator
import sys
from typing import Any, BinaryIO, Dict, List, Sequence

from .coalesce import coalesce, Split
from .comparators import by_key
from .errors import UpstreamError
from .kmerge import KMerge
from .params import load_merge_params, Order, parse_log_level
from .records import key_getter, KeyedRecord, read_records_path, write_record
from .utils import Source

L = logging.getLogger(__name__)

def _drop_equal_keys(previous: KeyedRecord, current: KeyedRecord) -> Any:
	if previous[0] == current[0]:
		return previous
	return Split(previous, current)

async def merge_files(
	file_paths: Sequence[str],
	key: str,
	order: Order,
	unique: bool,
	out: BinaryIO,
) -> List[str]:
	"""Merges JSON Lines files sorted by key into out.

	Files which cannot be read are skipped, the remaining files are still
	merged. Returns the paths of the skipped files.
	"""
	get_key = key_getter(key)
	sources: List[Source[KeyedRecord]] = [read_records_path(path, get_key) for path in file_paths]
	precedes = by_key(operator.itemgetter(0), reverse=order is Order.DESCENDING)

	failed: List[str] = []
	async with KMerge(sources, precedes) as merged:
		it = coalesce(merged, _drop_equal_keys) if unique else merged

		while True:
			try:
				_, record = await it.__anext__()
			except StopAsyncIteration:
				break
			except UpstreamError as e:
				path = file_paths[e.source_index]
				L.error('Skipping %s: %s', path, e.error)
				failed.append(path)
				continue

			write_record(out, record)

	return failed

def merge(args: Any) -> None:
	params: Dict[str, Any] = {}
	if args.params_file is not None:
		with args.params_file as params_file:
			params = load_merge_params(params_file)

	file_paths = list(params.get('files', [])) + (args.file_paths or [])
	key = args.key if args.key is not None else params.get('key')
	order = args.order if args.order is not None else params.get('order', Order.ASCENDING)
	unique = args.unique or params.get('unique', False)
	log_level = args.log_level if args.log_level is not None else params.get('log_level', logging.WARNING)

	logging.basicConfig(
		level = log_level,
		format = '%(asctime)s %(levelname)s %(name)s: %(message)s',
	)

	if key is None:
		raise Exception('a key must be specified, either by --key or in the params file')
	if len(file_paths) == 0:
		L.warning('No input files given, output is empty')

	out = args.output if args.output is not None else sys.stdout.buffer
	try:
		failed = asyncio.run(merge_files(file_paths, key, order, unique, out))
	finally:
		if args.output is not None:
			args.output.close()
		else:
			out.flush()

	if len(failed) > 0:
		sys.exit(1)

parser = argparse.ArgumentParser(description='Merge sorted streams.')
subparsers = parser.add_subparsers(dest='command', required=True)

parser_merge = subparsers.add_parser('merge', help='Merge JSON Lines files, each sorted by the same key, into one sorted JSON Lines output.')
parser_merge.add_argument('-f', '--file', action='append', type=str, dest='file_paths', help='input file, may be given multiple times. Ties are broken by the order of the files.')
parser_merge.add_argument('-k', '--key', type=str, help='dot-separated path of the field records are sorted by, e.g. "meta.ts".')
parser_merge.add_argument('--ascending', action='store_const', const=Order.ASCENDING, dest='order', help='inputs are sorted by ascending key (default).')
parser_merge.add_argument('--descending', action='store_const', const=Order.DESCENDING, dest='order', help='inputs are sorted by descending key.')
parser_merge.add_argument('--unique', action='store_true', help='only emit the first record of each run of records with equal keys.')
parser_merge.add_argument('--params-file', type=argparse.FileType('r'), help='JSON file containing parameters, command line arguments take precedence.')
parser_merge.add_argument('-o', '--output', type=argparse.FileType('wb'), help='output file, defaults to stdout.')
parser_merge.add_argument('--log-level', type=parse_log_level, help='logging level, e.g. "info" or "debug".')

def main() -> None:
	args = parser.parse_args(sys.argv[1:])

	if args.command == 'merge':
		merge(args)
	else:
		raise NotImplementedError(f'No command {args.command!r}, see --help for usage info.')

if __name__ == '__main__':
	main()
