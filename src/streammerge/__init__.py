"""K-way merge of ordered async iterators.
"""

from .coalesce import Coalesce, coalesce, Split
from .comparators import ascending, by_key, descending, from_cmp, Precedes
from .errors import StreamMergeError, UpstreamError
from .kmerge import KMerge, kmerge, kmerge_by, kmerge_by_cmp, kmerge_max, kmerge_min, Pulled, PullKind
from .slot import SourceSlot
from .utils import abort_on_error, AbortOnError, collect, Source, to_async_iterator

__all__ = [
	'abort_on_error',
	'AbortOnError',
	'ascending',
	'by_key',
	'coalesce',
	'Coalesce',
	'collect',
	'descending',
	'from_cmp',
	'KMerge',
	'kmerge',
	'kmerge_by',
	'kmerge_by_cmp',
	'kmerge_max',
	'kmerge_min',
	'Precedes',
	'Pulled',
	'PullKind',
	'Source',
	'SourceSlot',
	'Split',
	'StreamMergeError',
	'to_async_iterator',
	'UpstreamError',
]
