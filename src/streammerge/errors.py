class StreamMergeError(Exception):
	pass


class UpstreamError(StreamMergeError):
	"""UpstreamError is raised when one of the merged sources fails.

	source_index is the position of the failing source in the list of sources
	the merge was constructed from. The original exception is available as
	error and is chained as __cause__.

	The failing source is not pulled again, all other sources keep
	participating in the merge.
	"""

	def __init__(self, source_index: int, error: BaseException) -> None:
		super(UpstreamError, self).__init__(source_index, error)
		self.source_index: int = source_index
		self.error: BaseException = error

	def __str__(self) -> str:
		return f'source {self.source_index} failed: {self.error!r}'
