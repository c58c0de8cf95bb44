import asyncio
from io import BytesIO
import json
import logging
import orjson
import pytest # type: ignore[import]
import sys
from typing import Any, Dict, Iterable, List

from streammerge import cli
from streammerge.params import Order

def _write_jsonl(path: Any, records: Iterable[Dict[str, Any]]) -> str:
	path.write_bytes(b''.join(orjson.dumps(record) + b'\n' for record in records))
	return str(path)

def _read_jsonl(content: bytes) -> List[Any]:
	return [orjson.loads(line) for line in content.splitlines()]

def test_merge_files(tmp_path: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 1, 'src': 'a'}, {'ts': 3, 'src': 'a'}])
	b = _write_jsonl(tmp_path / 'b.jsonl', [{'ts': 1, 'src': 'b'}, {'ts': 2, 'src': 'b'}])

	out = BytesIO()
	failed = asyncio.run(cli.merge_files([a, b], 'ts', Order.ASCENDING, False, out))
	assert failed == []
	assert _read_jsonl(out.getvalue()) == [
		{'ts': 1, 'src': 'a'},
		{'ts': 1, 'src': 'b'},
		{'ts': 2, 'src': 'b'},
		{'ts': 3, 'src': 'a'},
	]

def test_merge_files_descending_unique(tmp_path: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'m': {'ts': 5}, 'src': 'a'}, {'m': {'ts': 2}, 'src': 'a'}])
	b = _write_jsonl(tmp_path / 'b.jsonl', [{'m': {'ts': 5}, 'src': 'b'}, {'m': {'ts': 4}, 'src': 'b'}])

	out = BytesIO()
	failed = asyncio.run(cli.merge_files([a, b], 'm.ts', Order.DESCENDING, True, out))
	assert failed == []
	assert [(r['m']['ts'], r['src']) for r in _read_jsonl(out.getvalue())] == [
		(5, 'a'),
		(4, 'b'),
		(2, 'a'),
	]

def test_merge_files_skips_broken_files(tmp_path: Any, caplog: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 1}, {'ts': 4}])
	broken = tmp_path / 'broken.jsonl'
	broken.write_bytes(b'{"ts": 2}\n{"ts": \n')
	missing = str(tmp_path / 'missing.jsonl')
	c = _write_jsonl(tmp_path / 'c.jsonl', [{'ts': 3}])

	out = BytesIO()
	with caplog.at_level(logging.ERROR, logger='streammerge.cli'):
		failed = asyncio.run(cli.merge_files([a, str(broken), missing, c], 'ts', Order.ASCENDING, False, out))

	assert sorted(failed) == sorted([str(broken), missing])
	assert [r['ts'] for r in _read_jsonl(out.getvalue())] == [1, 2, 3, 4]
	assert 'Skipping' in caplog.text

def test_main(tmp_path: Any, monkeypatch: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 2}, {'ts': 4}])
	b = _write_jsonl(tmp_path / 'b.jsonl', [{'ts': 1}, {'ts': 3}])
	params = tmp_path / 'params.json'
	params.write_text(json.dumps({'files': [a], 'key': 'ts', 'log_level': 'error'}))
	out = tmp_path / 'out.jsonl'

	monkeypatch.setattr(sys, 'argv', [
		'streammerge', 'merge',
		'--params-file', str(params),
		'-f', b,
		'-o', str(out),
	])
	cli.main()

	assert [r['ts'] for r in _read_jsonl(out.read_bytes())] == [1, 2, 3, 4]

def test_main_exits_on_failed_file(tmp_path: Any, monkeypatch: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 1}])
	out = tmp_path / 'out.jsonl'

	monkeypatch.setattr(sys, 'argv', [
		'streammerge', 'merge',
		'-f', a,
		'-f', str(tmp_path / 'missing.jsonl'),
		'--key', 'ts',
		'-o', str(out),
	])
	with pytest.raises(SystemExit) as exc_info:
		cli.main()

	assert exc_info.value.code == 1
	assert [r['ts'] for r in _read_jsonl(out.read_bytes())] == [1]

def test_main_requires_key(tmp_path: Any, monkeypatch: Any) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 1}])
	monkeypatch.setattr(sys, 'argv', ['streammerge', 'merge', '-f', a, '-o', str(tmp_path / 'out.jsonl')])
	with pytest.raises(Exception, match='key must be specified'):
		cli.main()

@pytest.mark.parametrize('unique_args,unique_param', [
	(['--unique'], False),
	([], True),
])
def test_main_unique(tmp_path: Any, monkeypatch: Any, unique_args: List[str], unique_param: bool) -> None:
	a = _write_jsonl(tmp_path / 'a.jsonl', [{'ts': 1, 'src': 'a'}, {'ts': 2, 'src': 'a'}])
	b = _write_jsonl(tmp_path / 'b.jsonl', [{'ts': 1, 'src': 'b'}, {'ts': 3, 'src': 'b'}])
	params = tmp_path / 'params.json'
	params.write_text(json.dumps({'key': 'ts', 'unique': unique_param}))
	out = tmp_path / 'out.jsonl'

	monkeypatch.setattr(sys, 'argv', [
		'streammerge', 'merge',
		'--params-file', str(params),
		'-f', a,
		'-f', b,
		'-o', str(out),
	] + unique_args)
	cli.main()

	assert [(r['ts'], r['src']) for r in _read_jsonl(out.read_bytes())] == [(1, 'a'), (2, 'a'), (3, 'b')]
