from setuptools import setup, find_packages

with open('README.md') as file:
	long_description = file.read()

setup(
	name="streammerge",
	version="0.1.dev0",
	description="K-way merge of ordered async iterators",
	author = "Paul Skopnik",
	author_email = "paul@skopnik.me",
	long_description = long_description,
	long_description_content_type = 'text/markdown',
	package_data = {'streammerge': ['py.typed', 'schemas/*.json']},
	packages = find_packages('src'),
	package_dir = {'': 'src'},
	zip_safe = False,
	python_requires = '>=3.9',
	install_requires = [
		'jsonschema >= 3.2.0',
		'orjson >= 3.0.0',
		'typing-extensions',
	],
	extras_require = {
		'test': ['pytest'],
	},
	entry_points = {
		'console_scripts': ['streammerge=streammerge.cli:main'],
	},
)
