"""Unified YAML/JSON loader for BounceBack run configuration.

Usage:
    from bounceback.yaml import load, loads, dump, dumps

    # Load from file (auto-detects format from extension)
    data = load(Path('session.yaml'))
    data = load(Path('session.json'))

    # Load from string (specify format)
    data = loads(content, format='yaml')

    # Dump to file or string
    dump(data, Path('session.yaml'))
    json_str = dumps(data, format='json')

Files without a .json extension are treated as YAML.
"""

from pathlib import Path
from typing import Any, IO, Optional, Union
import json

import yaml as _yaml

FORMATS = ('yaml', 'json')


def _detect_format(path: Union[str, Path]) -> str:
    """Detect file format from extension."""
    suffix = Path(path).suffix.lower()
    if suffix == '.json':
        return 'json'
    return 'yaml'


def _check_format(format: str) -> str:
    if format not in FORMATS:
        raise ValueError(f"Unknown format {format!r}, expected one of {FORMATS}")
    return format


def load(
    source: Union[str, Path, IO[str]],
    format: Optional[str] = None,
) -> Any:
    """Load data from a file path or file-like object.

    Args:
        source: File path (str or Path) or file-like object
        format: 'yaml', 'json', or None to auto-detect from extension

    Returns:
        Parsed data (usually dict)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON parsing fails
        yaml.YAMLError: If YAML parsing fails
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if format is None:
            format = _detect_format(path)

        with open(path, 'r', encoding='utf-8') as f:
            return _load_from_file(f, _check_format(format))

    if format is None:
        name = getattr(source, 'name', None)
        format = _detect_format(name) if isinstance(name, str) else 'yaml'

    return _load_from_file(source, _check_format(format))


def _load_from_file(f: IO[str], format: str) -> Any:
    """Load from an open file object."""
    if format == 'yaml':
        return _yaml.safe_load(f)
    return json.load(f)


def loads(content: str, format: str = 'yaml') -> Any:
    """Load data from a string.

    Args:
        content: String content to parse
        format: 'yaml' or 'json'
    """
    if _check_format(format) == 'yaml':
        return _yaml.safe_load(content)
    return json.loads(content)


def dump(
    data: Any,
    dest: Union[str, Path, IO[str]],
    format: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Dump data to a file path or file-like object.

    Args:
        data: Data to serialize
        dest: File path (str or Path) or file-like object
        format: 'yaml', 'json', or None to auto-detect from extension
        **kwargs: Additional arguments passed to yaml.safe_dump or json.dump
    """
    if isinstance(dest, (str, Path)):
        path = Path(dest)
        if format is None:
            format = _detect_format(path)

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            _dump_to_file(data, f, _check_format(format), **kwargs)
        return

    if format is None:
        name = getattr(dest, 'name', None)
        format = _detect_format(name) if isinstance(name, str) else 'yaml'

    _dump_to_file(data, dest, _check_format(format), **kwargs)


def _dump_to_file(data: Any, f: IO[str], format: str, **kwargs: Any) -> None:
    """Dump to an open file object."""
    if format == 'yaml':
        # Default to readable YAML output
        kwargs.setdefault('default_flow_style', False)
        kwargs.setdefault('sort_keys', False)
        _yaml.safe_dump(data, f, **kwargs)
    else:
        kwargs.setdefault('indent', 2)
        json.dump(data, f, **kwargs)


def dumps(data: Any, format: str = 'yaml', **kwargs: Any) -> str:
    """Dump data to a string.

    Args:
        data: Data to serialize
        format: 'yaml' or 'json'
        **kwargs: Additional arguments passed to yaml.safe_dump or json.dumps

    Returns:
        Serialized string
    """
    if _check_format(format) == 'yaml':
        kwargs.setdefault('default_flow_style', False)
        kwargs.setdefault('sort_keys', False)
        return _yaml.safe_dump(data, **kwargs)
    kwargs.setdefault('indent', 2)
    return json.dumps(data, **kwargs)
