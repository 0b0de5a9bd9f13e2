"""
Value encoding for stored cache entries

Integers are written as bare decimal text so INCRBY/DECRBY keep working on
them server side. Values made only of JSON types (str keyed dicts, lists,
str, int, float, bool, None) go through JSON. Anything JSON would change on
the way back, such as tuples, sets or non-str dict keys, is pickled.

A raw digit-only string written by another client reads back as an int;
the format has no way to tell the two apart.
"""
import json
import pickle
import re
from typing import Any, Union

_INTEGER = re.compile(rb"-?[0-9]+")
_JSON_SCALARS = (str, int, float, bool, type(None))


def _is_json_exact(value: Any) -> bool:
    """True when JSON gives back an equal value of the same types"""
    kind = type(value)
    if kind in _JSON_SCALARS:
        return True
    if kind is list:
        return all(_is_json_exact(item) for item in value)
    if kind is dict:
        return all(type(k) is str and _is_json_exact(v) for k, v in value.items())
    return False


def encode(value: Any) -> bytes:
    """Encode a value for storage"""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value).encode("ascii")
    if _is_json_exact(value):
        return json.dumps(value).encode("utf-8")
    return pickle.dumps(value)


def decode(data: Union[bytes, str]) -> Any:
    """Decode a stored value back into a Python object

    Raises ValueError when the data is in neither format.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    if _INTEGER.fullmatch(data):
        return int(data)
    try:
        return json.loads(data.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        pass
    try:
        return pickle.loads(data)
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError) as e:
        raise ValueError(f"Undecodable cache value: {e}") from e
