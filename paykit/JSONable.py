# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T", bound="JSONable")


def _snake_to_camel(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(part.capitalize() for part in rest)


def _encode_value(value: Any) -> Any:
    if isinstance(value, JSONable):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, frozenset, set)):
        return [_encode_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode_value(v) for k, v in value.items()}
    return value


class JSONable:
    """
    Mixin for dataclasses that serialize to and from JSON objects with camelCase keys.
    Fields whose value is None are omitted from the output.
    """

    def to_dict(self) -> Dict[str, Any]:
        if not is_dataclass(self):
            raise TypeError(f"{type(self).__name__} must be a dataclass")
        overrides = self._get_field_name_overrides()
        json_dict: Dict[str, Any] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if value is None:
                continue
            key = overrides.get(field.name, _snake_to_camel(field.name))
            json_dict[key] = _encode_value(value)
        return json_dict

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls: Type[T], json_dict: Dict[str, Any]) -> T:
        return cls(**cls._from_dict(json_dict))

    @classmethod
    def from_json(cls: Type[T], json_str: str) -> T:
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def _from_dict(cls, json_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Maps the JSON keys back to constructor keyword arguments. Subclasses with nested
        or non-primitive fields override this and post-process the result.
        """
        overrides = cls._get_field_name_overrides()
        kwargs: Dict[str, Any] = {}
        for field in fields(cls):  # type: ignore[arg-type]
            if not field.init:
                continue
            key = overrides.get(field.name, _snake_to_camel(field.name))
            if key in json_dict:
                kwargs[field.name] = json_dict[key]
        return kwargs

    @classmethod
    def _get_field_name_overrides(cls) -> Dict[str, str]:
        return {}
