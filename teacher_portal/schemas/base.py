"""
Shared schema helpers.

Upstream payloads are loose: ids arrive as numbers or strings, lists arrive
as null, and several entities use more than one name for the same field.
"""

from typing import Any, Dict, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, model_validator


def empty_if_none(value: Any) -> Any:
    """BeforeValidator: treat a null list as an empty one."""
    return [] if value is None else value


def first_present(raw: Mapping[str, Any], names: Iterable[str]) -> Any:
    """Return the first value among ``names`` that is neither missing, None nor ''."""
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def canonicalize(raw: Any, aliases: Dict[str, tuple]) -> Any:
    """
    Fold alias field names into their canonical name.
    
    ``aliases`` maps a canonical name to its accepted names in precedence
    order (the canonical name itself usually first). Unknown keys pass
    through untouched.
    """
    if not isinstance(raw, Mapping):
        return raw
    data = dict(raw)
    for canonical, names in aliases.items():
        value = first_present(raw, names)
        for name in names:
            data.pop(name, None)
        if value is not None:
            data[canonical] = value
    return data


class UpstreamModel(BaseModel):
    """Base for models parsed from upstream responses."""

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, raw: Any) -> Any:
        # An explicit null means "not reported"; let the field default apply
        if isinstance(raw, Mapping):
            return {k: v for k, v in raw.items() if v is not None}
        return raw
