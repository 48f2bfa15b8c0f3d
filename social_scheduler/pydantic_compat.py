import logging

import pydantic
from packaging.version import parse
from pydantic import ConfigDict
from pydantic.version import VERSION

logger = logging.getLogger(__name__)

version_parsed = parse(str(VERSION))
PydanticVersion = version_parsed.major

if PydanticVersion < 2:
    raise ImportError(f"social_scheduler requires Pydantic V2, found {VERSION}")

# 2.11 split populate_by_name into validate_by_name / validate_by_alias
PYDANTIC_V2_11_PLUS = (version_parsed.major, version_parsed.minor) >= (2, 11)
logger.debug("Pydantic %s detected", VERSION)


BaseModel: type = pydantic.BaseModel
Field = pydantic.Field


def get_model_fields(cls: type) -> dict:
    return getattr(cls, "model_fields", {})


def get_model_config(**extra) -> ConfigDict:
    """Model config accepting both field names and aliases on input."""
    if PYDANTIC_V2_11_PLUS:
        config = ConfigDict(validate_by_name=True, validate_by_alias=True)
    else:
        config = ConfigDict(populate_by_name=True)
    config.update(extra)
    return config


def model_dump_compat(instance, **kwargs) -> dict:
    return instance.model_dump(**kwargs)


__all__ = [
    "BaseModel",
    "ConfigDict",
    "Field",
    "get_model_config",
    "get_model_fields",
    "model_dump_compat",
    "PydanticVersion",
    "PYDANTIC_V2_11_PLUS",
]
