# -*- coding: utf-8 -*-
"""
Bind request payloads to model instances.

The payload is validated by a pydantic schema, by default created from the model columns
(cfr. schema_from_model). Validation errors are reported as a {field: tag} dictionary:

- semantic validation failures use the pydantic error type as tag, "required" for missing fields
- type mismatches are reported as "invalid <type> type"
- malformed payloads (invalid json, no json object) are reported as {"error": <message>}
"""
from typing import Any, Dict, Optional, Tuple, Type, cast

from pydantic import BaseModel, ConfigDict, create_model
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect as sqla_inspect

import restgen

# pydantic error types raised when a json value doesn't match the field type
TYPE_ERRORS = ("int_from_float",)
TYPE_ERROR_SUFFIXES = ("_type", "_parsing")


class PayloadModel(BaseModel):
    """
    Base class for the generated payload schemas:
    json values must have the column type, unknown keys are ignored
    """

    model_config = ConfigDict(strict=True, extra="ignore")


def _safe_python_type(column: Any) -> Any:
    try:
        return column.type.python_type
    except NotImplementedError:
        return Any


def writable_columns(model: Type[Any]) -> Dict[str, Any]:
    """
    :param model: sqlalchemy model class
    :return: attribute name -> column for the columns that may be set by a client (no primary keys)
    """
    result = {}
    for attr in sqla_inspect(model).column_attrs:
        column = attr.columns[0]
        if column.primary_key:
            continue
        result[attr.key] = column
    return result


def schema_from_model(model: Type[Any], name: Optional[str] = None) -> Type[BaseModel]:
    """
    Create a pydantic schema from the model columns, all fields are optional

    :param model: sqlalchemy model class
    :param name: schema name, defaults to <Model>Payload
    :return: pydantic model class
    """
    fields: Dict[str, Tuple[Any, Any]] = {}
    for attr_name, column in writable_columns(model).items():
        fields[attr_name] = (Optional[_safe_python_type(column)], None)
    schema_name = name or f"{model.__name__}Payload"
    return cast(Type[BaseModel], create_model(schema_name, __base__=PayloadModel, **cast(Any, fields)))


def _error_tag(error: Dict[str, Any]) -> str:
    err_type = error["type"]
    if err_type == "missing":
        return "required"
    if err_type in TYPE_ERRORS or err_type.endswith(TYPE_ERROR_SUFFIXES):
        return f"invalid {err_type.split('_')[0]} type"
    return err_type


def format_errors(exc: PydanticValidationError) -> Dict[str, str]:
    """
    Convert pydantic validation errors to a {field: tag} dictionary

    :param exc: pydantic ValidationError
    :return: errors dictionary
    """
    errors = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        if not loc:
            # the payload itself is invalid: not json or not a json object
            errors["error"] = error.get("msg", "invalid payload")
            continue
        field = ".".join(str(part) for part in loc)
        errors[field] = _error_tag(error)
    return errors


def bind_and_validate(body: bytes, instance: Any, schema: Type[BaseModel]) -> Optional[Dict[str, str]]:
    """
    Deserialize and validate the request body, then set the validated values on instance.
    Nothing is set when validation fails.

    :param body: raw request body
    :param instance: model instance to bind to
    :param schema: pydantic schema
    :return: None if the payload is valid, the {field: tag} errors otherwise
    """
    try:
        data = schema.model_validate_json(body or b"")
    except PydanticValidationError as exc:
        return format_errors(exc)

    columns = writable_columns(type(instance))
    for attr_name, attr_val in data.model_dump(exclude_unset=True).items():
        if attr_name not in columns:
            restgen.log.debug("Ignoring payload attribute %s for %s", attr_name, type(instance).__name__)
            continue
        setattr(instance, attr_name, attr_val)
    return None
