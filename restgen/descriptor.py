# -*- coding: utf-8 -*-
"""
    descriptor.py: the entity and association descriptors the Generator is built from
"""
from dataclasses import dataclass
from sqlalchemy import inspect as sqla_inspect
from typing import Any, List, Optional, Type
from .binder import schema_from_model
from .errors import NotFoundError


@dataclass(frozen=True)
class Association:
    """
    A parent -> children relationship

    :param parent_name: name of the context variable holding the parent instance
    :param association: name of the relationship attribute on the parent model
    """

    parent_name: str
    association: str


class Entity:
    """
    Describes an exposed model:
    - the model class and the url path parameter holding its id (eg. "animal" for /animals/<animal>)
    - the pydantic schema used to bind request payloads
    """

    def __init__(self, model: Type[Any], param: str, schema: Optional[Type[Any]] = None) -> None:
        self.model = model
        self.param = param
        self.schema = schema if schema is not None else schema_from_model(model)
        self._pk = sqla_inspect(model).primary_key

    def new(self) -> Any:
        """
        :return: a fresh model instance with all attributes unset
        """
        return self.model()

    def new_list(self) -> List[Any]:
        """
        :return: a fresh, empty collection of model instances
        """
        return []

    @property
    def primary_key(self):
        """
        :return: the primary key column
        """
        return self._pk[0]

    def parse_id(self, value: str) -> Any:
        """
        Convert the url path parameter to the type of the primary key column

        :param value: path parameter
        :return: primary key value
        """
        try:
            py_type = self.primary_key.type.python_type
        except NotImplementedError:  # pragma: no cover
            return value
        try:
            # int() also accepts whitespace, signs and underscores: " 1", "+1", "1_0"
            if py_type is int and not (value.isascii() and value.isdigit()):
                raise ValueError(value)
            return py_type(value)
        except (TypeError, ValueError):
            raise NotFoundError(f'Invalid "{self.model.__name__}" ID "{value}"')

    def __repr__(self) -> str:
        return f"<Entity {self.model.__name__} ({self.param})>"
