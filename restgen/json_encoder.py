# sqlalchemy instances to json encoding

import datetime
import decimal
from uuid import UUID
from flask.json.provider import DefaultJSONProvider
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.exc import NoInspectionAvailable
from typing import Any, Dict


def is_model(obj: Any) -> bool:
    """
    :return: True if obj is a mapped sqlalchemy instance
    """
    try:
        sqla_inspect(obj)
    except NoInspectionAvailable:
        return False
    return hasattr(type(obj), "__mapper__")


def to_dict(instance: Any) -> Dict[str, Any]:
    """
    Create a dictionary with the instance column attributes,
    relationships aren't included (they would trigger lazy loads and may be cyclic).
    Columns left out by the query (f.i. with the `fields` resolver) aren't included either.
    """
    state = sqla_inspect(instance)
    skip = set()
    if state.persistent and not state.expired:
        skip = state.unloaded
    return {attr.key: getattr(instance, attr.key) for attr in state.mapper.column_attrs if attr.key not in skip}


class JSONProvider(DefaultJSONProvider):
    """
    Flask JSON provider that also encodes sqlalchemy model instances
    """

    sort_keys = False

    @staticmethod
    def default(obj: Any) -> Any:
        """
        override the default json encoding
        :param obj: object to be encoded
        :return: encoded/serialized object
        """
        if is_model(obj):
            return to_dict(obj)
        if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
            return obj.isoformat()
        if isinstance(obj, datetime.timedelta):
            return str(obj)
        if isinstance(obj, decimal.Decimal):
            return float(obj)
        if isinstance(obj, UUID):
            return str(obj)
        return DefaultJSONProvider.default(obj)
