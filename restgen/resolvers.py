# -*- coding: utf-8 -*-
#
# Reusable list resolvers and update merge functions
#
# A resolver is called by the list stages as resolver(ctx, query) with a sqlalchemy select statement.
# It returns the narrowed statement, None to leave it unchanged or a flask Response to end the request.
#
#   animals.list(chain(search(Animal.name), total_count(store), order_by(Animal.id), paginate()))
#
# A merge function is called by the update stage as merge(incoming, destination)
#
from flask import Response
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import load_only
from typing import Any, Callable, Iterable
from .config import get_config
from .errors import ValidationError


def chain(*resolvers: Callable) -> Callable:
    """
    :return: resolver that calls resolvers in order, until one of them responds
    """

    def chained(ctx, query):
        for resolver in resolvers:
            result = resolver(ctx, query)
            if isinstance(result, Response):
                return result
            if result is not None:
                query = result
        return query

    return chained


def _int_arg(ctx, name: str, default: int) -> int:
    value = ctx.args.get(name)
    if value is None or value == "":
        return default
    try:
        result = int(value)
    except ValueError:
        raise ValidationError(f"Invalid {name} '{value}'", {name: "invalid int type"})
    if result < 0:
        raise ValidationError(f"Invalid {name} '{value}'", {name: "min"})
    return result


def paginate(default_limit: int = None) -> Callable:
    """
    Limit the results with the "limit" and "offset" query string arguments
    :param default_limit: limit used when the request has no "limit" argument, DEFAULT_PAGE_LIMIT by default
    """

    def paginator(ctx, query):
        if default_limit is None:
            limit = _int_arg(ctx, "limit", int(get_config("DEFAULT_PAGE_LIMIT")))
        else:
            limit = _int_arg(ctx, "limit", default_limit)
        limit = min(limit, int(get_config("MAX_PAGE_LIMIT")))
        offset = _int_arg(ctx, "offset", 0)
        return query.limit(limit).offset(offset)

    return paginator


def order_by(*columns: Any) -> Callable:
    """
    :param columns: sqlalchemy columns or order expressions, eg. Animal.id.desc()
    """

    def orderer(ctx, query):
        return query.order_by(*columns)

    return orderer


def search(column: Any, arg: str = "search") -> Callable:
    """
    Keep the rows whose column starts with the value of the "search" query string argument
    """

    def searcher(ctx, query):
        value = ctx.args.get(arg)
        if not value:
            return query
        return query.where(column.like(value + "%"))

    return searcher


def fields(*columns: Any) -> Callable:
    """
    Only load and render the given columns, the primary key is always included

    :param columns: model attributes, eg. Animal.name
    """

    def projector(ctx, query):
        # instances already in the session are reloaded with only these columns
        return query.options(load_only(*columns)).execution_options(populate_existing=True)

    return projector


def total_count(store, header: str = None) -> Callable:
    """
    Add the number of results (without pagination) as a response header
    :param store: Store used to count
    :param header: header name, TOTAL_COUNT_HEADER by default
    """

    def counter(ctx, query):
        ctx.set_header(header or get_config("TOTAL_COUNT_HEADER"), store.count(query))
        return query

    return counter


def merge_fields(*names: str) -> Callable:
    """
    :param names: attribute names
    :return: merge function that copies the named attributes of the incoming instance
    """

    def merge(incoming, destination):
        for name in names:
            setattr(destination, name, getattr(incoming, name))

    return merge


def merge_columns(model: Any, exclude: Iterable[str] = ()) -> Callable:
    """
    :param exclude: names of the attributes that are never copied
    :return: merge function that copies the non-null column values (primary keys excluded)
    """
    exclude = set(exclude)
    names = [
        attr.key for attr in sqla_inspect(model).column_attrs if not attr.columns[0].primary_key and attr.key not in exclude
    ]

    def merge(incoming, destination):
        for name in names:
            value = getattr(incoming, name)
            if value is not None:
                setattr(destination, name, value)

    return merge
