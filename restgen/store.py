# -*- coding: utf-8 -*-
"""
    store.py: the persistence operations used by the generated stages

    Store wraps a Flask-SQLAlchemy db object. Every database error
    rolls back the session and is raised as a PersistenceError.
"""
# pylint: disable=logging-format-interpolation,protected-access
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import with_parent
from typing import Any, Iterable, List, Optional

import restgen
from .errors import NotFoundError, PersistenceError

# set while Store.transaction is active, the commit is postponed until the transaction ends
_IN_TRANSACTION: ContextVar[bool] = ContextVar("restgen_in_transaction", default=False)


def persistence_method(fun):
    """Decorator for the Store methods:
    convert sqlalchemy and database driver exceptions (f.i. an OverflowError for an
    integer that doesn't fit the column) to PersistenceError and rollback the session
    """

    @wraps(fun)
    def method_wrapper(self, *args, **kwargs):
        try:
            return fun(self, *args, **kwargs)
        except (SQLAlchemyError, ArithmeticError, ValueError, TypeError) as exc:
            restgen.log.exception(exc)
            self.session.rollback()
            raise PersistenceError(f"{fun.__name__}: {exc}")

    return method_wrapper


class Store:
    """
    Persistence capabilities used by the Generator
    """

    def __init__(self, db) -> None:
        """
        :param db: flask_sqlalchemy.SQLAlchemy instance
        """
        self.db = db

    @property
    def session(self):
        return self.db.session

    def _commit(self) -> None:
        if not _IN_TRANSACTION.get():
            self.session.commit()

    @contextmanager
    def transaction(self):
        """
        Group several Store operations in a single commit,
        the session is rolled back when an exception is raised

        with store.transaction():
            store.create(instance)
            store.association_append(parent, "animals", instance)
        """
        if _IN_TRANSACTION.get():
            # nested: the outer transaction commits
            yield self
            return
        token = _IN_TRANSACTION.set(True)
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            _IN_TRANSACTION.reset(token)

    def rollback(self) -> None:
        """
        Discard the pending changes of the session
        """
        self.session.rollback()

    @persistence_method
    def create(self, instance: Any) -> Any:
        self.session.add(instance)
        self.session.flush()
        self._commit()
        return instance

    @persistence_method
    def batch_insert(self, instances: Iterable[Any], batch_size: int = 100) -> int:
        """
        :param instances: instances to insert
        :param batch_size: number of instances flushed at once
        :return: number of inserted instances
        """
        count = 0
        batch = []
        for instance in instances:
            batch.append(instance)
            if len(batch) >= batch_size:
                self.session.add_all(batch)
                self.session.flush()
                count += len(batch)
                batch = []
        if batch:
            self.session.add_all(batch)
            self.session.flush()
            count += len(batch)
        self._commit()
        restgen.log.info("Inserted {} instances".format(count))
        return count

    @persistence_method
    def fetch_one(self, model: Any, ident: Any) -> Any:
        """
        :param model: model class
        :param ident: primary key value
        :return: the instance
        :raises NotFoundError: when no instance has this primary key
        """
        instance = self.session.get(model, ident)
        if instance is None:
            raise NotFoundError(f'Invalid "{model.__name__}" ID "{ident}"')
        return instance

    @persistence_method
    def save(self, instance: Any) -> Any:
        self.session.add(instance)
        self.session.flush()
        self._commit()
        return instance

    @persistence_method
    def delete(self, instance: Any) -> None:
        self.session.delete(instance)
        self.session.flush()
        self._commit()

    def query(self, model: Any):
        """
        :param model: model class
        :return: select statement for the complete collection
        """
        return select(model)

    def association_query(self, parent: Any, association: str):
        """
        :param parent: parent instance
        :param association: name of the parent relationship
        :return: select statement for the children of parent
        """
        relationship = getattr(type(parent), association)
        target = relationship.property.mapper.class_
        return select(target).where(with_parent(parent, relationship))

    @persistence_method
    def all(self, query) -> List[Any]:
        """
        :param query: select statement
        :return: list of results
        """
        return list(self.session.scalars(query).all())

    def association_find(self, parent: Any, association: str, query=None) -> List[Any]:
        """
        :param query: select statement returned by association_query, possibly narrowed
        :return: the (selected) children of parent
        """
        if query is None:
            query = self.association_query(parent, association)
        return self.all(query)

    @persistence_method
    def association_get(self, parent: Any, association: str, ident: Any) -> Any:
        """
        Retrieve the child with primary key ident from the parent association

        :raises NotFoundError: unless exactly one child matches
        """
        query = self._association_filter(parent, association, ident)
        children = self.session.scalars(query.limit(2)).all()
        if len(children) != 1:
            raise NotFoundError(f"{len(children)} {association} with ID {ident} for {parent}")
        return children[0]

    @persistence_method
    def association_count(self, parent: Any, association: str, ident: Optional[Any] = None) -> int:
        """
        :param ident: optional primary key filter
        :return: number of (matching) children of parent
        """
        if ident is None:
            query = self.association_query(parent, association)
        else:
            query = self._association_filter(parent, association, ident)
        return self.count(query)

    @persistence_method
    def count(self, query) -> int:
        """
        :param query: select statement
        :return: number of rows the statement returns (limit/offset/order are ignored)
        """
        query = query.limit(None).offset(None).order_by(None)
        return self.session.scalar(select(func.count()).select_from(query.subquery()))

    @persistence_method
    def association_append(self, parent: Any, association: str, instance: Any) -> None:
        getattr(parent, association).append(instance)
        self.session.flush()
        self._commit()

    def _association_filter(self, parent: Any, association: str, ident: Any):
        query = self.association_query(parent, association)
        target = getattr(type(parent), association).property.mapper.class_
        pk = target.__mapper__.primary_key[0]
        return query.where(pk == ident)
