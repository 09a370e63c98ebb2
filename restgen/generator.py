# -*- coding: utf-8 -*-
#
# The Generator creates the request handling stages for a model:
#
#   animals = Generator(db, Animal, "animal")
#   app.add_url_rule("/animals/<animal>", view_func=Pipeline(animals.fetch(), animals.render()).as_view())
#
# Stages communicate through the RequestContext: Fetch and Create store the instance
# under the param name ("animal"), Render, Update and Delete read it from there.
# The association stages ("owners/<owner>/animals") read the parent instance from the
# context key of the Association, it has to be fetched by a preceding stage.
#
# pylint: disable=logging-format-interpolation
from http import HTTPStatus
from flask import Response
from sqlalchemy import inspect as sqla_inspect
from typing import Any, Callable, Optional, Type
import restgen
from .binder import bind_and_validate
from .context import RequestContext
from .descriptor import Association, Entity
from .errors import MergeError, NotFoundError, PartialFailureError, PersistenceError, ValidationError
from .handlers import Handlers
from .resolvers import merge_columns
from .stages import Stage
from .store import Store

# ResolverFn(ctx, query) -> query | None | Response
#   returns the (narrowed) select statement, None to keep it unchanged or a Response to stop
ResolverFn = Callable[[RequestContext, Any], Any]
# MergerFn(incoming, destination) -> None
#   copies the incoming attributes to destination, raises MergeError (or ValueError) on invalid input
MergerFn = Callable[[Any, Any], None]

VALIDATION_MESSAGE = "validation errors"


class Generator:
    """
    Creates the list, fetch, create, update, delete and render stages for a model
    """

    def __init__(self, db: Any, model: Type[Any], param: str, schema: Optional[Type[Any]] = None) -> None:
        """
        :param db: Store or flask_sqlalchemy.SQLAlchemy instance
        :param model: sqlalchemy model class
        :param param: url path parameter and context key of the instance, eg. "animal"
        :param schema: pydantic payload schema, generated from the model columns by default
        """
        self.store = db if isinstance(db, Store) else Store(db)
        self.entity = Entity(model, param, schema)

    @property
    def param(self) -> str:
        return self.entity.param

    @property
    def model(self) -> Type[Any]:
        return self.entity.model

    def _stage(self, fun, name, reads=(), writes=()) -> Stage:
        return Stage(fun, name=f"{name}_{self.param}", reads=reads, writes=writes)

    def bind(self, ctx: RequestContext) -> Any:
        """
        Create a new instance from the request payload

        :raises ValidationError: if the payload is invalid
        """
        instance = self.entity.new()
        errors = bind_and_validate(ctx.body, instance, self.entity.schema)
        if errors:
            raise ValidationError(VALIDATION_MESSAGE, errors)
        return instance

    @staticmethod
    def _resolve(resolver: Optional[ResolverFn], ctx: RequestContext, query):
        """
        :return: (query, None) to continue or (None, response) if the resolver responded
        """
        if resolver is None:
            return query, None
        result = resolver(ctx, query)
        if isinstance(result, Response):
            return None, result
        if result is None:
            return query, None
        return result, None

    def list(self, resolver: Optional[ResolverFn] = None) -> Stage:
        """
        Creates a listing stage. The resolver can be used to fine-tune the query,
        add pagination and headers or to refuse the request.
        """

        def list_instances(ctx: RequestContext):
            query, response = self._resolve(resolver, ctx, self.store.query(self.model))
            if response is not None:
                return response
            instances = self.entity.new_list()
            instances.extend(self.store.all(query))
            return ctx.json(instances, HTTPStatus.OK.value)

        return self._stage(list_instances, "list")

    def list_associated(self, assoc: Association, resolver: Optional[ResolverFn] = None) -> Stage:
        """
        Creates a listing stage for the children of the parent instance stored under assoc.parent_name.
        The resolver is called exactly like in `list`
        """

        def list_associated_instances(ctx: RequestContext):
            parent = ctx.require(assoc.parent_name)
            query = self.store.association_query(parent, assoc.association)
            query, response = self._resolve(resolver, ctx, query)
            if response is not None:
                return response
            instances = self.entity.new_list()
            instances.extend(self.store.association_find(parent, assoc.association, query))
            return ctx.json(instances, HTTPStatus.OK.value)

        return self._stage(list_associated_instances, "list_associated", reads=[assoc.parent_name])

    def render(self, key: Optional[str] = None) -> Stage:
        """
        Creates a rendering stage: the value stored under key is returned as json
        with the status set by the preceding stages (eg. 201 after `create`)
        """
        key = key or self.param

        def render_instance(ctx: RequestContext):
            if key not in ctx:
                raise NotFoundError(f"Nothing to render, '{key}' is not set")
            return ctx.json(ctx.get(key))

        return self._stage(render_instance, "render", reads=[key])

    def fetch(self) -> Stage:
        """
        Creates a stage that retrieves the instance with the id in the url and stores it in the context
        """

        def fetch_instance(ctx: RequestContext):
            value = ctx.param(self.param)
            if not value:
                raise NotFoundError(f"No '{self.param}' url parameter")
            ident = self.entity.parse_id(value)
            ctx.set(self.param, self.store.fetch_one(self.model, ident))

        return self._stage(fetch_instance, "fetch", writes=[self.param])

    def fetch_associated(self, assoc: Association) -> Stage:
        """
        Creates a stage that retrieves a child of the parent instance and stores it in the context.
        Exactly one child of the parent must have the id in the url, otherwise the response is 404.
        """

        def fetch_associated_instance(ctx: RequestContext):
            value = ctx.param(self.param)
            if not value:
                raise NotFoundError(f"No '{self.param}' url parameter")
            ident = self.entity.parse_id(value)
            parent = ctx.require(assoc.parent_name)
            ctx.set(self.param, self.store.association_get(parent, assoc.association, ident))

        return self._stage(fetch_associated_instance, "fetch_associated", reads=[assoc.parent_name], writes=[self.param])

    def create(self) -> Stage:
        """
        Creates a stage that creates an instance from the payload and stores it in the context.
        The response status is set to 201, a `render` stage should follow.
        """

        def create_instance(ctx: RequestContext):
            instance = self.bind(ctx)
            self.store.create(instance)
            ctx.status = HTTPStatus.CREATED.value
            ctx.set(self.param, instance)

        return self._stage(create_instance, "create", writes=[self.param])

    def create_associated(self, assoc: Association, atomic: bool = False) -> Stage:
        """
        Creates a stage that creates an instance and adds it to the parent association.

        :param atomic: when False (default) the instance is committed before it's appended to
            the parent. If appending fails the instance remains in the database and
            a PartialFailureError (500) is returned.
            When True both operations are executed in a single transaction.
        """

        def create_associated_instance(ctx: RequestContext):
            instance = self.bind(ctx)
            parent = ctx.require(assoc.parent_name)
            if atomic:
                with self.store.transaction():
                    self.store.create(instance)
                    self.store.association_append(parent, assoc.association, instance)
            else:
                self.store.create(instance)
                try:
                    self.store.association_append(parent, assoc.association, instance)
                except PersistenceError as exc:
                    raise PartialFailureError(f"Failed to add {instance} to {assoc.association}: {exc}", instance=instance)
            ctx.status = HTTPStatus.CREATED.value
            ctx.set(self.param, instance)

        return self._stage(create_associated_instance, "create_associated", reads=[assoc.parent_name], writes=[self.param])

    def _association_keys(self, parent: Any, assoc: Association) -> list:
        """
        :return: names of the model attributes holding the foreign key to the parent
        """
        relationship = getattr(type(parent), assoc.association).property
        return [attr.key for attr in sqla_inspect(self.model).column_attrs if attr.columns[0] in relationship.remote_side]

    def update(self, merge: Optional[MergerFn] = None, assoc: Optional[Association] = None) -> Stage:
        """
        Creates a stage that updates the instance stored in the context (by `fetch`) with the payload.

        :param merge: merge(incoming, destination) copies the incoming attributes to the
            destination instance, all non-null column values are copied by default.
            It can also be used as extra validation: raise a MergeError to refuse the update.
        :param assoc: association of a nested route, the default merge doesn't copy the
            foreign key to the parent so an instance can't be moved to another parent
        """
        default_merge = merge_columns(self.model)
        reads = [self.param] if assoc is None else [assoc.parent_name, self.param]

        def update_instance(ctx: RequestContext):
            if self.param not in ctx:
                raise NotFoundError(f"Nothing to update, '{self.param}' is not set")
            destination = ctx.get(self.param)
            incoming = self.bind(ctx)
            merger = merge or default_merge
            if merge is None and assoc is not None:
                merger = merge_columns(self.model, self._association_keys(ctx.require(assoc.parent_name), assoc))
            try:
                merger(incoming, destination)
            except ValidationError:
                # discard the attributes the merge function may already have changed
                self.store.rollback()
                raise
            except (ValueError, TypeError) as exc:
                self.store.rollback()
                raise MergeError(str(exc))
            self.store.save(destination)
            ctx.set(self.param, destination)

        return self._stage(update_instance, "update", reads=reads, writes=[self.param])

    def delete(self) -> Stage:
        """
        Creates a stage that deletes the instance stored in the context and responds with 204 No Content
        """

        def delete_instance(ctx: RequestContext):
            if self.param not in ctx:
                raise NotFoundError(f"Nothing to delete, '{self.param}' is not set")
            self.store.delete(ctx.get(self.param))
            return ctx.empty(HTTPStatus.NO_CONTENT.value)

        return self._stage(delete_instance, "delete", reads=[self.param])

    def handlers(self, resolver: Optional[ResolverFn] = None, merge: Optional[MergerFn] = None) -> Handlers:
        """
        :return: the stages for the CRUD operations on the collection
        """
        restgen.log.debug("Creating handlers for {}".format(self.entity))
        return Handlers(
            param=self.param,
            list=self.list(resolver),
            fetch=self.fetch(),
            render=self.render(),
            create=self.create(),
            update=self.update(merge),
            delete=self.delete(),
        )

    def associated_handlers(
        self, assoc: Association, resolver: Optional[ResolverFn] = None, merge: Optional[MergerFn] = None, atomic: bool = False
    ) -> Handlers:
        """
        :return: the stages for the CRUD operations on the children of a parent,
                 the parent fetch stage has to be passed to `Handlers.register`
        """
        restgen.log.debug("Creating {} handlers for {}".format(assoc, self.entity))
        return Handlers(
            param=self.param,
            list=self.list_associated(assoc, resolver),
            fetch=self.fetch_associated(assoc),
            render=self.render(),
            create=self.create_associated(assoc, atomic=atomic),
            update=self.update(merge, assoc=assoc),
            delete=self.delete(),
        )
