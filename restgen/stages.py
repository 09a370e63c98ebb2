# -*- coding: utf-8 -*-
#
# Stages and pipelines
#
# A stage is a callable that takes the RequestContext and returns
# - None: the next stage in the pipeline is called
# - a flask Response: the pipeline ends and the response is returned to the client
# Stages may also raise a RestError, the Pipeline translates it to a json response.
#
# Stages declare the context keys they read and write so the Pipeline
# can check the stage order when it is composed.
#
from flask import Response
from typing import Any, Callable, Iterable, Optional
import restgen
from .context import RequestContext
from .errors import PipelineError, RestError


class Stage:
    """
    A single unit of request handling, f.i. "fetch the animal" or "render the animal"
    """

    def __init__(self, fun: Callable, name: Optional[str] = None, reads: Iterable[str] = (), writes: Iterable[str] = ()) -> None:
        self.fun = fun
        self.name = name or getattr(fun, "__name__", repr(fun))
        self.reads = frozenset(reads)
        self.writes = frozenset(writes)

    def __call__(self, ctx: RequestContext) -> Optional[Response]:
        return self.fun(ctx)

    def __repr__(self) -> str:
        return f"<Stage {self.name}>"


def stage(fun: Callable = None, reads: Iterable[str] = (), writes: Iterable[str] = ()):
    """
    Decorator to declare the context keys used by a custom stage:

    @stage(writes=["user"])
    def authenticate(ctx):
        ...
    """

    def decorator(f):
        return Stage(f, reads=reads, writes=writes)

    if fun is not None:
        return decorator(fun)
    return decorator


def as_stage(obj: Any) -> Stage:
    """
    :param obj: Stage, Pipeline or plain callable (which reads and writes nothing)
    :return: Stage
    """
    if isinstance(obj, Stage):
        return obj
    if isinstance(obj, Pipeline):
        return Stage(obj.run, name=obj.name, reads=obj.reads, writes=obj.writes)
    if callable(obj):
        return Stage(obj)
    raise PipelineError(f"Invalid stage {obj!r}")


class Pipeline:
    """
    An ordered chain of stages:
    Start -> Stage1 -> Stage2 -> ... -> StageN -> Responded
    every stage can respond early, the following stages are not called.

    The order is validated when the pipeline is created:
    a stage may only read context keys written by a preceding stage (or provided by "initial").
    """

    def __init__(self, *stages: Any, name: Optional[str] = None, initial: Iterable[str] = ()) -> None:
        """
        :param stages: stages, plain callables or pipelines (which are inlined)
        :param name: name used in the logs
        :param initial: context keys that are set before the pipeline runs
        """
        if not stages:
            raise PipelineError("A pipeline needs at least one stage")
        self.stages = tuple(as_stage(s) for s in stages)
        self.name = name or "->".join(s.name for s in self.stages)
        self.reads, self.writes = self._check_order(initial)

    def _check_order(self, initial):
        initial = set(initial)
        available = set(initial)
        reads = set()
        for s in self.stages:
            missing = s.reads - available
            if missing:
                raise PipelineError(f"Stage {s.name} in pipeline {self.name} reads {sorted(missing)} which is not set by a preceding stage")
            # keys that must be provided by the caller
            reads |= s.reads & initial
            available |= s.writes
        return frozenset(reads), frozenset(available - initial)

    def run(self, ctx: RequestContext) -> Optional[Response]:
        """
        Call the stages in order until one of them responds

        :param ctx: request context
        :return: the response or None when none of the stages responded
        """
        for s in self.stages:
            try:
                response = s(ctx)
            except RestError as exc:
                restgen.log.debug("Stage %s failed: %s", s.name, exc)
                return ctx.abort(exc.status_code, exc.to_dict())
            if response is not None:
                return response
        return None

    def __call__(self, ctx: RequestContext) -> Response:
        """
        :return: the pipeline response, an empty response with the context status if no stage responded
        """
        response = self.run(ctx)
        if response is None:
            response = ctx.empty()
        return response

    def as_view(self):
        """
        :return: flask view function that runs the pipeline for the current request
        """

        def view(**kwargs):
            return self(RequestContext(params=kwargs))

        view.__name__ = self.name
        return view

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        return f"<Pipeline {self.name}>"
