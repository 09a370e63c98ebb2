# -*- coding: utf-8 -*-
"""
Handlers: the stages for the CRUD operations on a resource and their url registration
"""
# pylint: disable=logging-format-interpolation
import re
from dataclasses import dataclass
from typing import Any, Callable
import restgen
from .config import get_config
from .stages import Pipeline, Stage

ROUTE_FMT = "{}/<{}>"


@dataclass(frozen=True)
class Handlers:
    """
    Boilerplate stages for the CRUD operations of a resource, created by
    `Generator.handlers` or `Generator.associated_handlers`
    """

    param: str
    list: Stage
    fetch: Stage
    render: Stage
    create: Stage
    update: Stage
    delete: Stage

    def pipelines(self, *prerequisites: Callable) -> dict:
        """
        :param prerequisites: stages that run before every pipeline, eg. the parent fetch stage
        :return: {(name, http method, is instance route): Pipeline}
        """
        return {
            ("list", "GET", False): Pipeline(*prerequisites, self.list),
            ("create", "POST", False): Pipeline(*prerequisites, self.create, self.render),
            ("get", "GET", True): Pipeline(*prerequisites, self.fetch, self.render),
            ("update", "PUT", True): Pipeline(*prerequisites, self.fetch, self.update, self.render),
            ("delete", "DELETE", True): Pipeline(*prerequisites, self.fetch, self.delete),
        }

    def register(self, app: Any, path: str, *prerequisites: Callable) -> None:
        """
        Register the CRUD routes:

            GET    path              list
            POST   path              create, render
            GET    path/<param>      fetch, render
            PUT    path/<param>      fetch, update, render
            DELETE path/<param>      fetch, delete

        :param app: flask app or blueprint
        :param path: collection url, eg. "/owners/<owner>/animals"
        :param prerequisites: stages that run first for every route, eg. the owner fetch stage
        """
        path = path.rstrip("/")
        instance_path = ROUTE_FMT.format(path, self.param)
        endpoint_prefix = re.sub(r"\W+", "_", path).strip("_") or self.param
        ENDPOINT_FMT = get_config("ENDPOINT_FMT")

        for (name, method, on_instance), pipeline in self.pipelines(*prerequisites).items():
            url = instance_path if on_instance else path or "/"
            endpoint = ENDPOINT_FMT.format(endpoint_prefix, name)
            restgen.log.info("Exposing {} {} ({}), endpoint: {}".format(method, url, pipeline.name, endpoint))
            app.add_url_rule(url, endpoint=endpoint, view_func=pipeline.as_view(), methods=[method])
