# -*- coding: utf-8 -*-
"""
The per-request context that is passed from stage to stage
"""
from http import HTTPStatus
from flask import Response, current_app, request
from typing import Any, Dict, Optional
from .json_encoder import JSONProvider

_MISSING = object()


class RequestContext:
    """
    Request state shared by the stages of a pipeline:
    - the url path parameters (eg. {"owner": "1", "animal": "2"})
    - values set by previous stages, f.i. the instance fetched by a Fetch stage
    - the response status and headers

    A RequestContext is created for every request and never shared between requests.
    """

    def __init__(self, req=None, params: Optional[Dict[str, str]] = None) -> None:
        """
        :param req: flask request, defaults to the current request
        :param params: url path parameters, defaults to the view arguments of the request
        """
        self.request = req if req is not None else request
        if params is None:
            params = self.request.view_args or {}
        self.params = dict(params)
        self.values: Dict[str, Any] = {}
        self.status = HTTPStatus.OK.value
        self.headers: Dict[str, str] = {}

    def param(self, name: str) -> str:
        """
        :param name: url path parameter name
        :return: the parameter value or an empty string
        """
        value = self.params.get(name)
        return "" if value is None else str(value)

    @property
    def args(self):
        """
        :return: url query string arguments
        """
        return self.request.args

    @property
    def body(self) -> bytes:
        """
        :return: raw request body
        """
        return self.request.get_data(cache=True)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def require(self, key: str) -> Any:
        """
        :param key: context key
        :return: the value stored under key
        :raises KeyError: when no value was stored (the stage that should have set it didn't run)
        """
        value = self.values.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(f"'{key}' not set in the request context")
        return value

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def set_header(self, name: str, value: Any) -> None:
        self.headers[name] = str(value)

    def _finish(self, response: Response) -> Response:
        for name, value in self.headers.items():
            response.headers[name] = value
        return response

    def json(self, value: Any, status: Optional[int] = None) -> Response:
        """
        :param value: json serializable value or model instance(s)
        :param status: HTTP status, defaults to the status set on the context
        :return: json response
        """
        provider = current_app.json
        if not isinstance(provider, JSONProvider):
            # the app was not initialized with RestGen
            provider = JSONProvider(current_app)
        response = provider.response(value)
        response.status_code = self.status if status is None else status
        return self._finish(response)

    def empty(self, status: Optional[int] = None) -> Response:
        """
        :return: response without body
        """
        response = current_app.response_class(status=self.status if status is None else status)
        return self._finish(response)

    def abort(self, status: int, body: Any = None) -> Response:
        """
        Build the response that ends the pipeline

        :param status: HTTP status
        :param body: optional json body
        :return: response
        """
        if body is None:
            return self.empty(status)
        return self.json(body, status)
