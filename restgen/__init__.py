# flake8: noqa: F401
#
# restgen: generated Flask request handling stages for SQLAlchemy models
#
from .restgen_init import RestGen, log
from .errors import RestError, NotFoundError, ValidationError, MergeError, PersistenceError
from .errors import PartialFailureError, UnAuthorizedError, PipelineError
from .json_encoder import JSONProvider, to_dict
from .context import RequestContext
from .descriptor import Association, Entity
from .store import Store
from .stages import Stage, Pipeline, stage
from .handlers import Handlers
from .generator import Generator
from .resolvers import chain, paginate, order_by, search, fields, total_count, merge_fields, merge_columns
from .fixtures import load_fixture
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "RestGen",
    "log",
    # generator:
    "Generator",
    "Entity",
    "Association",
    "Handlers",
    "Store",
    "load_fixture",
    # pipeline:
    "RequestContext",
    "Stage",
    "Pipeline",
    "stage",
    # resolvers and merge functions:
    "chain",
    "paginate",
    "order_by",
    "search",
    "fields",
    "total_count",
    "merge_fields",
    "merge_columns",
    # json
    "JSONProvider",
    "to_dict",
    # Errors:
    "RestError",
    "NotFoundError",
    "ValidationError",
    "MergeError",
    "PersistenceError",
    "PartialFailureError",
    "UnAuthorizedError",
    "PipelineError",
)
