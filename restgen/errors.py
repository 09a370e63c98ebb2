# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions are raised by the generated stages and caught by the Pipeline,
# which formats them as a json response, for example:
# {
#      "message": "validation errors",
#      "errors": {"age": "invalid int type"}
# }
#
import traceback
from http import HTTPStatus
from sqlalchemy.exc import DontWrapMixin
import restgen
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class RestError(Exception, DontWrapMixin):
    """
    Base class for the errors that are translated to a response by the Pipeline
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""

    def to_dict(self):
        """
        :return: the json response body
        """
        return {"message": self.message}


class NotFoundError(RestError):
    """
    This exception is raised when an item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    message = HTTPStatus.NOT_FOUND.phrase

    def __init__(self, message="", status_code=HTTPStatus.NOT_FOUND.value):
        """
        :param message: logged, the client only receives "Not Found"
        :param status_code: HTTP Status code
        """
        RestError.__init__(self, message)
        self.status_code = status_code
        restgen.log.error("Not found: %s", message)


class UnAuthorizedError(RestError):
    """
    This exception is raised when an authorization error occured (f.i. by a list resolver)
    we use FORBIDDEN(403) instead of UNAUTHORIZED(401)
    """

    status_code = HTTPStatus.FORBIDDEN.value
    message = "Authorization Error: "

    def __init__(self, message="", status_code=HTTPStatus.FORBIDDEN.value):
        RestError.__init__(self, message)
        self.status_code = status_code
        restgen.log.error("UnAuthorizedError: %s", message)
        if is_debug():
            self.message += message
        else:
            self.message += HIDDEN_LOG


class PersistenceError(RestError):
    """
    This exception is raised when the database failed to execute a query or mutation
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Generic Error: "

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        RestError.__init__(self, message)
        self.status_code = status_code
        restgen.log.error("Persistence Error: %s", message)
        if is_debug():
            restgen.log.debug(traceback.format_exc(120))
            self.message += str(message)
        else:
            self.message += HIDDEN_LOG


class PartialFailureError(PersistenceError):
    """
    This exception is raised when an associated create committed the new instance
    but failed to link it to the parent. The instance is not removed.
    """

    def __init__(self, message, instance=None, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        PersistenceError.__init__(self, message, status_code)
        self.instance = instance
        restgen.log.error("Orphaned instance left in the database: %s", instance)


class ValidationError(RestError):
    """
    This exception is raised when invalid input has been detected (client side input)
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = ""

    def __init__(self, message="", errors=None, status_code=HTTPStatus.BAD_REQUEST.value):
        """
        :param message: Message to be returned in the (json) body
        :param errors: field -> reason mapping
        :param status_code: HTTP Status code
        """
        RestError.__init__(self, message)
        self.status_code = status_code
        self.errors = errors
        restgen.log.warning("ValidationError: %s %s", message, errors or "")
        self.message = message

    def to_dict(self):
        result = {"message": self.message}
        if self.errors is not None:
            result["errors"] = self.errors
        return result


class MergeError(ValidationError):
    """
    Raised by merge functions when the incoming data can't be merged into the destination
    """


class PipelineError(ValueError):
    """
    Raised when stages are composed in an order that can't satisfy their context dependencies
    """
