from .client import Client
from .response_classifier import DefaultResponseClassifier, ResponseClassifier
from .transport import Transport


def setup(
    *,
    transport: Transport,
    response_classifier: ResponseClassifier | None = None,
) -> Client:
    return Client(transport, response_classifier=response_classifier or DefaultResponseClassifier())
