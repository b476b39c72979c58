"""
Helper utilities for tests.
"""

from routeplate.requests import Request
from routeplate.responses import ResponseBuilder
from routeplate.routing import Handler, handle


class RecordingSend:
    """ASGI send callable that keeps every message it is given."""

    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)


def make_request(method: str, path: str, body: bytes = b"") -> Request:
    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "scheme": "http",
        "http_version": "1.1",
    }
    return Request(scope, receive)


def make_response() -> ResponseBuilder:
    return ResponseBuilder(RecordingSend())


class NextStage:
    """Stands in for the pipeline stage after the dispatcher."""

    def __init__(self, result="next-result"):
        self.result = result
        self.calls = []

    async def __call__(self, request, response):
        self.calls.append((request, response))
        return self.result


class PhotoHandler(Handler):
    calls = []

    def get(self, id):
        PhotoHandler.calls.append(("get", id))
        self.response.body(f"photo {id}")

    async def delete(self, id):
        PhotoHandler.calls.append(("delete", id))
        self.response.set_status(204)


class AlbumPhotoHandler(Handler):
    @handle.GET
    def show(self, album, photo):
        self.response.body(f"album {album} photo {photo}")
