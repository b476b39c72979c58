import json

from asgiref.typing import ASGIReceiveCallable as Receive
from asgiref.typing import HTTPScope


class Request:
    def __init__(self, scope: HTTPScope, receive: Receive):
        if scope["type"] != "http":
            raise RuntimeError("Request only supports HTTP scope")

        self.scope = scope
        self._receive = receive
        self._body: bytes | None = None

    @property
    def method(self) -> str:
        return self.scope.get("method", "")

    @property
    def path(self) -> str:
        """The path as the client sent it, still percent-encoded and without the query."""
        raw_path = self.scope.get("raw_path")
        if raw_path is None:
            return self.scope.get("path", "")

        return raw_path.decode("latin-1").partition("?")[0]

    @property
    def scheme(self) -> str:
        return self.scope.get("scheme", "")

    @property
    def headers(self) -> dict:
        return {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in self.scope.get("headers", [])
        }

    @property
    def client(self):
        return self.scope.get("client")

    @property
    def http_version(self) -> str:
        return self.scope.get("http_version", "")

    async def body(self) -> bytes:
        """Returns the whole request body, reading it from the ASGI channel once."""
        if self._body is None:
            chunks = bytearray()
            more_body = True
            while more_body:
                message = await self._receive()
                if message["type"] != "http.request":
                    break

                chunks.extend(message.get("body", b""))
                more_body = message.get("more_body", False)

            self._body = bytes(chunks)

        return self._body

    async def text(self, encoding: str = "utf-8") -> str:
        data = await self.body()
        return data.decode(encoding)

    async def json(self, encoding: str = "utf-8"):
        text_data = await self.text(encoding=encoding)
        return json.loads(text_data) if text_data else None

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"
