from typing import Any

from asgiref.typing import ASGISendCallable as Send


class ResponseBuilder:
    """Mutable response shared by every handler of a request.

    Status, headers and body components can be changed until the response is
    sent. Several handlers may run for one request; the last write to the
    status or to a header wins, body components accumulate in order.

    Examples:
        ```python
        response.set_status(201)
        response.content_type("application/json")
        response.body('{"id": 42}')
        ```
    """

    def __init__(self, send: Send):
        self._send = send
        self._status = 200
        self._headers: list[tuple[str, str]] = []
        self._body_components: list[bytes] = []
        self._headers_sent = False
        self._has_content_type = False

    @property
    def status(self) -> int:
        return self._status

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self._headers)

    @property
    def has_body(self) -> bool:
        return bool(self._body_components)

    @property
    def sent(self) -> bool:
        return self._headers_sent

    def set_status(self, status_code: int):
        self._status = status_code

    def add_header(self, name: str, value: str):
        name = name.lower()
        _check_header(name, value)
        if name == "content-type":
            self.content_type(value)
            return

        self._headers.append((name, value))

    def content_type(self, media_type: str, charset: str = "utf-8"):
        if media_type.startswith("text/") and "charset" not in media_type:
            media_type = f"{media_type}; charset={charset}"
        _check_header("content-type", media_type)

        self._headers = [
            (name, value) for name, value in self._headers if name != "content-type"
        ]
        self._headers.append(("content-type", media_type))
        self._has_content_type = True

    def body(self, component: Any):
        match component:
            case bytes() | bytearray():
                self._body_components.append(bytes(component))
            case str():
                self._body_components.append(component.encode("utf-8"))
            case _:
                self._body_components.append(str(component).encode("utf-8"))

    def clear(self):
        if self._headers_sent:
            raise RuntimeError("Cannot clear a response that has already been sent")

        self._status = 200
        self._headers = []
        self._body_components = []
        self._has_content_type = False

    async def send_response(self):
        if self._headers_sent:
            return

        body = b"".join(self._body_components)
        if body and not self._has_content_type:
            self.content_type("text/plain")

        headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in self._headers
        ]
        headers.append((b"content-length", str(len(body)).encode("latin-1")))

        self._headers_sent = True
        await self._send(
            {"type": "http.response.start", "status": self._status, "headers": headers}
        )
        await self._send({"type": "http.response.body", "body": body, "more_body": False})


def _check_header(name: str, value: str):
    """ASGI header fields are latin-1 bytes; anything else would fail once headers are sent."""
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise ValueError(f"Header {name!r} cannot be encoded as latin-1: {value!r}") from e
