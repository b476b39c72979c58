import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from routeplate.app import App
from tests.helpers import PhotoHandler


@pytest.fixture(autouse=True)
def reset_handler_calls():
    PhotoHandler.calls.clear()
    yield
    PhotoHandler.calls.clear()


@pytest.fixture
def app() -> App:
    return App()


@pytest_asyncio.fixture
async def client(app: App) -> AsyncClient:
    # Use ASGITransport for the app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
