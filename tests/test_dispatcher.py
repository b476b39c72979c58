import asyncio

import pytest

from routeplate.responses import ResponseBuilder
from routeplate.routing.dispatcher import Dispatcher, HandlerFactory
from routeplate.routing.handlers import Handler, handle
from routeplate.routing.registry import RouteRegistry
from tests.helpers import (
    AlbumPhotoHandler,
    NextStage,
    PhotoHandler,
    RecordingSend,
    make_request,
    make_response,
)

events = []


@pytest.fixture(autouse=True)
def reset_events():
    events.clear()
    yield
    events.clear()


class PhotoController(Handler):
    def Get(self, id):
        events.append(("PhotoController.Get", id))


class UsersController(Handler):
    def post(self, id):
        events.append(("UsersController.post", id))


class ItemsById(Handler):
    def get(self, id):
        events.append(("ItemsById.get", id))
        self.response.set_status(201)


class ItemsByCollection(Handler):
    async def get(self, collection, name):
        await asyncio.sleep(0.01)
        events.append(("ItemsByCollection.get", collection, name))
        self.response.set_status(202)


class FailingHandler(Handler):
    def get(self, id):
        raise ValueError(f"cannot load {id}")


def make_dispatcher(*routes, factory=None) -> Dispatcher:
    registry = RouteRegistry()
    for template, handler_type in routes:
        registry.register(template, handler_type)
    return Dispatcher(registry, factory=factory)


async def dispatch(dispatcher: Dispatcher, method: str, path: str):
    request = make_request(method, path)
    response = make_response()
    next_stage = NextStage()
    result = await dispatcher.handle(request, response, next_stage)
    return response, next_stage, result


@pytest.mark.asyncio
async def test_dynamic_value_is_bound_to_the_parameter():
    dispatcher = make_dispatcher(("/photos/<id>", PhotoController))

    response, _, _ = await dispatch(dispatcher, "GET", "/photos/42")

    assert events == [("PhotoController.Get", "42")]
    assert response.status == 200


@pytest.mark.asyncio
async def test_missing_segment_is_not_found():
    dispatcher = make_dispatcher(("/photos/<id>", PhotoController))

    response, next_stage, _ = await dispatch(dispatcher, "GET", "/photos")

    assert events == []
    assert response.status == 404
    assert len(next_stage.calls) == 1


@pytest.mark.asyncio
async def test_matching_path_without_method_for_verb_is_not_found():
    dispatcher = make_dispatcher(("/users/<id>", UsersController))

    response, next_stage, _ = await dispatch(dispatcher, "GET", "/users/7")

    assert events == []
    assert response.status == 404
    assert len(next_stage.calls) == 1


@pytest.mark.asyncio
async def test_no_routes_is_not_found():
    response, _, _ = await dispatch(make_dispatcher(), "GET", "/")

    assert response.status == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("verb", ["GET", "get", "GeT"])
async def test_verb_is_case_insensitive(verb):
    dispatcher = make_dispatcher(("/photos/<id>", PhotoController))

    response, _, _ = await dispatch(dispatcher, verb, "/photos/1")

    assert events == [("PhotoController.Get", "1")]
    assert response.status == 200


@pytest.mark.asyncio
async def test_trailing_slash_gives_the_same_outcome():
    dispatcher = make_dispatcher(("/photos/<id>", PhotoController))

    first, _, _ = await dispatch(dispatcher, "GET", "/photos/1")
    second, _, _ = await dispatch(dispatcher, "GET", "/photos/1/")

    assert events == [("PhotoController.Get", "1"), ("PhotoController.Get", "1")]
    assert first.status == second.status == 200


@pytest.mark.asyncio
async def test_values_are_bound_left_to_right():
    dispatcher = make_dispatcher(("/albums/<album>/photos/<photo>", AlbumPhotoHandler))

    send = RecordingSend()
    response = ResponseBuilder(send)

    await dispatcher.handle(
        make_request("GET", "/albums/summer/photos/42"), response, NextStage()
    )
    await response.send_response()

    assert send.messages[0]["status"] == 200
    assert send.messages[1]["body"] == b"album summer photo 42"


@pytest.mark.asyncio
async def test_overlapping_routes_all_fire_in_registration_order():
    dispatcher = make_dispatcher(
        ("/<collection>/<name>", ItemsByCollection),
        ("/items/<id>", ItemsById),
    )

    response, _, _ = await dispatch(dispatcher, "GET", "/items/5")

    assert events == [("ItemsByCollection.get", "items", "5"), ("ItemsById.get", "5")]
    # The last handler to write the status wins
    assert response.status == 201


@pytest.mark.asyncio
async def test_async_handler_finishes_before_the_next_match_runs():
    dispatcher = make_dispatcher(
        ("/items/<id>", ItemsById),
        ("/<collection>/<name>", ItemsByCollection),
    )

    response, _, _ = await dispatch(dispatcher, "GET", "/items/5")

    assert events == [("ItemsById.get", "5"), ("ItemsByCollection.get", "items", "5")]
    assert response.status == 202


@pytest.mark.asyncio
async def test_unresolved_match_does_not_stop_other_matches():
    dispatcher = make_dispatcher(
        ("/users/<id>", UsersController),
        ("/<collection>/<name>", ItemsByCollection),
    )

    response, _, _ = await dispatch(dispatcher, "GET", "/users/7")

    assert events == [("ItemsByCollection.get", "users", "7")]
    assert response.status == 202


@pytest.mark.asyncio
async def test_async_handler_methods_are_awaited():
    dispatcher = make_dispatcher(("/photos/<id>", PhotoHandler))

    response, _, _ = await dispatch(dispatcher, "DELETE", "/photos/3")

    assert PhotoHandler.calls == [("delete", "3")]
    assert response.status == 204


@pytest.mark.asyncio
async def test_custom_verbs_dispatch():
    class CacheHandler(Handler):
        @handle("PURGE")
        def purge(self, key):
            events.append(("purge", key))

    dispatcher = make_dispatcher(("/cache/<key>", CacheHandler))

    response, _, _ = await dispatch(dispatcher, "purge", "/cache/home")

    assert events == [("purge", "home")]
    assert response.status == 200


@pytest.mark.asyncio
async def test_non_standard_verb_found_by_method_name():
    class CacheHandler(Handler):
        def Purge(self, key):
            events.append(("Purge", key))

    dispatcher = make_dispatcher(("/cache/<key>", CacheHandler))

    response, next_stage, _ = await dispatch(dispatcher, "PURGE", "/cache/x")

    assert events == [("Purge", "x")]
    assert response.status == 200
    assert len(next_stage.calls) == 1


@pytest.mark.asyncio
async def test_result_of_next_stage_is_returned():
    dispatcher = make_dispatcher(("/photos/<id>", PhotoController))

    for path in ("/photos/1", "/nowhere"):
        _, next_stage, result = await dispatch(dispatcher, "GET", path)
        assert result == "next-result"
        assert len(next_stage.calls) == 1


@pytest.mark.asyncio
async def test_next_stage_receives_the_mutated_response():
    dispatcher = make_dispatcher(("/items/<id>", ItemsById))
    request = make_request("GET", "/items/9")
    response = make_response()
    next_stage = NextStage()

    await dispatcher.handle(request, response, next_stage)

    assert next_stage.calls == [(request, response)]
    assert next_stage.calls[0][1].status == 201


@pytest.mark.asyncio
async def test_handler_exceptions_propagate_unchanged():
    dispatcher = make_dispatcher(("/broken/<id>", FailingHandler))

    with pytest.raises(ValueError, match="cannot load 1"):
        await dispatch(dispatcher, "GET", "/broken/1")


@pytest.mark.asyncio
async def test_handlers_are_built_by_the_factory():
    created = []

    class RecordingFactory(HandlerFactory):
        def create(self, handler_type, context):
            handler = super().create(handler_type, context)
            created.append((handler_type, context))
            return handler

    dispatcher = make_dispatcher(("/photos/<id>", PhotoController), factory=RecordingFactory())
    request = make_request("GET", "/photos/5")
    response = make_response()

    await dispatcher.handle(request, response, NextStage(), container="the-container")

    ((handler_type, context),) = created
    assert handler_type is PhotoController
    assert context.request is request
    assert context.response is response
    assert context.container == "the-container"


@pytest.mark.asyncio
async def test_a_fresh_handler_is_built_for_each_request():
    instances = []

    class CountingHandler(Handler):
        def get(self, id):
            instances.append(self)

    dispatcher = make_dispatcher(("/count/<id>", CountingHandler))

    await dispatch(dispatcher, "GET", "/count/1")
    await dispatch(dispatcher, "GET", "/count/2")

    assert len(instances) == 2
    assert instances[0] is not instances[1]
