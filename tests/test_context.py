"""Tests for citrus.context — dispatch-scoped state."""

from typing import Any

import pytest

from citrus.config import AppConfig
from citrus.context import (
    DispatchContext,
    current_dispatch,
    enter_dispatch,
    exit_dispatch,
    g,
    get_request,
    params,
)
from citrus.http.request import Request


def _request() -> Request:
    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    scope = {"type": "http", "method": "GET", "path": "/", "query_string": b"", "headers": []}
    return Request.from_asgi(scope, receive)


@pytest.fixture
def ctx():
    context = DispatchContext(request=_request(), params={"id": "7", 0: "x"})
    token = enter_dispatch(context)
    yield context
    exit_dispatch(token)


class TestOutsideRequest:
    def test_no_current_dispatch(self) -> None:
        assert current_dispatch() is None

    def test_get_request_raises(self) -> None:
        with pytest.raises(LookupError, match="No active request"):
            get_request()

    def test_params_raises(self) -> None:
        with pytest.raises(LookupError):
            params()

    def test_g_raises(self) -> None:
        with pytest.raises(LookupError):
            g.anything  # noqa: B018

    def test_g_repr(self) -> None:
        assert repr(g) == "<g {}>"


class TestInsideRequest:
    def test_current_dispatch(self, ctx) -> None:
        assert current_dispatch() is ctx
        assert get_request() is ctx.request

    def test_default_config(self, ctx) -> None:
        assert ctx.config == AppConfig()

    def test_params(self, ctx) -> None:
        assert params() == {"id": "7", 0: "x"}
        assert params("id") == "7"
        assert params(0) == "x"
        assert params("missing", "fallback") == "fallback"

    def test_params_returns_copy(self, ctx) -> None:
        params()["id"] = "changed"
        assert params("id") == "7"

    def test_g_attributes(self, ctx) -> None:
        g.user = "ana"
        assert g.user == "ana"
        assert "user" in g
        assert g.get("missing", 1) == 1
        assert ctx.vars == {"user": "ana"}
        del g.user
        assert "user" not in g

    def test_g_missing_attribute(self, ctx) -> None:
        with pytest.raises(AttributeError, match="nothing"):
            g.nothing  # noqa: B018
        with pytest.raises(AttributeError):
            del g.nothing

    def test_g_set_default(self, ctx) -> None:
        assert g.set_default("title", "", "Untitled") == "Untitled"
        assert g.set_default("title", "Users", "Untitled") == "Users"
        assert g.title == "Users"

    def test_contexts_are_isolated(self, ctx) -> None:
        other = DispatchContext(request=_request())
        token = enter_dispatch(other)
        try:
            g.inner = True
            assert "inner" not in ctx.vars
        finally:
            exit_dispatch(token)
        assert current_dispatch() is ctx
