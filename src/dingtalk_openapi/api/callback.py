"""Business event callback registration for DingTalk."""

from __future__ import annotations

from .endpoints import Endpoint, EndpointGroup


class CallbackAPI(EndpointGroup):
    """Callback endpoints, available as ``client.callback``.

    All fields are sent as query parameters.
    """

    register_call_back = Endpoint("call_back/register_call_back")
    get_call_back = Endpoint("call_back/get_call_back")
    update_call_back = Endpoint("call_back/update_call_back")
    delete_call_back = Endpoint("call_back/delete_call_back")
