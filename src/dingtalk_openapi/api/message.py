"""Enterprise message API operations for DingTalk.

This module provides:
- Enterprise messages (``message/send``) and their read status
- Work notifications (``topapi/message/corpconversation/*``): send,
  progress, result and recall
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .endpoints import Endpoint, EndpointGroup
from .models import DingTalkValidationError


def _require_message_body(payload: Mapping[str, Any]) -> None:
    msgtype = payload["msgtype"]
    if not payload.get(msgtype):
        raise DingTalkValidationError(f"{msgtype} required")


class MessageAPI(EndpointGroup):
    """Message endpoints, available as ``client.message``.

    Example:
        ```python
        await client.message.send(
            touser="user1|user2",
            agentid=123456,
            msgtype="text",
            text={"content": "Hello"},
        )
        ```
    """

    send = Endpoint(
        "message/send",
        method="POST",
        required=(("touser", "toparty"), "msgtype", "agentid"),
        validator=_require_message_body,
        doc=(
            "Send an enterprise message.\n\n"
            "Fields: touser / toparty (``|``-separated, ``@all`` for everyone), "
            "agentid, msgtype and the body under the key named by msgtype "
            "(text, image, voice, file, link, oa, ...)."
        ),
    )

    list_message_status = Endpoint(
        "message/list_message_status",
        method="POST",
        required=("messageId",),
        positional=("messageId",),
        doc="Get read/unread user lists for an enterprise message.",
    )

    send_message = Endpoint(
        "topapi/message/corpconversation/asyncsend_v2",
        method="POST",
        required=("agent_id", ("userid_list", "dept_id_list", "to_all_user"), "msg"),
        doc="Send a work notification; returns ``task_id``.",
    )

    get_send_progress = Endpoint(
        "topapi/message/corpconversation/getsendprogress",
        method="POST",
        required=("agent_id", "task_id"),
    )

    get_send_result = Endpoint(
        "topapi/message/corpconversation/getsendresult",
        method="POST",
        required=("agent_id", "task_id"),
    )

    recall_message = Endpoint(
        "topapi/message/corpconversation/recall",
        method="POST",
        required=("agent_id", "msg_task_id"),
        doc="Recall a work notification.",
    )
