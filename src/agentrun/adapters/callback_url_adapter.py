import uuid

from agentrun.core.interfaces.callback import CallbackTargetPort


class CallbackUrlAdapter(CallbackTargetPort):
    """Issues one callback URL per execution under this service's public address.

    The token only makes each URL unique; the resume route does not look it
    up anywhere.
    """

    def __init__(self, public_base_url: str, path: str = "/callbacks"):
        self._base = public_base_url.rstrip("/") + "/" + path.strip("/")

    async def generate_callback_url(self) -> str:
        return f"{self._base}/{uuid.uuid4().hex}"
