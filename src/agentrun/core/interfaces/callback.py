from abc import ABC, abstractmethod


class CallbackTargetPort(ABC):
    """Source of callback URLs for the callback variant.

    The hosting platform owns the URL and routes the later delivery back to a
    resume invocation; the core only asks for one URL per execution.
    """

    @abstractmethod
    async def generate_callback_url(self) -> str:
        pass
