"""Device gateway interface consumed by the intent handler."""

from typing import Any, Protocol


class DeviceGateway(Protocol):
    """Upstream cloud API operations. Any of them may raise."""

    async def get_device_list(self) -> Any: ...

    async def get_device_status(self, device_sns: list[str]) -> list[dict]: ...

    async def set_work_mode(self, device_sn: str, mode: int) -> Any: ...


class GatewayUnavailable(Exception):
    pass


class UnconfiguredGateway:
    """Stand-in used when no Deye credentials are configured.

    Every call fails, which the intent handler reports as `hardError`.
    """

    message = "Deye Cloud credentials are not configured"

    async def get_device_list(self) -> Any:
        raise GatewayUnavailable(self.message)

    async def get_device_status(self, device_sns: list[str]) -> list[dict]:
        raise GatewayUnavailable(self.message)

    async def set_work_mode(self, device_sn: str, mode: int) -> Any:
        raise GatewayUnavailable(self.message)
