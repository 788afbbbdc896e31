"""Google smart-home intent fulfillment.

Routes SYNC, QUERY, EXECUTE and DISCONNECT intents to the Deye device
gateway and shapes the results into smart-home response payloads.
Failures never escape as exceptions: a gateway or processing error for
a whole intent becomes a `hardError` payload, and QUERY/EXECUTE report
errors per device so one bad device does not spoil the batch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from smarthome.devices import map_deye_device
from smarthome.gateway import DeviceGateway

logger = logging.getLogger(__name__)

INTENT_SYNC = "action.devices.SYNC"
INTENT_QUERY = "action.devices.QUERY"
INTENT_EXECUTE = "action.devices.EXECUTE"
INTENT_DISCONNECT = "action.devices.DISCONNECT"

COMMAND_ON_OFF = "action.devices.commands.OnOff"

STATUS_SUCCESS = "SUCCESS"
STATUS_ERROR = "ERROR"

ERROR_HARD = "hardError"
ERROR_NOT_SUPPORTED = "functionNotSupported"
ERROR_DEVICE_NOT_FOUND = "deviceNotFound"
ERROR_PROTOCOL = "protocolError"

MODE_ON = 1
MODE_OFF = 0

DEFAULT_AGENT_USER_ID = "deye-user"

# Keys under which the Deye API wraps device lists
DEVICE_LIST_KEYS = ("list", "devices", "deviceList", "deviceDataList")


def first_input(request: dict) -> dict:
    inputs = request.get("inputs")
    if isinstance(inputs, list) and inputs and isinstance(inputs[0], dict):
        return inputs[0]
    return {}


def extract_device_records(devices_data: Any) -> list:
    """Normalize a gateway listing that may be a bare list or a wrapped one."""
    if isinstance(devices_data, list):
        return devices_data
    if isinstance(devices_data, dict):
        for key in DEVICE_LIST_KEYS:
            records = devices_data.get(key)
            if isinstance(records, list):
                return records
    return []


def error_response(request_id: Any, error_code: str, debug_string: str | None = None) -> dict:
    payload = {"errorCode": error_code}
    if debug_string is not None:
        payload["debugString"] = debug_string
    return {"requestId": request_id, "payload": payload}


def _is_zero(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def infer_on_state(status_record: dict) -> bool:
    """Guess on/off from the latest data of a device.

    Off when the data reports an offline status, a zero status code or
    zero power; on otherwise.
    """
    data = status_record.get("data")
    if not isinstance(data, dict):
        return True
    status = data.get("status")
    if status == "offline" or _is_zero(status) or _is_zero(data.get("power")):
        return False
    return True


class SmartHomeHandler:
    """Dispatches smart-home intents against a device gateway."""

    def __init__(self, gateway: DeviceGateway, default_agent_user_id: str = DEFAULT_AGENT_USER_ID):
        self.gateway = gateway
        self.default_agent_user_id = default_agent_user_id

    async def handle_request(self, request: dict, user_id: str | None = None) -> dict:
        """Main handler for all intents."""
        intent = first_input(request).get("intent")
        logger.info(f"[INTENT] Received {intent} request {request.get('requestId')}")

        if intent == INTENT_SYNC:
            return await self.handle_sync(request, user_id)
        if intent == INTENT_QUERY:
            return await self.handle_query(request)
        if intent == INTENT_EXECUTE:
            return await self.handle_execute(request)
        if intent == INTENT_DISCONNECT:
            return await self.handle_disconnect(request, user_id)

        logger.warning(f"[INTENT] Unknown intent: {intent}")
        return error_response(request.get("requestId"), ERROR_NOT_SUPPORTED)

    async def handle_sync(self, request: dict, user_id: str | None = None) -> dict:
        """SYNC: return every device on the Deye account."""
        request_id = request.get("requestId")
        try:
            devices_data = await self.gateway.get_device_list()
            records = extract_device_records(devices_data)
            logger.info(f"[SYNC] Found {len(records)} devices")

            payload = first_input(request).get("payload") or {}
            agent_user_id = payload.get("agentUserId") or user_id or self.default_agent_user_id

            return {
                "requestId": request_id,
                "payload": {
                    "agentUserId": agent_user_id,
                    "devices": [map_deye_device(record).to_google() for record in records],
                },
            }
        except Exception as e:
            logger.exception(f"[SYNC] Error handling SYNC: {e}")
            return error_response(request_id, ERROR_HARD, str(e))

    async def handle_query(self, request: dict) -> dict:
        """QUERY: report state for the requested devices from one status call."""
        request_id = request.get("requestId")
        try:
            payload = first_input(request).get("payload") or {}
            device_ids = [device["id"] for device in payload.get("devices") or []]
            logger.info(f"[QUERY] Querying devices: {', '.join(map(str, device_ids))}")

            statuses = extract_device_records(await self.gateway.get_device_status(device_ids))
            by_id: dict[str, dict] = {}
            for record in statuses:
                if not isinstance(record, dict):
                    continue
                for key in ("deviceSn", "sn"):
                    if record.get(key) is not None:
                        by_id.setdefault(record[key], record)

            return {
                "requestId": request_id,
                "payload": {
                    "devices": {
                        device: self._device_state(by_id.get(device)) for device in device_ids
                    },
                },
            }
        except Exception as e:
            logger.exception(f"[QUERY] Error handling QUERY: {e}")
            return error_response(request_id, ERROR_HARD, str(e))

    def _device_state(self, status_record: dict | None) -> dict:
        if status_record is None:
            return {"online": False, "status": STATUS_ERROR, "errorCode": ERROR_DEVICE_NOT_FOUND}
        return {"online": True, "on": infer_on_state(status_record), "status": STATUS_SUCCESS}

    async def handle_execute(self, request: dict) -> dict:
        """EXECUTE: run each command on each targeted device."""
        request_id = request.get("requestId")
        try:
            payload = first_input(request).get("payload") or {}
            results: list[dict] = []

            for command in payload.get("commands") or []:
                device_ids = [device["id"] for device in command.get("devices") or []]
                for execution in command.get("execution") or []:
                    results.extend(await self._execute(execution, device_ids))

            return {"requestId": request_id, "payload": {"commands": results}}
        except Exception as e:
            logger.exception(f"[EXECUTE] Error handling EXECUTE: {e}")
            return error_response(request_id, ERROR_HARD, str(e))

    async def _execute(self, execution: dict, device_ids: list[str]) -> list[dict]:
        command = execution.get("command")
        logger.info(f"[EXECUTE] Executing {command} on devices: {', '.join(map(str, device_ids))}")

        if command != COMMAND_ON_OFF:
            logger.warning(f"[EXECUTE] Unsupported command: {command}")
            return [{"ids": device_ids, "status": STATUS_ERROR, "errorCode": ERROR_NOT_SUPPORTED}]

        turn_on = (execution.get("params") or {}).get("on")
        if not isinstance(turn_on, bool):
            logger.warning(f"[EXECUTE] OnOff without a boolean 'on' param: {turn_on!r}")
            return [{"ids": device_ids, "status": STATUS_ERROR, "errorCode": ERROR_PROTOCOL}]

        mode = MODE_ON if turn_on else MODE_OFF
        outcomes = await asyncio.gather(
            *(self.gateway.set_work_mode(device, mode) for device in device_ids),
            return_exceptions=True,
        )

        results = []
        for device, outcome in zip(device_ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"[EXECUTE] Error executing command on device {device}: {outcome}")
                results.append({"ids": [device], "status": STATUS_ERROR, "errorCode": ERROR_HARD})
            else:
                results.append({"ids": [device], "status": STATUS_SUCCESS, "states": {"online": True, "on": turn_on}})
        return results

    async def handle_disconnect(self, request: dict, user_id: str | None = None) -> dict:
        """DISCONNECT: the user unlinked the account; nothing to clean up."""
        logger.info(f"[DISCONNECT] Account unlinked for subject: {user_id or self.default_agent_user_id}")
        return {"requestId": request.get("requestId"), "payload": {}}
