from __future__ import annotations

import itertools
import logging
from typing import Dict, List, Optional, Union

import httpx

from .errors import RPCError, ValidationError
from .signer import parse_serialized_signature
from .utils import b64encode

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_OPTIONS = {
    "showType": True,
    "showOwner": True,
    "showPreviousTransaction": False,
    "showDisplay": False,
    "showContent": False,
    "showBcs": False,
    "showStorageRebate": False,
}

DEFAULT_TRANSACTION_OPTIONS = {
    "showInput": True,
    "showRawInput": False,
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
    "showBalanceChanges": True,
}


class SuiClient(httpx.Client):
    """
    JSON-RPC client for the ledger query and transaction execution services.

    Every call takes an optional ``timeout`` overriding the client default, so
    a caller can bound it by its own deadline. Nothing is retried: transport
    failures, HTTP errors and JSON-RPC errors surface as RPCError.
    """

    def __init__(self, base_url, timeout=30, **kwargs):
        super(SuiClient, self).__init__(base_url=base_url, timeout=timeout, **kwargs)
        self.endpoint = str(base_url)
        self._request_id = itertools.count(1)

    def call(self, method: str, params: list, timeout=None):
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_id),
            "method": method,
            "params": params,
        }
        logger.debug(f"{method} -> {self.endpoint}")
        try:
            response = self.post(
                self.endpoint,
                json=payload,
                timeout=httpx.USE_CLIENT_DEFAULT if timeout is None else timeout,
            )
        except httpx.HTTPError as e:
            raise RPCError(f"{method} failed: {e}")

        if response.status_code >= 400:
            raise RPCError(response.text, response.status_code)
        try:
            response = response.json()
        except ValueError:
            raise RPCError(f"{method} returned a non JSON body")

        if "error" in response:
            error = response["error"]
            if not isinstance(error, dict):
                raise RPCError(f"{method}: {error}")
            raise RPCError(f"{method}: {error.get('message', error)}", code=error.get("code"))
        return response.get("result")

    # Ledger

    def get_epoch(self, timeout=None):
        return self.call("suix_getLatestSuiSystemState", [], timeout)

    def get_reference_gas_price(self, timeout=None) -> int:
        return int(self.call("suix_getReferenceGasPrice", [], timeout))

    def get_service_info(self, timeout=None) -> dict:
        return {
            "chainId": self.call("sui_getChainIdentifier", [], timeout),
            "checkpointHeight": int(self.call("sui_getLatestCheckpointSequenceNumber", [], timeout)),
        }

    def get_object(self, object_id: str, version: Optional[int] = None, options: dict = None, timeout=None):
        options = options or DEFAULT_OBJECT_OPTIONS
        if version is None:
            return self.call("sui_getObject", [object_id, options], timeout)
        return self.call("sui_tryGetPastObject", [object_id, int(version), options], timeout)

    def get_transaction(self, digest: str, options: dict = None, timeout=None):
        return self.call("sui_getTransactionBlock", [digest, options or DEFAULT_TRANSACTION_OPTIONS], timeout)

    def batch_get_objects(self, objects: Dict[str, Optional[int]], options: dict = None, timeout=None) -> list:
        """{object_id: version or None} -> results in the same order"""
        if not objects:
            raise ValidationError("objects cannot be empty")
        options = options or DEFAULT_OBJECT_OPTIONS
        latest = [k for k, v in objects.items() if v is None]
        past = [{"objectId": k, "version": str(v)} for k, v in objects.items() if v is not None]

        results = {}
        if latest:
            for object_id, result in zip(latest, self.call("sui_multiGetObjects", [latest, options], timeout)):
                results[object_id] = result
        if past:
            response = self.call("sui_tryMultiGetPastObjects", [past, options], timeout)
            for request, result in zip(past, response):
                results[request["objectId"]] = result
        return [results[k] for k in objects]

    def batch_get_transactions(self, digests: List[str], options: dict = None, timeout=None) -> list:
        if not digests:
            raise ValidationError("digests cannot be empty")
        return self.call(
            "sui_multiGetTransactionBlocks",
            [list(digests), options or DEFAULT_TRANSACTION_OPTIONS],
            timeout
        )

    # Move packages

    def get_package(self, package_id: str, timeout=None):
        return self.call("sui_getNormalizedMoveModulesByPackage", [package_id], timeout)

    def get_function(self, package_id: str, module: str, function: str, timeout=None):
        return self.call("sui_getNormalizedMoveFunction", [package_id, module, function], timeout)

    def get_datatype(self, package_id: str, module: str, name: str, timeout=None):
        return self.call("sui_getNormalizedMoveStruct", [package_id, module, name], timeout)

    # State

    def get_balance(self, owner: str, coin_type: str = None, timeout=None):
        return self.call("suix_getBalance", [owner, coin_type], timeout)

    def get_coin_info(self, coin_type: str, timeout=None):
        return self.call("suix_getCoinMetadata", [coin_type], timeout)

    def list_balances(self, owner: str, timeout=None):
        return self.call("suix_getAllBalances", [owner], timeout)

    def list_coins(self, owner: str, coin_type: str = None, page_size: int = None,
                   page_token: str = None, timeout=None):
        return self.call("suix_getCoins", [owner, coin_type, page_token, page_size], timeout)

    def list_owned_objects(self, owner: str, page_size: int = None, page_token: str = None,
                           options: dict = None, timeout=None):
        query = {"filter": None, "options": options or DEFAULT_OBJECT_OPTIONS}
        return self.call("suix_getOwnedObjects", [owner, query, page_token, page_size], timeout)

    def list_dynamic_fields(self, parent: str, page_size: int = None, page_token: str = None, timeout=None):
        return self.call("suix_getDynamicFields", [parent, page_token, page_size], timeout)

    # Execution

    def simulate_transaction(self, tx_bytes: Union[bytes, str], timeout=None):
        if isinstance(tx_bytes, (bytes, bytearray)):
            tx_bytes = b64encode(tx_bytes)
        return self.call("sui_dryRunTransactionBlock", [tx_bytes], timeout)

    def execute_transaction(
            self,
            tx_bytes: Union[bytes, str],
            signature: Union[bytes, str],
            options: dict = None,
            request_type: str = "WaitForLocalExecution",
            timeout=None,
    ):
        """
        :param request_type:
            WaitForEffectsCert: waits for TransactionEffectsCert and then return to client.
            WaitForLocalExecution: waits for TransactionEffectsCert and make sure the node
            executed the transaction locally before returning the client.
        """
        parsed = parse_serialized_signature(signature)
        if isinstance(tx_bytes, (bytes, bytearray)):
            tx_bytes = b64encode(tx_bytes)
        logger.info(f"Submitting transaction signed with {parsed.scheme.name}")
        return self.call(
            "sui_executeTransactionBlock",
            [tx_bytes, [b64encode(parsed.encode)], options or DEFAULT_TRANSACTION_OPTIONS, request_type],
            timeout
        )
