from __future__ import annotations

import logging
import re
from typing import List, NamedTuple

from .errors import SimulationError, ValidationError

logger = logging.getLogger(__name__)

# Safety buffer added on top of the simulated cost: estimated // 10.
GAS_BUDGET_BUFFER_DIVISOR = 10

SUI_COIN_TYPE = "0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI"
COIN_TYPE_PREFIX = "0x0000000000000000000000000000000000000000000000000000000000000002::coin::Coin"

_ADDRESS = re.compile(r"0x[0-9a-fA-F]{1,64}")


def normal_type(data: str) -> str:
    """
    0x2::coin::Coin<0x2::sui::SUI> ->
    0x00..02::coin::Coin<0x00..02::sui::SUI>
    """
    return _ADDRESS.sub(lambda m: "0x" + m.group(0)[2:].lower().rjust(64, "0"), data.replace(" ", ""))


def coin_type(inner: str = SUI_COIN_TYPE) -> str:
    return f"{COIN_TYPE_PREFIX}<{normal_type(inner)}>"


class ObjectReference(NamedTuple):
    object_id: str
    version: int
    digest: str

    @classmethod
    def from_object(cls, data: dict) -> ObjectReference:
        """From a ledger object: {"objectId": .., "version": .., "digest": ..}"""
        data = data.get("data", data)
        try:
            return cls(data["objectId"], int(data["version"]), data["digest"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Not an object reference: {data}")


class GasPayment(NamedTuple):
    objects: List[ObjectReference]
    owner: str
    price: int
    budget: int

    @classmethod
    def from_coins(cls, coins: List[dict], owner: str, price: int, budget: int) -> GasPayment:
        return cls([ObjectReference.from_object(v) for v in coins], owner, price, budget)


def owned_coins(owned_objects: dict, inner: str = SUI_COIN_TYPE) -> List[dict]:
    """Objects of a ListOwnedObjects page whose type is Coin<inner>"""
    expected = coin_type(inner)
    coins = []
    for item in owned_objects.get("data", []):
        data = item.get("data", item)
        object_type = data.get("type")
        if object_type is not None and normal_type(object_type) == expected:
            coins.append(data)
    return coins


def _cost(gas_used: dict, name: str) -> int:
    try:
        return int(gas_used[name])
    except (KeyError, TypeError, ValueError):
        raise SimulationError(f"Simulation result has no valid {name}")


def gas_cost(dry_run: dict) -> int:
    """computationCost + storageCost; the storage rebate is refunded after execution"""
    effects = (dry_run or {}).get("effects") or {}
    status = effects.get("status") or {}
    if status.get("status") != "success":
        raise SimulationError(f"simulation failed: {status.get('error', 'unknown error')}")
    gas_used = effects.get("gasUsed") or {}
    return _cost(gas_used, "computationCost") + _cost(gas_used, "storageCost")


def budget_from_cost(estimated_cost: int) -> int:
    return estimated_cost + estimated_cost // GAS_BUDGET_BUFFER_DIVISOR


def estimate_gas_budget(dry_run: dict) -> int:
    estimated_cost = gas_cost(dry_run)
    final_budget = budget_from_cost(estimated_cost)
    logger.info(f"Estimated gas cost {estimated_cost}, budget {final_budget}")
    return final_budget
