import unittest

from sui_ptb import (
    GAS_BUDGET_BUFFER_DIVISOR, SUI_COIN_TYPE, GasPayment, ObjectReference, SimulationError, ValidationError,
    coin_type, estimate_gas_budget, owned_coins,
)
from sui_ptb.gas import budget_from_cost, gas_cost, normal_type


def dry_run(status="success", computation="2700000", storage="270000", rebate="978120", error=None):
    result = {
        "effects": {
            "status": {"status": status},
            "gasUsed": {
                "computationCost": computation,
                "storageCost": storage,
                "storageRebate": rebate,
                "nonRefundableStorageFee": "9880",
            },
        }
    }
    if error is not None:
        result["effects"]["status"]["error"] = error
    return result


class TestGas(unittest.TestCase):

    def test_estimate(self):
        assert gas_cost(dry_run()) == 2_970_000
        assert estimate_gas_budget(dry_run()) == 3_267_000
        assert budget_from_cost(9) == 9
        assert budget_from_cost(100) == 100 + 100 // GAS_BUDGET_BUFFER_DIVISOR

    def test_rebate_ignored(self):
        assert estimate_gas_budget(dry_run(rebate="0")) == estimate_gas_budget(dry_run(rebate="99999999"))

    def test_simulation_failed(self):
        with self.assertRaises(SimulationError) as ctx:
            estimate_gas_budget(dry_run(status="failure", error="InsufficientGas"))
        assert "InsufficientGas" in str(ctx.exception)

        with self.assertRaises(SimulationError):
            estimate_gas_budget({})
        with self.assertRaises(SimulationError):
            estimate_gas_budget(dry_run(computation=None))
        with self.assertRaises(SimulationError):
            estimate_gas_budget(dry_run(storage="abc"))

    def test_coin_type(self):
        assert normal_type("0x2::sui::SUI") == SUI_COIN_TYPE
        assert coin_type() == coin_type("0x2::sui::SUI")
        assert coin_type().endswith("::coin::Coin<" + SUI_COIN_TYPE + ">")

    def test_owned_coins(self):
        page = {
            "data": [
                {"data": {"objectId": "0x1", "version": "3", "digest": "d1", "type": "0x2::coin::Coin<0x2::sui::SUI>"}},
                {"data": {"objectId": "0x2", "version": "4", "digest": "d2", "type": "0x2::coin::Coin<0x5::usdc::USDC>"}},
                {"data": {"objectId": "0x3", "version": "5", "digest": "d3", "type": "0x2::package::UpgradeCap"}},
                {"error": {"code": "deleted"}},
            ],
            "hasNextPage": False,
        }
        coins = owned_coins(page)
        assert [v["objectId"] for v in coins] == ["0x1"]
        assert [v["objectId"] for v in owned_coins(page, "0x5::usdc::USDC")] == ["0x2"]

        payment = GasPayment.from_coins(coins, "0xa", 1000, 5_000_000)
        assert payment.objects == [ObjectReference("0x1", 3, "d1")]
        assert payment.price == 1000

    def test_object_reference(self):
        ref = ObjectReference.from_object({"data": {"objectId": "0x1", "version": 7, "digest": "d"}})
        assert ref == ObjectReference("0x1", 7, "d")
        with self.assertRaises(ValidationError):
            ObjectReference.from_object({"data": {"objectId": "0x1"}})
