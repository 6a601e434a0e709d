"""
Build, estimate, sign and submit one transaction.

    CONFIGURING -> DRAFT_BUILT -> SIMULATED -> BUDGET_FINALIZED
                -> REBUILT -> SIGNED -> SUBMITTED

The budget is part of the signed bytes, so the transaction is rebuilt with
the estimated budget rather than patched. ``compose`` issues the commands on
a fresh builder for each build, keeping both builds otherwise identical.
"""
from __future__ import annotations

import enum
import logging
import time
from typing import Callable, NamedTuple, Optional

from .account import Account
from .bcs import SuiAddress
from .builder import TransactionBuilder
from .errors import RPCError, StateError, ValidationError
from .gas import GasPayment, ObjectReference, estimate_gas_budget
from .signer import SignedTransaction, sign_transaction
from .sui_client import SuiClient

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    CONFIGURING = "configuring"
    DRAFT_BUILT = "draft_built"
    SIMULATED = "simulated"
    BUDGET_FINALIZED = "budget_finalized"
    REBUILT = "rebuilt"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    FAILED = "failed"


class TransactionPipeline:
    def __init__(
            self,
            client: SuiClient,
            account: Account,
            compose: Callable[[TransactionBuilder], None],
            gas_payment: GasPayment,
            sender: str = None,
            timeout: float = None,
    ):
        self.client = client
        self.account = account
        self.compose = compose
        self.gas_payment = gas_payment
        self.sender = sender or gas_payment.owner
        if SuiAddress(self.sender) != SuiAddress(gas_payment.owner):
            raise ValidationError(f"Sender {self.sender} does not own the gas payment of {gas_payment.owner}")
        self.deadline = None if timeout is None else time.monotonic() + timeout

        self.state = PipelineState.CONFIGURING
        self.draft_bytes: Optional[bytes] = None
        self.dry_run: Optional[dict] = None
        self.gas_budget: Optional[int] = None
        self.tx_bytes: Optional[bytes] = None
        self.signed: Optional[SignedTransaction] = None
        self.response: Optional[dict] = None

    def _remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise RPCError("deadline exceeded")
        return remaining

    def _advance(self, expected: PipelineState, target: PipelineState, step: Callable[[], None]):
        if self.state != expected:
            raise StateError(f"Pipeline is {self.state.value}, expected {expected.value}")
        try:
            step()
        except Exception as e:
            self.state = PipelineState.FAILED
            logger.error(f"{target.value} failed: {e}")
            raise
        self.state = target
        logger.info(f"Pipeline {target.value}")

    def _build(self, gas_budget: int) -> bytes:
        with TransactionBuilder() as builder:
            builder.set_config(self.sender, gas_budget, self.gas_payment.price)
            for ref in self.gas_payment.objects:
                builder.add_gas_object(ref.object_id, ref.version, ref.digest)
            self.compose(builder)
            return builder.build()

    def build_draft(self) -> bytes:
        def step():
            self.draft_bytes = self._build(self.gas_payment.budget)

        self._advance(PipelineState.CONFIGURING, PipelineState.DRAFT_BUILT, step)
        return self.draft_bytes

    def simulate(self) -> dict:
        def step():
            self.dry_run = self.client.simulate_transaction(self.draft_bytes, timeout=self._remaining())

        self._advance(PipelineState.DRAFT_BUILT, PipelineState.SIMULATED, step)
        return self.dry_run

    def finalize_budget(self) -> int:
        def step():
            self.gas_budget = estimate_gas_budget(self.dry_run)

        self._advance(PipelineState.SIMULATED, PipelineState.BUDGET_FINALIZED, step)
        return self.gas_budget

    def rebuild(self) -> bytes:
        def step():
            self.tx_bytes = self._build(self.gas_budget)

        self._advance(PipelineState.BUDGET_FINALIZED, PipelineState.REBUILT, step)
        return self.tx_bytes

    def sign(self) -> SignedTransaction:
        def step():
            self.signed = sign_transaction(self.tx_bytes, self.account)

        self._advance(PipelineState.REBUILT, PipelineState.SIGNED, step)
        return self.signed

    def submit(self) -> dict:
        def step():
            self.response = self.client.execute_transaction(
                self.signed.tx_bytes,
                self.signed.signature,
                timeout=self._remaining()
            )

        self._advance(PipelineState.SIGNED, PipelineState.SUBMITTED, step)
        status = ((self.response or {}).get("effects") or {}).get("status") or {}
        if status.get("status") not in (None, "success"):
            logger.warning(f"Transaction executed with status {status}")
        return self.response

    def run(self) -> dict:
        self.build_draft()
        self.simulate()
        self.finalize_budget()
        self.rebuild()
        self.sign()
        return self.submit()


class SplitCoinRequest(NamedTuple):
    """Split ``amount`` off the gas coin and transfer the new coin to ``recipient``"""
    sender: str
    recipient: str
    gas_budget: int
    gas_price: int
    amount: int
    gas_coin: ObjectReference

    def compose(self, builder: TransactionBuilder):
        gas = builder.gas_argument()
        amount = builder.pure_u64(self.amount)
        base = builder.split_coins(gas, [amount])
        coin = builder.nested_result(base, 0)
        recipient = builder.pure_address(self.recipient)
        builder.transfer_objects([coin], recipient)

    def gas_payment(self) -> GasPayment:
        return GasPayment([self.gas_coin], self.sender, self.gas_price, self.gas_budget)

    def pipeline(self, client: SuiClient, account: Account, timeout: float = None) -> TransactionPipeline:
        return TransactionPipeline(client, account, self.compose, self.gas_payment(), self.sender, timeout)

    def sign_execute(self, client: SuiClient, account: Account, timeout: float = None) -> dict:
        return self.pipeline(client, account, timeout).run()
