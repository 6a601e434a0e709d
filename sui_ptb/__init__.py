from .account import Account
from .bcs import (
    Argument, Bool, CallArg, Command, ObjectDigest, ObjectID, SuiAddress, TransactionData, TypeTag,
    U8, U16, U32, U64, U128, U256,
)
from .builder import BuilderState, TransactionBuilder
from .config import SuiConfig
from .engine import MoveCallArg, ObjectKind, TransactionArena, arg_bcs, arg_id, frame, unframe
from .errors import (
    EncodingError, RPCError, SignatureError, SimulationError, StateError, SuiPtbError, ValidationError,
)
from .gas import (
    GAS_BUDGET_BUFFER_DIVISOR, SUI_COIN_TYPE, GasPayment, ObjectReference, coin_type, estimate_gas_budget,
    owned_coins,
)
from .log import init_logger
from .pipeline import PipelineState, SplitCoinRequest, TransactionPipeline
from .signer import (
    SignatureScheme, SignedTransaction, parse_serialized_signature, sign_transaction, verify_signature,
)
from .sui_client import SuiClient
from .type_tag import parse_type_tag
