"""
Registered node executors for the graph runtime.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import operator
from decimal import Decimal
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Type

from flow_control import SinkRecord
from rpc_client import RpcHandle

from .catalog import known_node_types
from .constants import LAMPORTS_PER_SOL, NodeDefaults
from .context import ExecutionContext
from .errors import NodeExecutionError, UnknownNodeType, WorkflowError
from .values import as_number, as_text, compact_dumps, is_account_id, is_truthy, kind_of

logger = logging.getLogger(__name__)

Inputs = Dict[str, Any]


def _normalize_decimal(value: Decimal):
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _finite_decimal(amount, unit: str) -> Decimal:
    value = Decimal(str(amount))
    if not value.is_finite():
        raise NodeExecutionError(f"{unit} amount must be a finite number, got {amount}")
    return value


def lamports_to_sol(lamports) -> float:
    return _normalize_decimal(_finite_decimal(lamports, "Lamport") / LAMPORTS_PER_SOL)


def sol_to_lamports(sol):
    return _normalize_decimal(_finite_decimal(sol, "SOL") * LAMPORTS_PER_SOL)


def _normalize_number(number):
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


class BaseNodeExecutor:
    """Base class for all node executors."""
    node_type: str

    async def run(self, inputs: Inputs, ctx: ExecutionContext, rpc: RpcHandle, node_id: str = '') -> Any:
        raise NotImplementedError

    @staticmethod
    def _require_account_id(inputs: Inputs, name: str) -> str:
        key = inputs.get(name)
        if not is_account_id(key):
            raise NodeExecutionError(f"Invalid public key: {key!r}")
        return key


# ============================================================================
# RPC queries
# ============================================================================

class RpcConnectionNodeExecutor(BaseNodeExecutor):
    node_type = 'rpc-connection'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'connection': True, 'endpoint': ctx.rpc_endpoint}


class GetBalanceNodeExecutor(BaseNodeExecutor):
    node_type = 'get-balance'

    async def run(self, inputs, ctx, rpc, node_id=''):
        public_key = self._require_account_id(inputs, 'publicKey')
        lamports = await rpc.get_balance(public_key)
        return {'balance': lamports_to_sol(lamports), 'lamports': lamports}


class GetAccountInfoNodeExecutor(BaseNodeExecutor):
    node_type = 'get-account-info'

    async def run(self, inputs, ctx, rpc, node_id=''):
        public_key = self._require_account_id(inputs, 'publicKey')
        account = await rpc.get_account_info(public_key)

        if not account:
            return {'accountInfo': None, 'owner': None, 'lamports': 0}

        return {
            'accountInfo': {
                'executable': account.get('executable', False),
                'owner': account.get('owner'),
                'lamports': account.get('lamports', 0),
                'rentEpoch': account.get('rentEpoch'),
            },
            'owner': account.get('owner'),
            'lamports': account.get('lamports', 0),
        }


class GetSlotNodeExecutor(BaseNodeExecutor):
    node_type = 'get-slot'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'slot': await rpc.get_slot()}


class GetBlockHeightNodeExecutor(BaseNodeExecutor):
    node_type = 'get-block-height'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'blockHeight': await rpc.get_block_height()}


class GetRecentBlockhashNodeExecutor(BaseNodeExecutor):
    node_type = 'get-recent-blockhash'

    async def run(self, inputs, ctx, rpc, node_id=''):
        latest = await rpc.get_latest_blockhash()
        return {
            'blockhash': latest['blockhash'],
            'lastValidBlockHeight': latest['lastValidBlockHeight'],
        }


# ============================================================================
# Identity
# ============================================================================

class WalletConnectNodeExecutor(BaseNodeExecutor):
    """Reports signer presence only; never touches key material or the network."""
    node_type = 'wallet-connect'

    async def run(self, inputs, ctx, rpc, node_id=''):
        if ctx.has_signer:
            return {'publicKey': 'keypair-provided', 'connected': True}
        return {'publicKey': None, 'connected': False}


# ============================================================================
# Arithmetic & unit conversion
# ============================================================================

class ArithmeticNodeExecutor(BaseNodeExecutor):
    """
    Binary arithmetic over ``a`` and ``b``.

    Operands that are not numeric are read as zero rather than rejected.
    """
    operation: Callable[[Any, Any], Any]

    def operands(self, inputs: Inputs):
        return as_number(inputs.get('a')), as_number(inputs.get('b'))

    async def run(self, inputs, ctx, rpc, node_id=''):
        a, b = self.operands(inputs)
        return {'result': _normalize_number(type(self).operation(a, b))}


class AddNodeExecutor(ArithmeticNodeExecutor):
    node_type = 'math-add'
    operation = operator.add


class SubtractNodeExecutor(ArithmeticNodeExecutor):
    node_type = 'math-subtract'
    operation = operator.sub


class MultiplyNodeExecutor(ArithmeticNodeExecutor):
    node_type = 'math-multiply'
    operation = operator.mul


class DivideNodeExecutor(ArithmeticNodeExecutor):
    node_type = 'math-divide'
    operation = operator.truediv

    def operands(self, inputs: Inputs):
        divisor = inputs.get('b')
        b = NodeDefaults.DIVISOR if divisor is None else as_number(divisor)
        return as_number(inputs.get('a')), b

    async def run(self, inputs, ctx, rpc, node_id=''):
        a, b = self.operands(inputs)
        if b == 0:
            raise NodeExecutionError('Division by zero')
        result = type(self).operation(a, b)
        if not math.isfinite(result):
            raise NodeExecutionError(f"Division produced a non-finite result: {a} / {b}")
        return {'result': _normalize_number(result)}


class LamportsToSolNodeExecutor(BaseNodeExecutor):
    node_type = 'lamports-to-sol'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'sol': lamports_to_sol(as_number(inputs.get('lamports')))}


class SolToLamportsNodeExecutor(BaseNodeExecutor):
    node_type = 'sol-to-lamports'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'lamports': sol_to_lamports(as_number(inputs.get('sol')))}


# ============================================================================
# Logic
# ============================================================================

def _strictly_equal(a: Any, b: Any) -> bool:
    # 1 and True are different values for the compare node
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


class CompareNodeExecutor(BaseNodeExecutor):
    node_type = 'logic-compare'

    async def run(self, inputs, ctx, rpc, node_id=''):
        a, b = inputs.get('a'), inputs.get('b')
        a_num, b_num = as_number(a, default=math.nan), as_number(b, default=math.nan)
        return {
            'equal': _strictly_equal(a, b),
            'greater': a_num > b_num,
            'less': a_num < b_num,
        }


class AndNodeExecutor(BaseNodeExecutor):
    node_type = 'logic-and'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'result': is_truthy(inputs.get('a')) and is_truthy(inputs.get('b'))}


class OrNodeExecutor(BaseNodeExecutor):
    node_type = 'logic-or'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'result': is_truthy(inputs.get('a')) or is_truthy(inputs.get('b'))}


class NotNodeExecutor(BaseNodeExecutor):
    node_type = 'logic-not'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'result': not is_truthy(inputs.get('a'))}


class SwitchNodeExecutor(BaseNodeExecutor):
    node_type = 'logic-switch'

    async def run(self, inputs, ctx, rpc, node_id=''):
        chosen = 'trueValue' if is_truthy(inputs.get('condition')) else 'falseValue'
        return {'result': inputs.get(chosen)}


# ============================================================================
# Literal inputs
# ============================================================================

class StringInputNodeExecutor(BaseNodeExecutor):
    node_type = 'input-string'

    async def run(self, inputs, ctx, rpc, node_id=''):
        value = inputs.get('value')
        return {'value': as_text(value) if is_truthy(value) else ''}


class NumberInputNodeExecutor(BaseNodeExecutor):
    node_type = 'input-number'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'value': as_number(inputs.get('value'))}


class PublicKeyInputNodeExecutor(BaseNodeExecutor):
    node_type = 'input-publickey'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'publicKey': self._require_account_id(inputs, 'value')}


class BooleanInputNodeExecutor(BaseNodeExecutor):
    node_type = 'input-boolean'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'value': is_truthy(inputs.get('value'))}


# ============================================================================
# Output sinks
# ============================================================================

class OutputNodeExecutor(BaseNodeExecutor):
    """
    Emits ``value`` to the context's sink and forwards it unchanged.

    The forwarded value is the raw input rather than a wrapper record, so
    downstream edges read it like any other result: a scalar is taken whole,
    while a record or list is indexed by the edge's source handle.
    """
    default_label: str

    def label_for(self, inputs: Inputs) -> str:
        return self.default_label

    async def run(self, inputs, ctx, rpc, node_id=''):
        value = inputs.get('value')
        record = SinkRecord(
            node_id=node_id,
            label=self.label_for(inputs),
            value=value,
            sequence_num=len(ctx.results),
            metadata={'node_type': self.node_type, 'kind': kind_of(value).value},
        )
        await ctx.sink.emit(record)
        return value


class DisplayOutputNodeExecutor(OutputNodeExecutor):
    node_type = 'output-display'
    default_label = NodeDefaults.DISPLAY_LABEL


class LogOutputNodeExecutor(OutputNodeExecutor):
    node_type = 'output-log'
    default_label = NodeDefaults.LOG_LABEL

    def label_for(self, inputs: Inputs) -> str:
        label = inputs.get('label')
        return as_text(label) if is_truthy(label) else self.default_label


# ============================================================================
# Utilities
# ============================================================================

class DelayNodeExecutor(BaseNodeExecutor):
    node_type = 'utility-delay'

    async def run(self, inputs, ctx, rpc, node_id=''):
        ms = as_number(inputs.get('ms')) or NodeDefaults.DELAY_MS
        logger.debug("Delay node %s sleeping %sms", node_id, ms)
        await asyncio.sleep(max(ms, 0) / 1000)
        return {'output': inputs.get('input')}


class JsonParseNodeExecutor(BaseNodeExecutor):
    node_type = 'utility-json-parse'

    async def run(self, inputs, ctx, rpc, node_id=''):
        text = inputs.get('json')
        if not isinstance(text, str):
            raise NodeExecutionError(f"json input must be a string, got {type(text).__name__}")
        try:
            return {'object': json.loads(text)}
        except json.JSONDecodeError as exc:
            raise NodeExecutionError(f"Invalid JSON: {exc}") from exc


class JsonStringifyNodeExecutor(BaseNodeExecutor):
    node_type = 'utility-json-stringify'

    async def run(self, inputs, ctx, rpc, node_id=''):
        return {'json': compact_dumps(inputs.get('object'))}


class GetPropertyNodeExecutor(BaseNodeExecutor):
    node_type = 'utility-get-property'

    async def run(self, inputs, ctx, rpc, node_id=''):
        obj = inputs.get('object')
        key = as_text(inputs.get('key'))
        if isinstance(obj, Mapping):
            return {'value': obj.get(key)}
        if isinstance(obj, list) and key.isdecimal() and int(key) < len(obj):
            return {'value': obj[int(key)]}
        return {'value': None}


EXECUTOR_CLASSES: tuple = (
    RpcConnectionNodeExecutor,
    GetBalanceNodeExecutor,
    GetAccountInfoNodeExecutor,
    GetSlotNodeExecutor,
    GetBlockHeightNodeExecutor,
    GetRecentBlockhashNodeExecutor,
    WalletConnectNodeExecutor,
    AddNodeExecutor,
    SubtractNodeExecutor,
    MultiplyNodeExecutor,
    DivideNodeExecutor,
    LamportsToSolNodeExecutor,
    SolToLamportsNodeExecutor,
    CompareNodeExecutor,
    AndNodeExecutor,
    OrNodeExecutor,
    NotNodeExecutor,
    SwitchNodeExecutor,
    StringInputNodeExecutor,
    NumberInputNodeExecutor,
    PublicKeyInputNodeExecutor,
    BooleanInputNodeExecutor,
    DisplayOutputNodeExecutor,
    LogOutputNodeExecutor,
    DelayNodeExecutor,
    JsonParseNodeExecutor,
    JsonStringifyNodeExecutor,
    GetPropertyNodeExecutor,
)


class NodeExecutorRegistry:
    """
    Closed table from node type tag to executor.

    The table is checked against the node catalog when it is built, so a
    catalog entry without an executor (or the reverse) fails at startup
    instead of at the first run that happens to use it.
    """

    def __init__(
        self,
        executor_classes: Iterable[Type[BaseNodeExecutor]] = EXECUTOR_CLASSES,
        expected_types: Optional[Iterable[str]] = None,
    ):
        self._executors: Dict[str, BaseNodeExecutor] = {}
        for cls in executor_classes:
            if cls.node_type in self._executors:
                raise ValueError(f"Duplicate executor for node type: {cls.node_type}")
            self._executors[cls.node_type] = cls()

        expected = known_node_types() if expected_types is None else frozenset(expected_types)
        missing = expected - self._executors.keys()
        unexpected = self._executors.keys() - expected
        if missing or unexpected:
            raise ValueError(
                f"Executor table does not match catalog (missing={sorted(missing)}, "
                f"unexpected={sorted(unexpected)})"
            )

    @property
    def known_types(self) -> FrozenSet[str]:
        return frozenset(self._executors)

    def get(self, node_type: str, node_id: Optional[str] = None) -> BaseNodeExecutor:
        if node_type not in self._executors:
            raise UnknownNodeType(node_type, node_id=node_id)
        return self._executors[node_type]

    async def dispatch(
        self,
        node_type: str,
        inputs: Inputs,
        ctx: ExecutionContext,
        rpc: RpcHandle,
        node_id: str = '',
    ) -> Any:
        """
        Run the executor for ``node_type``.

        Raises:
            UnknownNodeType: no executor is registered for the tag.
            NodeExecutionError: the executor failed; foreign exceptions are
                wrapped with the original chained as the cause.
        """
        executor = self.get(node_type, node_id=node_id)
        try:
            return await executor.run(inputs, ctx, rpc, node_id)
        except WorkflowError as exc:
            if exc.node_id is None:
                exc.node_id = node_id
            if isinstance(exc, NodeExecutionError) and exc.node_type is None:
                exc.node_type = node_type
            raise
        except Exception as exc:
            raise NodeExecutionError(str(exc) or type(exc).__name__, node_id=node_id, node_type=node_type) from exc
