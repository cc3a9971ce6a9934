"""
Catalog of node types the runtime knows how to execute.

The catalog is what editors and validators see: one declarative entry per
type tag with its display metadata and port shapes. The executor registry
checks its own table against this catalog when it is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from .schema import DataType, PortDirection, PortSpec


@dataclass(frozen=True)
class CategoryInfo:
    label: str
    color: str
    description: str


@dataclass(frozen=True)
class NodeDefinition:
    type: str
    label: str
    category: str
    description: str
    inputs: Tuple[PortSpec, ...] = ()
    outputs: Tuple[PortSpec, ...] = ()

    def to_dict(self) -> Dict:
        return {
            'type': self.type,
            'label': self.label,
            'category': self.category,
            'description': self.description,
            'inputs': [p.to_dict() for p in self.inputs],
            'outputs': [p.to_dict() for p in self.outputs],
        }


def _in(port_id: str, data_type: DataType = DataType.ANY, required: bool = False, default=None) -> PortSpec:
    return PortSpec(port_id, port_id, PortDirection.INPUT, data_type.value, required, default)


def _out(port_id: str, data_type: DataType = DataType.ANY) -> PortSpec:
    return PortSpec(port_id, port_id, PortDirection.OUTPUT, data_type.value)


CATEGORY_INFO: Dict[str, CategoryInfo] = {
    'rpc': CategoryInfo('RPC', '#14F195', 'Read-only queries against the Solana RPC node'),
    'wallet': CategoryInfo('Wallet', '#9945FF', 'Local signer presence'),
    'math': CategoryInfo('Math', '#00C2FF', 'Arithmetic and unit conversion'),
    'logic': CategoryInfo('Logic', '#FFB800', 'Comparisons and boolean logic'),
    'input': CategoryInfo('Input', '#FF6B6B', 'Literal values'),
    'output': CategoryInfo('Output', '#4ADE80', 'Emit values to the output sink'),
    'utility': CategoryInfo('Utility', '#A0AEC0', 'Delays and JSON helpers'),
}

_N = DataType.NUMBER
_S = DataType.STRING
_B = DataType.BOOLEAN
_K = DataType.PUBLIC_KEY
_O = DataType.OBJECT

NODE_DEFINITIONS: Tuple[NodeDefinition, ...] = (
    NodeDefinition('rpc-connection', 'RPC Connection', 'rpc', 'Expose the run RPC endpoint',
                   outputs=(_out('connection', DataType.CONNECTION), _out('endpoint', _S))),
    NodeDefinition('get-balance', 'Get Balance', 'rpc', 'Account balance in SOL and lamports',
                   inputs=(_in('publicKey', _K, required=True),),
                   outputs=(_out('balance', _N), _out('lamports', _N))),
    NodeDefinition('get-account-info', 'Get Account Info', 'rpc', 'Account metadata',
                   inputs=(_in('publicKey', _K, required=True),),
                   outputs=(_out('accountInfo', _O), _out('owner', _K), _out('lamports', _N))),
    NodeDefinition('get-slot', 'Get Slot', 'rpc', 'Current slot',
                   outputs=(_out('slot', _N),)),
    NodeDefinition('get-block-height', 'Get Block Height', 'rpc', 'Current block height',
                   outputs=(_out('blockHeight', _N),)),
    NodeDefinition('get-recent-blockhash', 'Get Recent Blockhash', 'rpc', 'Latest blockhash',
                   outputs=(_out('blockhash', _S), _out('lastValidBlockHeight', _N))),
    NodeDefinition('wallet-connect', 'Wallet Connect', 'wallet', 'Report whether a local signer is configured',
                   outputs=(_out('publicKey', _K), _out('connected', _B))),
    NodeDefinition('math-add', 'Add', 'math', 'a + b',
                   inputs=(_in('a', _N), _in('b', _N)), outputs=(_out('result', _N),)),
    NodeDefinition('math-subtract', 'Subtract', 'math', 'a - b',
                   inputs=(_in('a', _N), _in('b', _N)), outputs=(_out('result', _N),)),
    NodeDefinition('math-multiply', 'Multiply', 'math', 'a * b',
                   inputs=(_in('a', _N), _in('b', _N)), outputs=(_out('result', _N),)),
    NodeDefinition('math-divide', 'Divide', 'math', 'a / b, failing on a zero divisor',
                   inputs=(_in('a', _N), _in('b', _N, default=1)), outputs=(_out('result', _N),)),
    NodeDefinition('lamports-to-sol', 'Lamports to SOL', 'math', 'Convert lamports to SOL',
                   inputs=(_in('lamports', _N),), outputs=(_out('sol', _N),)),
    NodeDefinition('sol-to-lamports', 'SOL to Lamports', 'math', 'Convert SOL to lamports',
                   inputs=(_in('sol', _N),), outputs=(_out('lamports', _N),)),
    NodeDefinition('logic-compare', 'Compare', 'logic', 'Equality and ordering of a and b',
                   inputs=(_in('a'), _in('b')),
                   outputs=(_out('equal', _B), _out('greater', _B), _out('less', _B))),
    NodeDefinition('logic-and', 'AND', 'logic', 'a and b',
                   inputs=(_in('a', _B), _in('b', _B)), outputs=(_out('result', _B),)),
    NodeDefinition('logic-or', 'OR', 'logic', 'a or b',
                   inputs=(_in('a', _B), _in('b', _B)), outputs=(_out('result', _B),)),
    NodeDefinition('logic-not', 'NOT', 'logic', 'not a',
                   inputs=(_in('a', _B),), outputs=(_out('result', _B),)),
    NodeDefinition('logic-switch', 'Switch', 'logic', 'Select trueValue or falseValue by condition',
                   inputs=(_in('condition', _B), _in('trueValue'), _in('falseValue')),
                   outputs=(_out('result'),)),
    NodeDefinition('input-string', 'String', 'input', 'Literal string',
                   inputs=(_in('value', _S),), outputs=(_out('value', _S),)),
    NodeDefinition('input-number', 'Number', 'input', 'Literal number',
                   inputs=(_in('value', _N),), outputs=(_out('value', _N),)),
    NodeDefinition('input-publickey', 'Public Key', 'input', 'Validated account address',
                   inputs=(_in('value', _S, required=True),), outputs=(_out('publicKey', _K),)),
    NodeDefinition('input-boolean', 'Boolean', 'input', 'Literal boolean',
                   inputs=(_in('value', _B),), outputs=(_out('value', _B),)),
    NodeDefinition('output-display', 'Display', 'output', 'Emit a value to the output sink',
                   inputs=(_in('value'),), outputs=(_out('value'),)),
    NodeDefinition('output-log', 'Log', 'output', 'Emit a labelled value to the output sink',
                   inputs=(_in('value'), _in('label', _S)), outputs=(_out('value'),)),
    NodeDefinition('utility-delay', 'Delay', 'utility', 'Wait ms milliseconds, then pass input through',
                   inputs=(_in('input'), _in('ms', _N, default=1000)), outputs=(_out('output'),)),
    NodeDefinition('utility-json-parse', 'JSON Parse', 'utility', 'Parse a JSON string',
                   inputs=(_in('json', _S, required=True),), outputs=(_out('object', _O),)),
    NodeDefinition('utility-json-stringify', 'JSON Stringify', 'utility', 'Serialize a value to JSON',
                   inputs=(_in('object'),), outputs=(_out('json', _S),)),
    NodeDefinition('utility-get-property', 'Get Property', 'utility', 'Read one field of an object',
                   inputs=(_in('object', _O), _in('key', _S, required=True)), outputs=(_out('value'),)),
)

_DEFINITIONS_BY_TYPE: Dict[str, NodeDefinition] = {d.type: d for d in NODE_DEFINITIONS}


def known_node_types() -> FrozenSet[str]:
    return frozenset(_DEFINITIONS_BY_TYPE)


def list_node_definitions(category: Optional[str] = None) -> List[NodeDefinition]:
    if not category:
        return list(NODE_DEFINITIONS)
    wanted = category.lower()
    return [d for d in NODE_DEFINITIONS if d.category == wanted]


def group_by_category(definitions: List[NodeDefinition]) -> Dict[str, List[NodeDefinition]]:
    grouped: Dict[str, List[NodeDefinition]] = {}
    for definition in definitions:
        grouped.setdefault(definition.category, []).append(definition)
    return grouped
