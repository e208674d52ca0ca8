"""
Rule sets and the condition compiler

A rule set holds three groups of predicates:

- ignores: a torrent matching any of them is left alone
- removes: a torrent matching any of them is removed
- labels: ordered named rules; the first whose predicates all match wins

A predicate is any callable taking a Torrent and returning a bool. Predicates
built from configuration are Condition / ConditionGroup objects which also
carry a readable ``expression`` for error messages.

Condition syntax (YAML):

    - {field: ratio, operator: '>=', value: 2.0}
    - any:
        - {field: label, operator: in, value: [tv, movies]}
        - {field: tracker_name, operator: contains, value: example}
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from torrent_lifecycle.errors import ConfigurationError, FieldError, OperatorError
from torrent_lifecycle.models import TORRENT_FIELDS, Torrent

Predicate = Callable[[Torrent], Any]

OPERATORS = ('==', '!=', '>', '<', '>=', '<=', 'contains', 'not_contains', 'matches', 'in', 'not_in')
GROUP_KEYS = ('all', 'any', 'none')

# Negative operators hold for an empty collection
NEGATIVE_OPERATORS = ('!=', 'not_contains', 'not_in')


@dataclass(frozen=True)
class LabelRule:
    """Named relabel rule; all updates must match"""
    name: str
    updates: Tuple[Predicate, ...] = ()


@dataclass(frozen=True)
class RuleSet:
    """Compiled ignore/remove/label predicates for one client"""
    ignores: Tuple[Predicate, ...] = ()
    removes: Tuple[Predicate, ...] = ()
    labels: Tuple[LabelRule, ...] = ()


def apply_operator(actual: Any, operator: str, expected: Any, field: str = '') -> bool:
    """
    Compare a torrent attribute with an expected value

    Args:
        actual: Attribute value from the torrent
        operator: Comparison operator
        expected: Value from the rule
        field: Field name (for error messages)

    Returns:
        Comparison result

    Raises:
        OperatorError: If operator is unknown
        TypeError: If values cannot be compared (e.g. str > float)
    """
    if operator not in OPERATORS:
        raise OperatorError(operator, field)

    # Collections (e.g. files) match if any item matches
    if isinstance(actual, (list, tuple)):
        if not actual:
            return operator in NEGATIVE_OPERATORS
        if operator in NEGATIVE_OPERATORS:
            return all(apply_operator(item, operator, expected, field) for item in actual)
        return any(apply_operator(item, operator, expected, field) for item in actual)

    if actual is None:
        return operator in NEGATIVE_OPERATORS

    if operator == '==':
        return actual == expected
    if operator == '!=':
        return actual != expected
    if operator == '>':
        return actual > expected
    if operator == '<':
        return actual < expected
    if operator == '>=':
        return actual >= expected
    if operator == '<=':
        return actual <= expected
    if operator == 'contains':
        return str(expected) in str(actual)
    if operator == 'not_contains':
        return str(expected) not in str(actual)
    if operator == 'matches':
        pattern = expected if isinstance(expected, re.Pattern) else re.compile(str(expected))
        return pattern.search(str(actual)) is not None
    if operator == 'in':
        if isinstance(expected, (list, tuple, set, frozenset)):
            return actual in expected
        return actual == expected
    # not_in
    if isinstance(expected, (list, tuple, set, frozenset)):
        return actual not in expected
    return actual != expected


class Condition:
    """Single field/operator/value comparison"""

    def __init__(self, field: str, operator: str, value: Any):
        if field not in TORRENT_FIELDS:
            raise FieldError(field, "Unknown torrent attribute", list(TORRENT_FIELDS))
        if operator not in OPERATORS:
            raise OperatorError(operator, field)

        self.field = field
        self.operator = operator
        self.value = value
        self._compare_to = value

        if operator == 'matches':
            try:
                self._compare_to = re.compile(str(value))
            except re.error as e:
                raise FieldError(field, f"Invalid regular expression {value!r}: {e}")

    @property
    def expression(self) -> str:
        return f"{self.field} {self.operator} {self.value!r}"

    def __call__(self, torrent: Torrent) -> bool:
        actual = getattr(torrent, self.field)
        return apply_operator(actual, self.operator, self._compare_to, self.field)

    def __repr__(self) -> str:
        return f"Condition({self.expression})"


class ConditionGroup:
    """Nested all/any/none block"""

    def __init__(self, kind: str, children: Sequence[Predicate]):
        self.kind = kind
        self.children = tuple(children)

    @property
    def expression(self) -> str:
        inner = ', '.join(getattr(c, 'expression', repr(c)) for c in self.children)
        return f"{self.kind}({inner})"

    def __call__(self, torrent: Torrent) -> bool:
        if self.kind == 'all':
            return all(child(torrent) for child in self.children)
        if self.kind == 'any':
            return any(child(torrent) for child in self.children)
        return not any(child(torrent) for child in self.children)

    def __repr__(self) -> str:
        return f"ConditionGroup({self.expression})"


def compile_condition(condition: Any, source: str = 'rules') -> Predicate:
    """
    Build a predicate from one condition block

    Args:
        condition: Dict with field/operator/value, or a single all/any/none key
        source: Location in config (for error messages)

    Returns:
        Callable predicate

    Raises:
        ConfigurationError: If the block has the wrong shape
        FieldError: If a field is unknown or a regex is invalid
        OperatorError: If an operator is unknown
    """
    if not isinstance(condition, dict):
        raise ConfigurationError(source, f"Condition must be a mapping, got {type(condition).__name__}")

    group_keys = [key for key in GROUP_KEYS if key in condition]
    if group_keys:
        if len(condition) != 1:
            raise ConfigurationError(source, f"Group '{group_keys[0]}' must be the only key in its block")
        kind = group_keys[0]
        return ConditionGroup(kind, compile_conditions(condition[kind], f"{source}.{kind}"))

    missing = [key for key in ('field', 'operator', 'value') if key not in condition]
    if missing:
        raise ConfigurationError(source, f"Condition missing required field(s): {', '.join(missing)}")

    return Condition(condition['field'], str(condition['operator']), condition['value'])


def compile_conditions(conditions: Any, source: str = 'rules') -> List[Predicate]:
    """Build predicates for a list of condition blocks"""
    if conditions is None:
        return []
    if not isinstance(conditions, list):
        raise ConfigurationError(source, "Conditions must be a list")
    return [compile_condition(c, f"{source}[{i}]") for i, c in enumerate(conditions)]


def compile_rule_set(filter_config: Optional[Dict[str, Any]], source: str = 'filters') -> RuleSet:
    """
    Build a RuleSet from a filter block

    Args:
        filter_config: Dict with optional 'ignore', 'remove' and 'label' keys
        source: Location in config (for error messages)

    Returns:
        Immutable RuleSet
    """
    filter_config = filter_config or {}
    if not isinstance(filter_config, dict):
        raise ConfigurationError(source, "Filter must be a mapping")

    labels = []
    label_blocks = filter_config.get('label') or []
    if not isinstance(label_blocks, list):
        raise ConfigurationError(source, "'label' must be a list")

    for i, block in enumerate(label_blocks):
        location = f"{source}.label[{i}]"
        if not isinstance(block, dict) or not block.get('name'):
            raise ConfigurationError(location, "Label rule missing required field: 'name'")
        updates = compile_conditions(block.get('update'), f"{location}.update")
        labels.append(LabelRule(name=str(block['name']), updates=tuple(updates)))

    return RuleSet(
        ignores=tuple(compile_conditions(filter_config.get('ignore'), f"{source}.ignore")),
        removes=tuple(compile_conditions(filter_config.get('remove'), f"{source}.remove")),
        labels=tuple(labels),
    )
