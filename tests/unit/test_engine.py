"""Tests for the policy engine."""

from unittest.mock import Mock

import pytest

from torrent_lifecycle.engine import (
    PolicyEngine,
    check_all_match,
    check_single_match,
    describe_predicate,
    evaluate_predicate,
)
from torrent_lifecycle.errors import PredicateEvalError, PredicateTypeError
from torrent_lifecycle.rules import LabelRule, RuleSet, compile_condition


def always(result):
    return lambda torrent: result


class TestEvaluatePredicate:

    def test_boolean_result(self, make_torrent):
        assert evaluate_predicate(make_torrent(), always(True)) is True
        assert evaluate_predicate(make_torrent(), always(False)) is False

    def test_non_boolean_result(self, make_torrent):
        with pytest.raises(PredicateTypeError) as exc_info:
            evaluate_predicate(make_torrent(), always(1))

        assert exc_info.value.code == 'PRED-002'
        assert exc_info.value.result == 1
        assert 'int' in str(exc_info.value)

    def test_none_is_not_false(self, make_torrent):
        with pytest.raises(PredicateTypeError):
            evaluate_predicate(make_torrent(), always(None))

    def test_raising_predicate(self, make_torrent):
        def broken(torrent):
            raise KeyError('missing')

        with pytest.raises(PredicateEvalError) as exc_info:
            evaluate_predicate(make_torrent(hash='h1'), broken)

        error = exc_info.value
        assert error.code == 'PRED-001'
        assert error.torrent_hash == 'h1'
        assert error.rule == 'broken'
        assert isinstance(error.__cause__, KeyError)

    def test_type_mismatch_in_compiled_condition(self, make_torrent):
        predicate = compile_condition({'field': 'name', 'operator': '>', 'value': 5})

        with pytest.raises(PredicateEvalError) as exc_info:
            evaluate_predicate(make_torrent(), predicate)

        assert exc_info.value.rule == "name > 5"
        assert 'TypeError' in str(exc_info.value)


class TestDescribePredicate:

    def test_expression_preferred(self):
        predicate = compile_condition({'field': 'ratio', 'operator': '>', 'value': 1})
        assert describe_predicate(predicate) == 'ratio > 1'

    def test_function_name(self):
        def old_enough(torrent):
            return True
        assert describe_predicate(old_enough) == 'old_enough'


class TestMatching:

    def test_single_match_short_circuits(self, make_torrent):
        second = Mock(return_value=False)

        assert check_single_match(make_torrent(), [always(True), second]) is True
        second.assert_not_called()

    def test_single_match_empty(self, make_torrent):
        assert check_single_match(make_torrent(), []) is False

    def test_single_match_none_matching(self, make_torrent):
        assert check_single_match(make_torrent(), [always(False), always(False)]) is False

    def test_all_match_short_circuits(self, make_torrent):
        second = Mock(return_value=True)

        assert check_all_match(make_torrent(), [always(False), second]) is False
        second.assert_not_called()

    def test_all_match_empty(self, make_torrent):
        assert check_all_match(make_torrent(), []) is True

    def test_later_fault_not_reached(self, make_torrent):
        # A broken predicate after a match is never evaluated
        assert check_single_match(make_torrent(), [always(True), always('yes')]) is True

    def test_fault_before_match_propagates(self, make_torrent):
        with pytest.raises(PredicateTypeError):
            check_single_match(make_torrent(), [always('yes'), always(True)])


class TestPolicyEngine:

    def test_ignore_and_remove(self, make_torrent):
        engine = PolicyEngine(RuleSet(
            ignores=(compile_condition({'field': 'downloaded', 'operator': '==', 'value': False}),),
            removes=(compile_condition({'field': 'ratio', 'operator': '>=', 'value': 2.0}),),
        ))

        assert engine.should_ignore(make_torrent(state='stalledDL')) is True
        assert engine.should_ignore(make_torrent(state='uploading')) is False
        assert engine.should_remove(make_torrent(ratio=2.5)) is True
        assert engine.should_remove(make_torrent(ratio=0.5)) is False

    def test_empty_rule_set_decides_nothing(self, make_torrent):
        engine = PolicyEngine(RuleSet())
        torrent = make_torrent()

        assert engine.should_ignore(torrent) is False
        assert engine.should_remove(torrent) is False
        assert engine.should_relabel(torrent) == ('', False)

    def test_first_matching_label_wins(self, make_torrent):
        later = Mock(return_value=True)
        engine = PolicyEngine(RuleSet(labels=(
            LabelRule('nope', (always(True), always(False))),
            LabelRule('first', (always(True),)),
            LabelRule('second', (later,)),
        )))

        assert engine.should_relabel(make_torrent()) == ('first', True)
        later.assert_not_called()

    def test_reordering_labels_changes_winner(self, make_torrent):
        first = LabelRule('first', (always(True),))
        second = LabelRule('second', (always(True),))

        assert PolicyEngine(RuleSet(labels=(first, second))).should_relabel(make_torrent()) == ('first', True)
        assert PolicyEngine(RuleSet(labels=(second, first))).should_relabel(make_torrent()) == ('second', True)

    def test_label_with_no_updates_always_matches(self, make_torrent):
        engine = PolicyEngine(RuleSet(labels=(LabelRule('catch-all'),)))
        assert engine.should_relabel(make_torrent()) == ('catch-all', True)

    def test_fault_names_the_decision(self, make_torrent):
        engine = PolicyEngine(RuleSet(labels=(LabelRule('archive', (always(3),)),)))

        with pytest.raises(PredicateTypeError) as exc_info:
            engine.should_relabel(make_torrent())

        assert exc_info.value.details['Decision'] == 'label:archive'
        assert 'label:archive' in str(exc_info.value)

    def test_fault_in_remove_is_not_a_decision(self, make_torrent):
        engine = PolicyEngine(RuleSet(removes=(always('true'),)))

        with pytest.raises(PredicateEvalError) as exc_info:
            engine.should_remove(make_torrent())

        assert exc_info.value.details['Decision'] == 'remove'
