"""
Policy evaluation engine

Evaluates a RuleSet against a Torrent record to decide whether the torrent
is ignored, removed or relabeled. Predicate faults are reported, never
replaced by a default decision.
"""

from typing import Iterable, Tuple

from torrent_lifecycle.errors import LifecycleError, PredicateEvalError, PredicateTypeError
from torrent_lifecycle.logging import get_logger
from torrent_lifecycle.models import Torrent
from torrent_lifecycle.rules import Predicate, RuleSet

logger = get_logger(__name__)


def describe_predicate(predicate: Predicate) -> str:
    """Readable form of a predicate for error messages"""
    return getattr(predicate, 'expression', None) or getattr(predicate, '__name__', None) or repr(predicate)


def evaluate_predicate(torrent: Torrent, predicate: Predicate) -> bool:
    """
    Run one predicate against a torrent

    Raises:
        PredicateTypeError: If the predicate returns a non-boolean
        PredicateEvalError: If the predicate raises
    """
    try:
        result = predicate(torrent)
    except PredicateEvalError:
        raise
    except Exception as e:
        raise PredicateEvalError(torrent.hash, describe_predicate(predicate), f"{type(e).__name__}: {e}") from e

    if not isinstance(result, bool):
        raise PredicateTypeError(torrent.hash, describe_predicate(predicate), result)

    return result


def check_single_match(torrent: Torrent, predicates: Iterable[Predicate]) -> bool:
    """True as soon as one predicate matches; False if none do"""
    for predicate in predicates:
        if evaluate_predicate(torrent, predicate):
            return True
    return False


def check_all_match(torrent: Torrent, predicates: Iterable[Predicate]) -> bool:
    """False as soon as one predicate fails; True if all match"""
    for predicate in predicates:
        if not evaluate_predicate(torrent, predicate):
            return False
    return True


class PolicyEngine:
    """Ignore/remove/relabel decisions bound to one RuleSet"""

    def __init__(self, rule_set: RuleSet):
        self.rule_set = rule_set

    def should_ignore(self, torrent: Torrent) -> bool:
        return self._decide('ignore', check_single_match, torrent, self.rule_set.ignores)

    def should_remove(self, torrent: Torrent) -> bool:
        return self._decide('remove', check_single_match, torrent, self.rule_set.removes)

    def should_relabel(self, torrent: Torrent) -> Tuple[str, bool]:
        """
        Find the first label rule whose updates all match

        Returns:
            Tuple of (label name, True) for the winning rule, or ('', False)
        """
        for label in self.rule_set.labels:
            if self._decide(f"label:{label.name}", check_all_match, torrent, label.updates):
                logger.debug(f"Label rule '{label.name}' matched {torrent.hash}")
                return label.name, True

        return '', False

    def _decide(self, decision: str, check, torrent: Torrent, predicates) -> bool:
        try:
            return check(torrent, predicates)
        except LifecycleError as e:
            e.add_detail('Decision', decision)
            logger.debug(f"Classification of {torrent.hash} failed during {decision} check")
            raise
