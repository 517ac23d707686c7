from typing import Callable, Dict, FrozenSet, Optional, Tuple

from hwt.hdl.value import HValue
from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass
from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstrBranch, LlhdOperand
from hwtLlhd.ir.types import constToInt
from hwtLlhd.ir.value import LlhdValue

# (condition, isNegated)
PredicateLiteral = Tuple[LlhdValue, bool]
PredicateConjunction = Tuple[PredicateLiteral, ...]


def _conjKey(conj: PredicateConjunction) -> FrozenSet[PredicateLiteral]:
    return frozenset(conj)


class LlhdPredicate():
    """
    Boolean expression in disjunctive normal form over branch conditions.

    :ivar terms: tuple of conjunctions, conjunction is a tuple of literals (condition, isNegated),
        empty conjunction is True, empty terms are False
    """
    __slots__ = ("terms",)

    def __init__(self, terms: Tuple[PredicateConjunction, ...]):
        self.terms = terms

    @classmethod
    def TRUE(cls):
        return cls(((),))

    @classmethod
    def FALSE(cls):
        return cls(())

    def isTrue(self) -> bool:
        return any(not conj for conj in self.terms)

    def isFalse(self) -> bool:
        return not self.terms

    def andLiteral(self, cond: LlhdOperand, isNegated: bool) -> "LlhdPredicate":
        if isinstance(cond, HValue):
            v = constToInt(cond)
            assert v is not None, ("Branch on undefined value", cond)
            if bool(v) != isNegated:
                return self
            else:
                return LlhdPredicate.FALSE()

        terms = []
        for conj in self.terms:
            contradiction = False
            present = False
            for (c, n) in conj:
                if c is cond:
                    if n == isNegated:
                        present = True
                    else:
                        contradiction = True
                    break
            if contradiction:
                continue
            elif present:
                terms.append(conj)
            else:
                terms.append((*conj, (cond, isNegated)))
        return LlhdPredicate(self._simplify(terms))

    def or_(self, other: "LlhdPredicate") -> "LlhdPredicate":
        return LlhdPredicate(self._simplify([*self.terms, *other.terms]))

    @staticmethod
    def _simplify(terms) -> Tuple[PredicateConjunction, ...]:
        """
        Remove duplicities, absorb conjunctions which are more specific than other
        and merge conjunctions which differ only in polarity of a single literal (c&x | ~c&x = x)
        """
        terms = list(terms)
        changed = True
        while changed:
            changed = False
            keys = [_conjKey(c) for c in terms]
            for i in range(len(terms)):
                for j in range(len(terms)):
                    if i == j:
                        continue
                    ki = keys[i]
                    kj = keys[j]
                    if kj <= ki:
                        # terms[i] is absorbed by terms[j]
                        terms.pop(i)
                        changed = True
                        break
                    diff = ki ^ kj
                    if len(diff) == 2 and len(ki) == len(kj):
                        (c0, _), (c1, _) = diff
                        if c0 is c1:
                            common = ki & kj
                            terms[i] = tuple(lit for lit in terms[i] if lit in common)
                            terms.pop(j)
                            changed = True
                            break
                if changed:
                    break
        return tuple(terms)

    def evaluate(self, valueOf: Callable[[LlhdValue], Optional[int]]) -> bool:
        for conj in self.terms:
            res = True
            for c, isNegated in conj:
                v = valueOf(c)
                if v is None:
                    raise ValueError("Predicate depends on undefined value", c)
                if bool(v) == isNegated:
                    res = False
                    break
            if res:
                return True
        return False

    def __eq__(self, other):
        return isinstance(other, LlhdPredicate) and \
            set(_conjKey(c) for c in self.terms) == set(_conjKey(c) for c in other.terms)

    def __hash__(self):
        return hash(frozenset(_conjKey(c) for c in self.terms))

    def __repr__(self):
        if self.isFalse():
            return "<LlhdPredicate false>"
        conjs = []
        for conj in self.terms:
            if not conj:
                conjs.append("true")
            else:
                conjs.append(" & ".join(f"{'~' if n else ''}{c._name}" for c, n in conj))
        return f"<LlhdPredicate {' | '.join(conjs):s}>"


class LlhdAnalysisControlPredicates(LlhdAnalysisPass):
    """
    For every reachable block resolve the condition under which the control reaches this block from entry
    in a single activation of the process. The condition is expressed using the branch conditions.
    Predicates are propagated over the edges which are not back edges.

    :ivar predicates: the predicate for each reachable block
    """

    def __init__(self):
        self.predicates: Dict[LlhdBasicBlock, LlhdPredicate] = {}

    @staticmethod
    def edgePredicate(srcPredicate: LlhdPredicate, src: LlhdBasicBlock, dst: LlhdBasicBlock) -> LlhdPredicate:
        t = src.getTerminator()
        if isinstance(t, LlhdInstrBranch):
            cond = t.cond
            if cond is not None:
                ifTrue, ifFalse = t.targets
                if ifTrue is dst and ifFalse is dst:
                    return srcPredicate
                elif ifTrue is dst:
                    return srcPredicate.andLiteral(cond, False)
                else:
                    assert ifFalse is dst, (src, dst, t)
                    return srcPredicate.andLiteral(cond, True)
        return srcPredicate

    def runOnProcessImpl(self, proc: "LlhdProcess"):
        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        predicates = self.predicates
        for bb in cfg.reversePostorder():
            if bb is cfg.entry:
                p = LlhdPredicate.TRUE()
            else:
                p = LlhdPredicate.FALSE()
                for pred in cfg.iterPredecessors(bb):
                    pp = predicates.get(pred, None)
                    if pp is None:
                        # back edge
                        continue
                    p = p.or_(self.edgePredicate(pp, pred, bb))
            predicates[bb] = p
