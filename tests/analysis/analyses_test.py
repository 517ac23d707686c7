#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from io import StringIO
import unittest

from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.analysis.controlPredicates import LlhdAnalysisControlPredicates, LlhdPredicate
from hwtLlhd.analysis.dominators import LlhdAnalysisDominators
from hwtLlhd.analysis.drives import LlhdAnalysisDrives
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.builder import LlhdIrBuilder
from hwtLlhd.ir.module import LlhdModule
from tests.baseLlhdTC import buildLagceModule, newProcess, newBlocks


def buildLoop(m: LlhdModule):
    """
    .. code-block:: text

        entry: br head
        head:  br C, body, end
        body:  drv X, 1; br head
        end:   ret
    """
    p = newProcess(m, "loop", (("C", 1),), (("X", 1),))
    entry, head, body, end = newBlocks(p, "entry", "head", "body", "end")
    C, = p.inputs
    X, = p.outputs
    b = LlhdIrBuilder(entry)
    b.br(None, head)
    b.setInsertPoint(head, None)
    b.br(C, body, end)
    b.setInsertPoint(body, None)
    b.drv(X, 1)
    b.br(None, head)
    b.setInsertPoint(end, None)
    b.ret()
    return p


class LlhdAnalysisCfg_TC(unittest.TestCase):

    def test_lagce_orders(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        cfg: LlhdAnalysisCfg = P.getAnalysis(LlhdAnalysisCfg)
        self.assertIs(cfg.entry, entry)
        self.assertEqual(cfg.preorder, [entry, ckl, ckla, cklb, ckh])
        self.assertEqual(cfg.postorder, [ckla, cklb, ckl, ckh, entry])
        self.assertEqual(cfg.reversePostorder(), [entry, ckh, ckl, cklb, ckla])
        self.assertEqual(cfg.blockIndex[ckh], 1)
        self.assertEqual(cfg.backedges, [])
        self.assertFalse(cfg.hasLoop())
        self.assertEqual(cfg.unreachable, [])
        self.assertEqual(set(cfg.iterPredecessors(ckla)), {ckl})

    def test_loop(self):
        m = LlhdModule("loop")
        p = buildLoop(m)
        entry, head, body, end = p.blocks
        cfg: LlhdAnalysisCfg = p.getAnalysis(LlhdAnalysisCfg)
        self.assertEqual(cfg.backedges, [(body, head)])
        self.assertTrue(cfg.hasLoop())
        self.assertEqual(cfg.loops, [{head, body}])
        self.assertEqual(head.predecessors, [entry, body])

    def test_self_loop(self):
        m = LlhdModule("selfLoop")
        p = newProcess(m, "p", (("C", 1),), ())
        entry, end = newBlocks(p, "entry", "end")
        C, = p.inputs
        b = LlhdIrBuilder(entry)
        b.br(C, entry, end)
        b.setInsertPoint(end, None)
        b.ret()
        cfg: LlhdAnalysisCfg = p.getAnalysis(LlhdAnalysisCfg)
        self.assertEqual(cfg.backedges, [(entry, entry)])
        self.assertEqual(cfg.loops, [{entry}])

    def test_unreachable(self):
        m = LlhdModule("unreach")
        p = newProcess(m, "p", (), ())
        entry, dead = newBlocks(p, "entry", "dead")
        b = LlhdIrBuilder(entry)
        b.ret()
        b.setInsertPoint(dead, None)
        b.br(None, entry)
        cfg: LlhdAnalysisCfg = p.getAnalysis(LlhdAnalysisCfg)
        self.assertEqual(cfg.preorder, [entry])
        self.assertEqual(cfg.unreachable, [dead])
        self.assertFalse(cfg.isReachable(dead))
        self.assertTrue(cfg.isReachable(entry))

    def test_empty_process(self):
        m = LlhdModule("empty")
        p = newProcess(m, "p", (), ())
        cfg: LlhdAnalysisCfg = p.getAnalysis(LlhdAnalysisCfg)
        self.assertIsNone(cfg.entry)
        self.assertEqual(cfg.preorder, [])

    def test_cache_invalidation(self):
        m, _, P, _ = buildLagceModule()
        log = m._dbgLogPassExec = StringIO()
        doms = P.getAnalysis(LlhdAnalysisDominators)
        self.assertIs(P.getAnalysis(LlhdAnalysisDominators), doms)
        cfg = P.getAnalysisIfAvailable(LlhdAnalysisCfg)
        self.assertIsNotNone(cfg)

        # modification of the block list invalidates everything
        bb = LlhdBasicBlock("extra")
        bb.appendTo(P)
        self.assertIsNone(P.getAnalysisIfAvailable(LlhdAnalysisCfg))
        self.assertIsNone(P.getAnalysisIfAvailable(LlhdAnalysisDominators))
        self.assertIsNot(P.getAnalysis(LlhdAnalysisCfg), cfg)
        self.assertEqual(log.getvalue(), """\
Running analysis: LlhdAnalysisDominators on LAGCE_proc
Running analysis: LlhdAnalysisCfg on LAGCE_proc
Invalidating analysis: LlhdAnalysisCfg on LAGCE_proc
Invalidating analysis: LlhdAnalysisDominators on LAGCE_proc
Running analysis: LlhdAnalysisCfg on LAGCE_proc
""")


class LlhdAnalysisDominators_TC(unittest.TestCase):

    def test_lagce(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        doms: LlhdAnalysisDominators = P.getAnalysis(LlhdAnalysisDominators)
        self.assertIsNone(doms.idom[entry])
        self.assertIs(doms.idom[ckl], entry)
        self.assertIs(doms.idom[ckh], entry)
        self.assertIs(doms.idom[ckla], ckl)
        self.assertIs(doms.idom[cklb], ckl)
        self.assertEqual(doms.children[entry], [ckl, ckh])
        self.assertEqual(doms.children[ckl], [ckla, cklb])

        self.assertTrue(doms.dominates(entry, ckla))
        self.assertTrue(doms.dominates(ckla, ckla))
        self.assertFalse(doms.dominates(ckla, ckl))
        self.assertFalse(doms.dominates(ckh, ckla))

    def test_instr(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        doms: LlhdAnalysisDominators = P.getAnalysis(LlhdAnalysisDominators)
        c0, br0 = entry.body
        self.assertTrue(doms.dominatesInstr(c0, br0))
        self.assertFalse(doms.dominatesInstr(br0, c0))
        self.assertFalse(doms.dominatesInstr(c0, c0))
        self.assertTrue(doms.dominatesInstr(c0, ckla.body[0]))
        self.assertFalse(doms.dominatesInstr(ckl.body[1], ckh.body[0]))

    def test_loop(self):
        m = LlhdModule("loop")
        p = buildLoop(m)
        entry, head, body, end = p.blocks
        doms: LlhdAnalysisDominators = p.getAnalysis(LlhdAnalysisDominators)
        self.assertIs(doms.idom[body], head)
        self.assertIs(doms.idom[end], head)
        self.assertTrue(doms.dominates(head, body))
        self.assertFalse(doms.dominates(body, head))


class LlhdPredicate_TC(unittest.TestCase):

    def setUp(self):
        m = LlhdModule("pred")
        p = newProcess(m, "p", (("a", 1), ("b", 1), ("c", 1)), ())
        self.a, self.b, self.c = p.inputs

    def test_true_false(self):
        a = self.a
        t = LlhdPredicate.TRUE()
        self.assertTrue(t.isTrue())
        self.assertFalse(t.isFalse())
        f = LlhdPredicate.FALSE()
        self.assertTrue(f.isFalse())
        self.assertFalse(f.isTrue())
        self.assertTrue(f.or_(t).isTrue())
        self.assertTrue(t.andLiteral(a, False).andLiteral(a, True).isFalse())
        self.assertEqual(t.andLiteral(a, False).andLiteral(a, False), t.andLiteral(a, False))

    def test_merge_polarity(self):
        a, b = self.a, self.b
        t = LlhdPredicate.TRUE()
        p0 = t.andLiteral(a, False).andLiteral(b, False)
        p1 = t.andLiteral(a, True).andLiteral(b, False)
        self.assertEqual(p0.or_(p1), t.andLiteral(b, False))
        self.assertTrue(t.andLiteral(a, False).or_(t.andLiteral(a, True)).isTrue())

    def test_absorption(self):
        a, b, c = self.a, self.b, self.c
        t = LlhdPredicate.TRUE()
        pa = t.andLiteral(a, False)
        pab = pa.andLiteral(b, False)
        self.assertEqual(pab.or_(pa), pa)
        self.assertEqual(pa.or_(pab), pa)
        pc = t.andLiteral(c, True)
        res = pab.or_(pc).or_(pa)
        self.assertEqual(len(res.terms), 2)
        self.assertEqual(res, pa.or_(pc))

    def test_const_condition(self):
        a = self.a
        one = a._dtype.from_py(1)
        t = LlhdPredicate.TRUE()
        self.assertTrue(t.andLiteral(one, False).isTrue())
        self.assertTrue(t.andLiteral(one, True).isFalse())
        with self.assertRaises(AssertionError):
            t.andLiteral(a._dtype.from_py(None), False)

    def test_evaluate(self):
        a, b, c = self.a, self.b, self.c
        t = LlhdPredicate.TRUE()
        p = t.andLiteral(a, False).andLiteral(b, True).or_(t.andLiteral(c, False))
        values = {a: 1, b: 0, c: 0}
        self.assertTrue(p.evaluate(values.get))
        values[b] = 1
        self.assertFalse(p.evaluate(values.get))
        values[c] = 1
        self.assertTrue(p.evaluate(values.get))
        self.assertFalse(LlhdPredicate.FALSE().evaluate(values.get))
        with self.assertRaises(ValueError):
            p.evaluate({a: None, b: 0, c: 0}.get)


class LlhdAnalysisControlPredicates_TC(unittest.TestCase):

    def test_lagce(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        c0 = entry.body[0]
        c1 = ckl.body[1]
        preds = P.getAnalysis(LlhdAnalysisControlPredicates).predicates
        t = LlhdPredicate.TRUE()
        self.assertTrue(preds[entry].isTrue())
        self.assertEqual(preds[ckl], t.andLiteral(c0, False))
        self.assertEqual(preds[ckh], t.andLiteral(c0, True))
        self.assertEqual(preds[ckla], t.andLiteral(c0, False).andLiteral(c1, False))
        self.assertEqual(preds[cklb], t.andLiteral(c0, False).andLiteral(c1, True))

    def test_loop_ignores_backedges(self):
        m = LlhdModule("loop")
        p = buildLoop(m)
        entry, head, body, end = p.blocks
        C, = p.inputs
        preds = p.getAnalysis(LlhdAnalysisControlPredicates).predicates
        t = LlhdPredicate.TRUE()
        self.assertTrue(preds[head].isTrue())
        self.assertEqual(preds[body], t.andLiteral(C, False))
        self.assertEqual(preds[end], t.andLiteral(C, True))


class LlhdAnalysisDrives_TC(unittest.TestCase):

    def test_lagce(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        GCK, Q = P.outputs
        drives: LlhdAnalysisDrives = P.getAnalysis(LlhdAnalysisDrives)
        self.assertEqual(list(drives.targets.keys()), [GCK, Q])

        gck = drives.targets[GCK]
        self.assertEqual([d.block for d in gck.drives], [ckh, ckl])
        self.assertTrue(gck.isExhaustive)
        self.assertFalse(gck.isReadBeforeDrive)

        q = drives.targets[Q]
        self.assertEqual([d.block for d in q.drives], [cklb, ckla])
        self.assertIs(q.drives[1].instr, ckla.body[0])
        self.assertFalse(q.isExhaustive)
        self.assertFalse(q.isReadBeforeDrive)

    def test_signal_order_and_read(self):
        m = LlhdModule("drv")
        p = newProcess(m, "p", (("C", 1),), (("X", 1),))
        entry, a, end = newBlocks(p, "entry", "a", "end")
        C, = p.inputs
        X, = p.outputs
        b = LlhdIrBuilder(entry)
        s1 = b.sig(C._dtype, 0, name="s1")
        s0 = b.sig(C._dtype, 0, name="s0")
        b.drv(s0, C)
        b.br(C, a, end)
        b.setInsertPoint(a, None)
        b.drv(s1, s1)
        b.drv(X, s0)
        b.br(None, end)
        b.setInsertPoint(end, None)
        b.ret()

        drives: LlhdAnalysisDrives = p.getAnalysis(LlhdAnalysisDrives)
        self.assertEqual(list(drives.targets.keys()), [X, s1, s0])
        self.assertTrue(drives.targets[s0].isExhaustive)
        self.assertFalse(drives.targets[s0].isReadBeforeDrive)
        self.assertFalse(drives.targets[s1].isExhaustive)
        self.assertTrue(drives.targets[s1].isReadBeforeDrive)
        self.assertFalse(drives.targets[X].isExhaustive)


if __name__ == '__main__':
    testLoader = unittest.TestLoader()
    suite = unittest.TestSuite([testLoader.loadTestsFromTestCase(tc) for tc in [
        LlhdAnalysisCfg_TC,
        LlhdAnalysisDominators_TC,
        LlhdPredicate_TC,
        LlhdAnalysisControlPredicates_TC,
        LlhdAnalysisDrives_TC,
    ]])
    runner = unittest.TextTestRunner(verbosity=3)
    runner.run(suite)
