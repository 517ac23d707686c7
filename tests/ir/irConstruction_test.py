#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import unittest

from hwt.hdl.operatorDefs import AllOps
from hwtLlhd.errors import TypeMismatch
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.builder import LlhdIrBuilder
from hwtLlhd.ir.context import LlhdContext
from hwtLlhd.ir.instr import LlhdInstrCompare, LlhdInstrDrive, LlhdInstrInstance, LlhdInstrSelect, \
    LlhdInstrSignal, LlhdInstrBranch, LlhdInstrReturn, OP_SLT
from hwtLlhd.ir.module import LlhdModule
from hwtLlhd.ir.types import isSameType, typeToStr, constToInt
from hwtLlhd.ir.unit import LlhdEntity
from tests.baseLlhdTC import buildLagceModule, newProcess, newBlocks


class LlhdIrConstruction_TC(unittest.TestCase):

    def test_types(self):
        ctx = LlhdContext()
        i1 = ctx.intType(1)
        self.assertIs(ctx.intType(1), i1)
        self.assertEqual(typeToStr(ctx.intType(8)), "i8")
        t = ctx.compType((i1, i1), (i1,))
        self.assertIs(ctx.compType([i1, i1], [i1]), t)
        self.assertEqual(typeToStr(t), "(i1, i1) (i1)")
        # types from other context are structurally same
        self.assertTrue(isSameType(LlhdContext().intType(4), ctx.intType(4)))
        self.assertFalse(isSameType(ctx.intType(4), ctx.intType(5)))

    def test_constants(self):
        i4 = LlhdContext().intType(4)
        self.assertEqual(constToInt(i4.from_py(5)), 5)
        self.assertIsNone(constToInt(i4.from_py(None)))

    def test_compare_type_mismatch(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 1), ("B", 2)), ())
        A, B = p.inputs
        with self.assertRaises(TypeMismatch):
            LlhdInstrCompare(AllOps.EQ, A, B)
        c = LlhdInstrCompare(OP_SLT, B, B._dtype.from_py(1))
        self.assertEqual(c._dtype.bit_length(), 1)

    def test_select_type_mismatch(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 1), ("B", 2)), ())
        A, B = p.inputs
        with self.assertRaises(TypeMismatch):
            LlhdInstrSelect(B, B, B)
        with self.assertRaises(TypeMismatch):
            LlhdInstrSelect(A, A, B)
        with self.assertRaises(TypeMismatch):
            LlhdInstrBranch(B, LlhdBasicBlock("a"), LlhdBasicBlock("b"))

    def test_drive_target(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 1),), (("X", 2),))
        A, = p.inputs
        X, = p.outputs
        with self.assertRaises(TypeMismatch):
            LlhdInstrDrive(A, A)
        with self.assertRaises(TypeMismatch):
            LlhdInstrDrive(X, A)
        with self.assertRaises(TypeMismatch):
            LlhdInstrSignal(A._dtype, X._dtype.from_py(0))
        d = LlhdInstrDrive(X, X._dtype.from_py(3))
        self.assertIs(d.target, X)
        self.assertEqual(list(d.iterReadOperands()), [])
        self.assertEqual(list(X.users), [d])

    def test_instance_binding(self):
        m, E, P, inst = buildLagceModule()
        ctx = m.ctx
        i1 = ctx.intType(1)
        i2 = ctx.intType(2)
        e = LlhdEntity(ctx.compType((i1, i2), (i1,)), "e")
        e.appendTo(m)
        A, B = e.inputs
        Y, = e.outputs
        with self.assertRaises(TypeMismatch):
            # missing input
            LlhdInstrInstance(P, (A, A), (Y, Y))
        with self.assertRaises(TypeMismatch):
            # wrong width
            LlhdInstrInstance(P, (A, B, A), (Y, Y))
        with self.assertRaises(TypeMismatch):
            # output bound to an input port
            LlhdInstrInstance(P, (A, A, A), (Y, A))
        self.assertIs(inst.callee, P)
        self.assertEqual(len(inst.inputs), 3)
        self.assertEqual(len(inst.outputs), 2)
        self.assertIn(inst, P.users)

    def test_attach_once(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (), ())
        bb, = newBlocks(p, "entry")
        with self.assertRaises(AssertionError):
            bb.appendTo(p)
        r = LlhdInstrReturn()
        r.appendTo(bb)
        with self.assertRaises(AssertionError):
            r.appendTo(bb)
        with self.assertRaises(AssertionError):
            # already terminated
            LlhdInstrReturn().appendTo(bb)
        with self.assertRaises(AssertionError):
            p.appendTo(m)
        with self.assertRaises(AssertionError):
            # unit names are unique
            newProcess(m, "p", (), ())
        self.assertIs(m.getUnit("p"), p)

    def test_builder_cache(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 2),), ())
        entry, other = newBlocks(p, "entry", "other")
        A, = p.inputs
        b = LlhdIrBuilder(entry)
        a0 = b.add(A, 1)
        self.assertIs(b.add(A, 1), a0)
        self.assertIsNot(b.add(A, 2), a0)
        self.assertIsNot(b.add(A, 1, name="x"), a0)
        self.assertEqual(len(entry.body), 3)
        b.br(None, other)

        b.setInsertPoint(other, None)
        a1 = b.add(A, 1)
        self.assertIsNot(a1, a0)
        self.assertIs(a1.parent, other)

    def test_builder_insert_position(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 1),), (("X", 1),))
        entry, = newBlocks(p, "entry")
        A, = p.inputs
        X, = p.outputs
        b = LlhdIrBuilder(entry)
        d = b.drv(X, A)
        b.ret()
        b.setInsertPoint(entry, 0)
        n = b.not_(A)
        d.replaceInput(A, n)
        self.assertEqual(entry.body, [n, d, entry.body[2]])
        self.assertEqual(list(A.users), [n])
        self.assertEqual(list(n.users), [d])

    def test_predecessors(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, ckla, cklb, ckh = P.blocks
        self.assertEqual(entry.predecessors, [])
        self.assertEqual(ckl.predecessors, [entry])
        self.assertEqual(ckla.predecessors, [ckl])
        self.assertEqual(list(entry.iterSuccessors()), [ckl, ckh])
        self.assertEqual(list(ckh.iterSuccessors()), [])

    def test_replace_all_uses(self):
        _, _, P, _ = buildLagceModule()
        entry, ckl, _, _, ckh = P.blocks
        CK, E, Q = P.inputs
        Q.replaceAllUsesWith(E)
        self.assertEqual(len(Q.users), 0)
        self.assertIs(ckh.body[0].value, E)
        self.assertIs(ckl.body[1].lhs, E)

    def test_erase(self):
        m = LlhdModule("t")
        p = newProcess(m, "p", (("A", 1),), (("X", 1),))
        entry, = newBlocks(p, "entry")
        A, = p.inputs
        X, = p.outputs
        b = LlhdIrBuilder(entry)
        n = b.not_(A)
        d = b.drv(X, n)
        with self.assertRaises(AssertionError):
            n.eraseFromParent()
        d.eraseFromParent()
        n.eraseFromParent()
        self.assertEqual(entry.body, [])
        self.assertEqual(len(A.users), 0)
        self.assertEqual(len(X.users), 0)


if __name__ == '__main__':
    testLoader = unittest.TestLoader()
    suite = unittest.TestSuite([testLoader.loadTestsFromTestCase(LlhdIrConstruction_TC)])
    runner = unittest.TextTestRunner(verbosity=3)
    runner.run(suite)
