#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from io import StringIO
import unittest

from hwtLlhd.ir.builder import LlhdIrBuilder
from hwtLlhd.ir.module import LlhdModule
from hwtLlhd.platform.fileUtils import outputStringIoGetter
from hwtLlhd.translation.toAsm import LlhdPassDumpAsm
from tests.baseLlhdTC import BaseLlhdTC, buildLagceModule, newProcess, newBlocks

LAGCE_ASM = """\
entity @LAGCE (i1 %CK, i1 %E) (i1 %GCK) {
    %Q = sig i1 0
    %p = inst @LAGCE_proc (%CK, %E, %Q) (%GCK, %Q)
}

proc @LAGCE_proc (i1 %CK, i1 %E, i1 %Q) (i1 %GCK, i1 %Q.1) {
%entry:
    %0 = cmp eq i1 %CK, 0
    br %0, %ckl, %ckh
%ckl:
    drv %GCK, 0
    %1 = cmp eq i1 %Q, 0
    br %1, %ckla, %cklb
%ckla:
    drv %Q.1, %CK
    ret
%cklb:
    drv %Q.1, %E
    ret
%ckh:
    drv %GCK, %Q
    ret
}
"""


class LlhdToAsm_TC(BaseLlhdTC):

    def test_lagce(self):
        m, _, _, _ = buildLagceModule()
        self.assertAsmEqual(m, LAGCE_ASM)

    def test_pass(self):
        m, _, _, _ = buildLagceModule()
        buffers = {}
        log = m._dbgLogPassExec = StringIO()
        LlhdPassDumpAsm(outputStringIoGetter(buffers)).runOnModule(m)
        self.assertEqual(list(buffers.keys()), ["debug3"])
        self.assertEqual(buffers["debug3"].getvalue(), LAGCE_ASM)
        self.assertEqual(log.getvalue(), "Running pass: LlhdPassDumpAsm on debug3\n")

    def test_names(self):
        m = LlhdModule("names")
        p = newProcess(m, "p", (("0", 4), ("a", 4)), (("a", 4),))
        entry, other = newBlocks(p, "entry", None)
        A0, A1 = p.inputs
        Y, = p.outputs
        b = LlhdIrBuilder(entry)
        s = b.sig(A0._dtype, None, name="a")
        x = b.xor(A0, A1)
        u = b.select(b.ne(A0, 15), x, A0._dtype.from_py(None))
        b.drv(s, u)
        b.br(None, other)
        b.setInsertPoint(other, None)
        b.drv(Y, b.sub(s, 1))
        b.wait(entry, (A0, s))
        self.assertAsmEqual(m, """\
proc @p (i4 %0, i4 %a) (i4 %a.1) {
%entry:
    %a.2 = sig i4
    %1 = xor i4 %0, %a
    %2 = cmp neq i4 %0, 15
    %3 = select i4 %2, %1, undef
    drv %a.2, %3
    br %4
%4:
    %5 = sub i4 %a.2, 1
    drv %a.1, %5
    wait %entry for %0, %a.2
}
""")
        self.assertIs(x.operands[0], A0)


if __name__ == '__main__':
    testLoader = unittest.TestLoader()
    suite = unittest.TestSuite([testLoader.loadTestsFromTestCase(LlhdToAsm_TC)])
    runner = unittest.TextTestRunner(verbosity=3)
    runner.run(suite)
