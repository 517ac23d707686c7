from typing import Set, Union

from hwt.hdl.value import HValue
from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.analysis.dominators import LlhdAnalysisDominators
from hwtLlhd.errors import DanglingReference
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstr, LlhdInstrSignal, LlhdInstrInstance
from hwtLlhd.ir.unit import LlhdUnit, LlhdEntity, LlhdProcess
from hwtLlhd.ir.value import LlhdValue, LlhdArgument
from hwtLlhd.transformation.llhdPass import LlhdPass


class LlhdPassConsistencyCheck(LlhdPass):
    """
    Check the structure of the IR and that every used value is visible at the place of the use.

    :raise DanglingReference: if some value is used outside of the unit where it is defined,
        if it was removed from the IR or if its definition does not dominate the use
    :raise AssertionError: if the IR structure is corrupted (missing parent, users out of sync, ...)
    """

    @staticmethod
    def _checkUsers(instr: LlhdInstr):
        for o in instr.operands:
            if isinstance(o, LlhdValue):
                assert instr in o.users, ("Operand is missing the user", instr, o)
            else:
                assert isinstance(o, HValue), ("Unsupported operand type", instr, o)
        for u in instr.users:
            assert any(o is instr for o in u.operands), ("User does not use this instruction", instr, u)

    @staticmethod
    def _checkOperandVisible(unit: LlhdUnit, instr: LlhdInstr, o: Union[LlhdValue, HValue]):
        if isinstance(o, HValue):
            return
        if isinstance(o, LlhdArgument):
            if o.unit is not unit:
                raise DanglingReference("Port of other unit used", instr, o, o.unit._name, unit._name)
        elif isinstance(o, LlhdBasicBlock):
            if o.parent is not unit:
                raise DanglingReference("Jump to block of other unit", instr, o)
        elif isinstance(o, LlhdInstr):
            if o.parent is None:
                raise DanglingReference("Use of removed value", instr, o)
            if o.getUnit() is not unit:
                raise DanglingReference("Use of value from other unit", instr, o)
        elif isinstance(o, LlhdUnit):
            assert isinstance(instr, LlhdInstrInstance), ("Unit can be used only as callee", instr, o)
            if o.parent is not unit.parent:
                raise DanglingReference("Instance of unit outside of the module", instr, o)
        else:
            raise AssertionError("Unsupported operand", instr, o)

    def checkEntity(self, e: LlhdEntity):
        for instr in e.body:
            assert instr.parent is e, (instr, instr.parent, e)
            self._checkUsers(instr)
            for o in instr.operands:
                self._checkOperandVisible(e, instr, o)

    def checkProcess(self, proc: LlhdProcess):
        blocks: Set[LlhdBasicBlock] = set()
        for bb in proc.blocks:
            assert bb.parent is proc, (bb, bb.parent, proc)
            assert bb not in blocks, ("Block has to be in the process only once", bb)
            blocks.add(bb)
            assert bb.getTerminator() is not None, ("Block has to end with a terminator", proc._name, bb)
            for i, instr in enumerate(bb.body):
                assert instr.parent is bb, (instr, instr.parent, bb)
                assert not instr.isTerminator() or i == len(bb.body) - 1, ("Terminator in the middle of the block", bb, instr)
                assert not isinstance(instr, LlhdInstrInstance), ("Instance in process", proc._name, instr)
                self._checkUsers(instr)
                for o in instr.operands:
                    self._checkOperandVisible(proc, instr, o)

        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        if cfg.entry is None:
            return
        doms: LlhdAnalysisDominators = proc.getAnalysis(LlhdAnalysisDominators)
        for bb in cfg.preorder:
            for instr in bb.body:
                for o in instr.operands:
                    # signals are nets and their value is visible everywhere in the unit
                    if isinstance(o, LlhdInstr) and not isinstance(o, LlhdInstrSignal):
                        if not doms.dominatesInstr(o, instr):
                            raise DanglingReference(
                                "Definition does not dominate the use", proc._name, o, o.parent.label, instr, bb.label)

    def runOnModuleImpl(self, module: "LlhdModule"):
        for u in module.units:
            assert u.parent is module, (u, u.parent, module)
            if isinstance(u, LlhdProcess):
                self.checkProcess(u)
            else:
                self.checkEntity(u)
