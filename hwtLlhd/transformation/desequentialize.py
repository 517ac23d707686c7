from enum import Enum
from typing import Dict, List, Optional, Set

from hwt.hdl.types.defs import BIT
from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.analysis.consistencyCheck import LlhdPassConsistencyCheck
from hwtLlhd.analysis.controlPredicates import LlhdPredicate
from hwtLlhd.analysis.drives import LlhdAnalysisDrives, DriveTargetInfo, LlhdDriveTarget
from hwtLlhd.debugTracer import DebugTracer
from hwtLlhd.errors import UnsupportedControlFlow, UndrivenSignal
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.builder import LlhdIrBuilder
from hwtLlhd.ir.instr import LlhdInstr, LlhdInstrReturn, LlhdInstrWait, \
    LlhdInstrOperator, LlhdOperand, LlhdInstrSignal
from hwtLlhd.ir.unit import LlhdProcess
from hwtLlhd.transformation.llhdPass import LlhdPass


class DriveRealization(Enum):
    # the value is resolved on every path, the drive is a pure function of other nets
    COMB = 0
    # the value is kept on some path, the drive references the driven net itself
    LATCH = 1


class DesequentializeResult():
    """
    :ivar process: the process which was transformed
    :ivar realizations: realization for every driven net in the order of drives in the transformed process
    :ivar isUnchanged: True if the process was already in desequentialized form and it was not modified
    """

    def __init__(self, process: LlhdProcess, isUnchanged: bool):
        self.process = process
        self.realizations: Dict[LlhdDriveTarget, DriveRealization] = {}
        self.isUnchanged = isUnchanged

    def getRealization(self, target: LlhdDriveTarget) -> DriveRealization:
        return self.realizations[target]

    def iterLatches(self):
        for t, r in self.realizations.items():
            if r == DriveRealization.LATCH:
                yield t

    def __repr__(self):
        rs = ", ".join(f"{t._name}:{r.name}" for t, r in self.realizations.items())
        return f"<{self.__class__.__name__:s} {self.process._name:s} {rs:s}>"


def isDesequentialized(proc: LlhdProcess) -> bool:
    """
    :return: True if the process is a single block ending with `ret`
    """
    if len(proc.blocks) != 1:
        return False
    return isinstance(proc.blocks[0].getTerminator(), LlhdInstrReturn)


def _valueReferences(v: LlhdOperand, target: LlhdDriveTarget, seen: Set[LlhdInstr]) -> bool:
    if v is target:
        return True
    if isinstance(v, LlhdInstrOperator):
        if v in seen:
            return False
        seen.add(v)
        return any(_valueReferences(o, target, seen) for o in v.operands)
    return False


class LlhdProcessDesequentializer():
    """
    Converts a level-sensitive process with acyclic control flow into a single block which contains only
    the pure instructions, a single drive for each driven net and `ret`.

    Each drive is guarded by the predicate under which the control reaches its block. Drives of the same net
    are chained in a select chain where the drive executed later in the activation has priority.
    If the net is not driven on every path from entry the net itself is used as a default value, which makes
    the net a latch.

    :note: all checks are performed before any modification, if an error is raised the process is unchanged
    """

    def __init__(self, proc: LlhdProcess, dbgTracer: DebugTracer, allowLatches: bool):
        self.proc = proc
        self.dbgTracer = dbgTracer
        self.allowLatches = allowLatches

    def _checkControlFlow(self, cfg: LlhdAnalysisCfg):
        proc = self.proc
        if cfg.hasLoop():
            loops = [sorted(str(bb.label) for bb in loop) for loop in cfg.loops]
            raise UnsupportedControlFlow("Process contains a loop", proc._name, loops)
        for bb in cfg.preorder:
            t = bb.getTerminator()
            if isinstance(t, LlhdInstrWait):
                raise UnsupportedControlFlow("Process contains wait, it is sequential", proc._name, bb.label)

    def _resolveRealizations(self, drives: LlhdAnalysisDrives) -> Dict[LlhdDriveTarget, DriveRealization]:
        res = {}
        dbgTracer = self.dbgTracer
        for t, info in drives.targets.items():
            info: DriveTargetInfo
            if info.isExhaustive:
                r = DriveRealization.COMB
            elif self.allowLatches or info.isReadBeforeDrive:
                r = DriveRealization.LATCH
            else:
                raise UndrivenSignal("Net is not driven on every path and latches are not allowed",
                                     self.proc._name, t._name, [d.block.label for d in info.drives])
            dbgTracer.log((t._name, r.name, "drives:", len(info.drives)))
            res[t] = r
        return res

    @staticmethod
    def _predicateToValue(b: LlhdIrBuilder, p: LlhdPredicate) -> LlhdOperand:
        if p.isTrue():
            return BIT.from_py(1)
        elif p.isFalse():
            return BIT.from_py(0)

        res = None
        for conj in p.terms:
            conjVal = None
            for c, isNegated in conj:
                if isNegated:
                    c = b.not_(c)
                conjVal = c if conjVal is None else b.and_(conjVal, c)
            res = conjVal if res is None else b.or_(res, conjVal)
        return res

    def _buildDriveValue(self, b: LlhdIrBuilder, info: DriveTargetInfo, r: DriveRealization) -> LlhdOperand:
        drives = info.drives
        if r == DriveRealization.COMB:
            v = drives[0].instr.value
            drives = drives[1:]
        else:
            v = info.target

        for d in drives:
            p = d.predicate
            if p.isFalse():
                continue
            elif p.isTrue():
                v = d.instr.value
            else:
                v = b.select(self._predicateToValue(b, p), d.instr.value, v)
        return v

    def _resultForUnchanged(self) -> DesequentializeResult:
        proc = self.proc
        res = DesequentializeResult(proc, True)
        drives: LlhdAnalysisDrives = proc.getAnalysis(LlhdAnalysisDrives)
        for t, info in drives.targets.items():
            isLatch = any(_valueReferences(d.instr.value, t, set()) for d in info.drives)
            res.realizations[t] = DriveRealization.LATCH if isLatch else DriveRealization.COMB
        return res

    def apply(self) -> DesequentializeResult:
        proc = self.proc
        dbgTracer = self.dbgTracer
        LlhdPassConsistencyCheck().checkProcess(proc)

        if not proc.blocks or isDesequentialized(proc):
            dbgTracer.log("already desequentialized")
            return self._resultForUnchanged()

        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        self._checkControlFlow(cfg)
        if cfg.unreachable:
            dbgTracer.log(("dropping unreachable blocks", [bb.label for bb in cfg.unreachable]))

        drives: LlhdAnalysisDrives = proc.getAnalysis(LlhdAnalysisDrives)
        realizations = self._resolveRealizations(drives)

        # commit
        entry = proc.getEntry()
        newBlock = LlhdBasicBlock(entry.label)
        toRemove: List[LlhdInstr] = []
        # signals are visible in whole process and they are declared before any of their readers
        for bb in (*cfg.reversePostorder(), *cfg.unreachable):
            for instr in tuple(bb.body):
                if isinstance(instr, LlhdInstrSignal):
                    bb.removeInstr(instr)
                    newBlock.appendInstr(instr)

        for bb in cfg.reversePostorder():
            for instr in tuple(bb.body):
                if instr.hasSideEffects():
                    toRemove.append(instr)
                else:
                    bb.removeInstr(instr)
                    newBlock.appendInstr(instr)

        for bb in cfg.unreachable:
            toRemove.extend(bb.body)

        b = LlhdIrBuilder(newBlock)
        newDrives = []
        for t, r in realizations.items():
            v = self._buildDriveValue(b, drives.targets[t], r)
            newDrives.append((t, v))

        for instr in toRemove:
            instr.dropAllReferences()
        for instr in toRemove:
            instr.parent.removeInstr(instr)
        for bb in tuple(proc.blocks):
            proc.removeBlock(bb)

        for t, v in newDrives:
            b.drv(t, v)
        b.ret()
        newBlock.appendTo(proc)
        proc.invalidateAll()

        res = DesequentializeResult(proc, False)
        res.realizations = realizations
        return res


def desequentialize(proc: LlhdProcess, dbgTracer: Optional[DebugTracer]=None, allowLatches: bool=True) -> DesequentializeResult:
    """
    Convert the process to a single block of drives.

    :param allowLatches: if False the net which is not driven on every path raises UndrivenSignal
        unless the net value is read before it is driven
    :raise UnsupportedControlFlow: if the process contains loop or wait
    :raise UndrivenSignal: see allowLatches
    :raise DanglingReference: if the process is not consistent
    """
    if dbgTracer is None:
        dbgTracer = DebugTracer(None)
    with dbgTracer.scoped(desequentialize, proc):
        return LlhdProcessDesequentializer(proc, dbgTracer, allowLatches).apply()


class LlhdPassDesequentialize(LlhdPass):
    """
    Desequentialize all processes in the module.

    :ivar ignoreUnsupported: if True the processes with loops or wait are left unmodified
    :ivar results: the result for each transformed process
    :ivar skipped: processes which were not transformed because of UnsupportedControlFlow
    """

    def __init__(self, dbgTracer: Optional[DebugTracer]=None, allowLatches: bool=True, ignoreUnsupported: bool=False):
        self.dbgTracer = dbgTracer if dbgTracer is not None else DebugTracer(None)
        self.allowLatches = allowLatches
        self.ignoreUnsupported = ignoreUnsupported
        self.results: Dict[LlhdProcess, DesequentializeResult] = {}
        self.skipped: Dict[LlhdProcess, UnsupportedControlFlow] = {}

    def runOnModuleImpl(self, module: "LlhdModule"):
        for proc in tuple(module.iterProcesses()):
            try:
                self.results[proc] = desequentialize(proc, self.dbgTracer, self.allowLatches)
            except UnsupportedControlFlow as e:
                if not self.ignoreUnsupported:
                    raise
                self.dbgTracer.log(("skipping", proc._name, e))
                self.skipped[proc] = e
