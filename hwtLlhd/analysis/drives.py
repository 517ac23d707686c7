from typing import Dict, List, Union

from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass
from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.analysis.controlPredicates import LlhdAnalysisControlPredicates, LlhdPredicate
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstrDrive, LlhdInstrSignal
from hwtLlhd.ir.value import LlhdArgument

LlhdDriveTarget = Union[LlhdArgument, LlhdInstrSignal]


class DriveRecord():
    """
    :ivar instr: the drive instruction
    :ivar block: block where the instr is placed
    :ivar predicate: the controlling predicate of the block
    """
    __slots__ = ("instr", "block", "predicate")

    def __init__(self, instr: LlhdInstrDrive, block: LlhdBasicBlock, predicate: LlhdPredicate):
        self.instr = instr
        self.block = block
        self.predicate = predicate

    def __repr__(self):
        return f"<{self.__class__.__name__:s} {self.block.label} {self.predicate}>"


class DriveTargetInfo():
    """
    :ivar target: output port or signal which is driven
    :ivar drives: drives of target in execution order
        (blocks in reverse postorder, instructions in program order)
    :ivar isExhaustive: True if the target is driven on every path from entry to the end of activation
    :ivar isReadBeforeDrive: True if the value of target is read on some path before it is driven
    """

    def __init__(self, target: LlhdDriveTarget):
        self.target = target
        self.drives: List[DriveRecord] = []
        self.isExhaustive = False
        self.isReadBeforeDrive = False

    def __repr__(self):
        return (f"<{self.__class__.__name__:s} {self.target._name} exhaustive={self.isExhaustive} "
                f"readBeforeDrive={self.isReadBeforeDrive} {self.drives}>")


class LlhdAnalysisDrives(LlhdAnalysisPass):
    """
    Collect drives of every signal and output port in a process.

    :ivar targets: info for every driven target, output ports in port order first,
        then signals in the order of declaration and then anything else in the order of first drive
    """

    def __init__(self):
        self.targets: Dict[LlhdDriveTarget, DriveTargetInfo] = {}

    @staticmethod
    def _isDrivenOnAllPaths(cfg: LlhdAnalysisCfg, target: LlhdDriveTarget) -> bool:
        mustDrive: Dict[LlhdBasicBlock, bool] = {}
        for bb in cfg.postorder:
            if any(isinstance(i, LlhdInstrDrive) and i.target is target for i in bb.body):
                v = True
            else:
                sucs = list(bb.iterSuccessors())
                # successors over back edge are not resolved and are considered as not driving
                v = bool(sucs) and all(mustDrive.get(s, False) for s in sucs)
            mustDrive[bb] = v
        return mustDrive[cfg.entry]

    @staticmethod
    def _isReadBeforeDrive(cfg: LlhdAnalysisCfg, target: LlhdDriveTarget) -> bool:
        undrivenAtExit: Dict[LlhdBasicBlock, bool] = {}
        for bb in cfg.reversePostorder():
            if bb is cfg.entry:
                undriven = True
            else:
                undriven = any(undrivenAtExit.get(p, False) for p in cfg.iterPredecessors(bb))
            for instr in bb.body:
                if undriven and any(o is target for o in instr.iterReadOperands()):
                    return True
                if isinstance(instr, LlhdInstrDrive) and instr.target is target:
                    undriven = False
            undrivenAtExit[bb] = undriven
        return False

    def runOnProcessImpl(self, proc: "LlhdProcess"):
        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        if cfg.entry is None:
            return
        predicates: LlhdAnalysisControlPredicates = proc.getAnalysis(LlhdAnalysisControlPredicates)

        drivesByTarget: Dict[LlhdDriveTarget, List[DriveRecord]] = {}
        signals: List[LlhdInstrSignal] = []
        for bb in cfg.reversePostorder():
            p = predicates.predicates[bb]
            for instr in bb.body:
                if isinstance(instr, LlhdInstrDrive):
                    drivesByTarget.setdefault(instr.target, []).append(DriveRecord(instr, bb, p))
                elif isinstance(instr, LlhdInstrSignal):
                    signals.append(instr)

        targetOrder = [o for o in proc.outputs if o in drivesByTarget]
        targetOrder.extend(s for s in signals if s in drivesByTarget)
        for t in drivesByTarget.keys():
            if not any(t is _t for _t in targetOrder):
                targetOrder.append(t)

        for t in targetOrder:
            info = DriveTargetInfo(t)
            info.drives = drivesByTarget[t]
            info.isExhaustive = self._isDrivenOnAllPaths(cfg, t)
            info.isReadBeforeDrive = self._isReadBeforeDrive(cfg, t)
            self.targets[t] = info
