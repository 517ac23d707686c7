from typing import Dict, List, Optional

from networkx.algorithms.dominance import immediate_dominators

from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass
from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstr


class LlhdAnalysisDominators(LlhdAnalysisPass):
    """
    Dominator tree of reachable blocks of the process rooted in the entry block.

    :ivar idom: immediate dominator for each block (None for entry)
    :ivar children: blocks immediately dominated by a block (in depth-first preorder)
    """

    def __init__(self):
        self.idom: Dict[LlhdBasicBlock, Optional[LlhdBasicBlock]] = {}
        self.children: Dict[LlhdBasicBlock, List[LlhdBasicBlock]] = {}

    def runOnProcessImpl(self, proc: "LlhdProcess"):
        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        entry = cfg.entry
        if entry is None:
            return
        idom = immediate_dominators(cfg.graph, entry)
        for bb in cfg.preorder:
            d = idom.get(bb, None)
            if d is bb or bb is entry:
                # :note: the entry is not mapped or mapped to itself, depends on version of networkx
                d = None
            self.idom[bb] = d
            self.children[bb] = []
            if d is not None:
                self.children[d].append(bb)

    def dominates(self, a: LlhdBasicBlock, b: LlhdBasicBlock) -> bool:
        """
        :return: True if every path from entry to b goes trough a (a block dominates itself)
        """
        idom = self.idom
        if a not in idom or b not in idom:
            return False
        while b is not None:
            if b is a:
                return True
            b = idom[b]
        return False

    def dominatesInstr(self, defInstr: LlhdInstr, useInstr: LlhdInstr) -> bool:
        """
        :return: True if the value of defInstr is available in useInstr
        """
        defBlock = defInstr.parent
        useBlock = useInstr.parent
        if defBlock is useBlock:
            for i in defBlock.body:
                if i is defInstr:
                    return i is not useInstr
                elif i is useInstr:
                    return False
            raise AssertionError("Instructions are not in its parent block", defInstr, useInstr)
        return self.dominates(defBlock, useBlock)
