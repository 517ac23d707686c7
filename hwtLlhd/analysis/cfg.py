from typing import Dict, List, Set, Tuple

from networkx.algorithms.components.strongly_connected import strongly_connected_components
from networkx.classes.digraph import DiGraph

from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass
from hwtLlhd.ir.basicBlock import LlhdBasicBlock


class LlhdAnalysisCfg(LlhdAnalysisPass):
    """
    Control flow graph of the process restricted to blocks reachable from the entry.

    :ivar graph: networkx graph of reachable blocks
    :ivar preorder: reachable blocks in order of the first visit of depth-first walk from entry
        (successors are visited in the order of branch targets)
    :ivar postorder: reachable blocks in depth-first postorder
    :ivar blockIndex: index of the block in reverse postorder (a topological order if the CFG is acyclic)
    :ivar backedges: edges which are closing a cycle in depth-first walk
    :ivar loops: strongly connected components which are forming a cycle
    :ivar unreachable: blocks of the process which can not be reached from the entry
    """

    def __init__(self):
        self.graph = DiGraph()
        self.preorder: List[LlhdBasicBlock] = []
        self.postorder: List[LlhdBasicBlock] = []
        self.blockIndex: Dict[LlhdBasicBlock, int] = {}
        self.backedges: List[Tuple[LlhdBasicBlock, LlhdBasicBlock]] = []
        self.loops: List[Set[LlhdBasicBlock]] = []
        self.unreachable: List[LlhdBasicBlock] = []
        self.entry = None

    def _visit(self, bb: LlhdBasicBlock, onStack: Set[LlhdBasicBlock], seen: Set[LlhdBasicBlock]):
        seen.add(bb)
        onStack.add(bb)
        self.preorder.append(bb)
        g = self.graph
        g.add_node(bb)
        for suc in bb.iterSuccessors():
            g.add_edge(bb, suc)
            if suc in onStack:
                self.backedges.append((bb, suc))
            elif suc not in seen:
                self._visit(suc, onStack, seen)
        onStack.remove(bb)
        self.postorder.append(bb)

    def runOnProcessImpl(self, proc: "LlhdProcess"):
        entry = proc.getEntry()
        self.entry = entry
        if entry is None:
            return
        seen: Set[LlhdBasicBlock] = set()
        self._visit(entry, set(), seen)
        self.blockIndex = {bb: i for i, bb in enumerate(self.reversePostorder())}
        g = self.graph
        for scc in strongly_connected_components(g):
            if len(scc) > 1:
                self.loops.append(scc)
            else:
                (n,) = scc
                if g.has_edge(n, n):
                    self.loops.append(scc)
        self.unreachable = [bb for bb in proc.blocks if bb not in seen]

    def reversePostorder(self) -> List[LlhdBasicBlock]:
        return self.postorder[::-1]

    def isReachable(self, bb: LlhdBasicBlock) -> bool:
        return bb in self.blockIndex

    def hasLoop(self) -> bool:
        return bool(self.loops)

    def iterPredecessors(self, bb: LlhdBasicBlock):
        "reachable predecessors in deterministic order"
        return self.graph.predecessors(bb)
