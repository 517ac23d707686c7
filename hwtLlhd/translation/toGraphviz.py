import html
from typing import Dict

import pydot

from hwtLlhd.analysis.cfg import LlhdAnalysisCfg
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstrBranch, LlhdInstrWait
from hwtLlhd.ir.unit import LlhdProcess
from hwtLlhd.platform.fileUtils import OutputStreamGetter
from hwtLlhd.transformation.llhdPass import LlhdPass
from hwtLlhd.translation.toAsm import LlhdToAsm


class LlhdProcessToGraphviz():
    """
    Convert the control flow graph of the process to graphviz for visualization.
    """

    def __init__(self, name: str):
        self.name = name
        self.graph = pydot.Dot(f'"{name}"')
        self.obj_to_node: Dict[LlhdBasicBlock, pydot.Node] = {}
        self._toAsm = LlhdToAsm(None)

    def construct(self, proc: LlhdProcess):
        self._toAsm._assignNamesInUnit(proc)
        cfg: LlhdAnalysisCfg = proc.getAnalysis(LlhdAnalysisCfg)
        # node needs to be constructed before connecting because graph may contain loops
        for bb in proc.blocks:
            self._node_from_LlhdBasicBlock(bb, bb is cfg.entry, cfg.isReachable(bb))

        g = self.graph
        for bb in proc.blocks:
            src = self.obj_to_node[bb]
            for i, dst_bb in enumerate(bb.iterSuccessors()):
                _src = f"{src.get_name():s}:br{i:d}"
                _dst = f"{self.obj_to_node[dst_bb].get_name():s}:begin"
                e = pydot.Edge(_src, _dst)
                if (bb, dst_bb) in cfg.backedges:
                    e.set("style", "dashed")
                g.add_edge(e)

    def _node_from_LlhdBasicBlock(self, bb: LlhdBasicBlock, isEntry: bool, isReachable: bool):
        g = self.graph
        node = pydot.Node(f"bb{len(self.obj_to_node):d}", shape="plaintext")
        if not isReachable:
            node.set("fontcolor", "gray")
        g.add_node(node)
        self.obj_to_node[bb] = node

        toAsm = self._toAsm
        topStr = html.escape('<entry> ') if isEntry else ''
        topLabel = html.escape(toAsm._names[bb])
        bodyRows = [f'    <tr port="begin"><td colspan="2">{topStr:s}%{topLabel:s}:</td></tr>']
        t = bb.getTerminator()
        for instr in bb.body:
            if instr is t:
                break
            bodyRows.append(f'    <tr><td colspan="2">{html.escape(toAsm._instrToStr(instr)):s}</td></tr>')

        if isinstance(t, LlhdInstrBranch):
            c = t.cond
            for i, _ in enumerate(t.targets):
                if c is None:
                    condStr = ""
                elif i == 0:
                    condStr = toAsm._operandToStr(c)
                else:
                    condStr = "!" + toAsm._operandToStr(c)
                bodyRows.append(f'    <tr port="br{i:d}"><td>br{i:d}</td><td>{html.escape(condStr):s}</td></tr>')
        elif t is not None:
            # wait has a single successor, ret has none
            port = ' port="br0"' if isinstance(t, LlhdInstrWait) else ''
            bodyRows.append(f'    <tr{port:s}><td colspan="2">{html.escape(toAsm._instrToStr(t)):s}</td></tr>')

        bodyStr = "\n".join(bodyRows)
        label = f'<<table border="0" cellborder="1" cellspacing="0">{bodyStr:s}</table>>'
        node.set("label", label)
        return node

    def dumps(self):
        return self.graph.to_string()


class LlhdPassDumpCfgDot(LlhdPass):
    """
    Dump the control flow graph of every process in the module, each process to a separate stream.
    """

    def __init__(self, outStreamGetter: OutputStreamGetter):
        self.outStreamGetter = outStreamGetter

    def runOnModuleImpl(self, module: "LlhdModule"):
        for proc in module.iterProcesses():
            toGraphviz = LlhdProcessToGraphviz(proc._name)
            out, doClose = self.outStreamGetter(proc._name)
            try:
                toGraphviz.construct(proc)
                out.write(toGraphviz.dumps())
            finally:
                if doClose:
                    out.close()
