from io import StringIO
from typing import Dict, Set, Union

from hdlConvertorAst.to.hdlUtils import Indent, AutoIndentingStream
from hwt.hdl.operatorDefs import AllOps
from hwt.hdl.value import HValue
from hwtLlhd.ir.instr import LlhdInstr, LlhdInstrSignal, LlhdInstrCompare, LlhdInstrUnary, \
    LlhdInstrBinary, LlhdInstrSelect, LlhdInstrDrive, LlhdInstrInstance, LlhdInstrBranch, \
    LlhdInstrReturn, LlhdInstrWait, OP_SLT, OP_SGT, OP_SLE, OP_SGE, OP_ULT, OP_UGT, OP_ULE, OP_UGE, \
    LlhdOperand
from hwtLlhd.ir.module import LlhdModule
from hwtLlhd.ir.types import typeToStr, constToInt
from hwtLlhd.ir.unit import LlhdUnit, LlhdEntity, LlhdProcess
from hwtLlhd.ir.value import LlhdValue
from hwtLlhd.platform.fileUtils import OutputStreamGetter
from hwtLlhd.transformation.llhdPass import LlhdPass

_OP_NAMES = {
    AllOps.EQ: "eq",
    AllOps.NE: "neq",
    OP_SLT: "slt",
    OP_SGT: "sgt",
    OP_SLE: "sle",
    OP_SGE: "sge",
    OP_ULT: "ult",
    OP_UGT: "ugt",
    OP_ULE: "ule",
    OP_UGE: "uge",
    AllOps.NOT: "not",
    AllOps.ADD: "add",
    AllOps.SUB: "sub",
    AllOps.AND: "and",
    AllOps.OR: "or",
    AllOps.XOR: "xor",
}


class LlhdToAsm():
    """
    Convert the module to a LLHD assembly like text for debugging and testing.
    The output is deterministic, unnamed values are numbered in the order of appearance in unit
    and the duplicated names are suffixed with ".N".

    Output example:
    .. code-block::llhd

        proc @LAGCE_proc (i1 %CK, i1 %E, i1 %Q) (i1 %GCK, i1 %Q.1) {
        %entry:
            %0 = cmp eq i1 %CK, 0
            br %0, %ckl, %ckh
        %ckh:
            drv %GCK, %Q
            ret
        }
    """

    def __init__(self, output: AutoIndentingStream):
        self.output = output
        self._names: Dict[LlhdValue, str] = {}
        self._usedNames: Set[str] = set()
        self._unnamedCnt = 0

    def _resetNames(self):
        self._names.clear()
        self._usedNames.clear()
        self._unnamedCnt = 0

    def _assignName(self, v: LlhdValue):
        if v in self._names:
            return
        name = v._name
        if name is None:
            while True:
                name = str(self._unnamedCnt)
                self._unnamedCnt += 1
                if name not in self._usedNames:
                    break
        elif name in self._usedNames:
            i = 1
            while f"{name:s}.{i:d}" in self._usedNames:
                i += 1
            name = f"{name:s}.{i:d}"
        self._usedNames.add(name)
        self._names[v] = name

    def _assignNamesInUnit(self, u: LlhdUnit):
        self._resetNames()
        for a in u.inputs:
            self._assignName(a)
        for a in u.outputs:
            self._assignName(a)
        if isinstance(u, LlhdProcess):
            for bb in u.blocks:
                self._assignName(bb)
                for i in bb.body:
                    if i._dtype is not None:
                        self._assignName(i)
        else:
            for i in u.body:
                if i._dtype is not None or (isinstance(i, LlhdInstrInstance) and i._name is not None):
                    self._assignName(i)

    def _operandToStr(self, o: Union[LlhdOperand, LlhdUnit]) -> str:
        if isinstance(o, HValue):
            v = constToInt(o)
            if v is None:
                return "undef"
            return str(v)
        elif isinstance(o, LlhdUnit):
            return f"@{o._name:s}"
        try:
            return f"%{self._names[o]:s}"
        except KeyError:
            # value from other unit or removed value, printed so the broken IR is still readable
            return f"%<{o._name}>"

    def _portsToStr(self, ports) -> str:
        return ", ".join(f"{typeToStr(p._dtype):s} %{self._names[p]:s}" for p in ports)

    def _instrToStr(self, i: LlhdInstr) -> str:
        o = self._operandToStr
        if isinstance(i, LlhdInstrSignal):
            s = f"sig {typeToStr(i._dtype):s}"
            if i.init is not None:
                s = f"{s:s} {o(i.init):s}"
        elif isinstance(i, LlhdInstrCompare):
            s = f"cmp {_OP_NAMES[i.operator]:s} {typeToStr(i.lhs._dtype):s} {o(i.lhs):s}, {o(i.rhs):s}"
        elif isinstance(i, (LlhdInstrUnary, LlhdInstrBinary)):
            ops = ", ".join(o(_o) for _o in i.operands)
            s = f"{_OP_NAMES[i.operator]:s} {typeToStr(i._dtype):s} {ops:s}"
        elif isinstance(i, LlhdInstrSelect):
            s = f"select {typeToStr(i._dtype):s} {o(i.cond):s}, {o(i.ifTrue):s}, {o(i.ifFalse):s}"
        elif isinstance(i, LlhdInstrDrive):
            return f"drv {o(i.target):s}, {o(i.value):s}"
        elif isinstance(i, LlhdInstrInstance):
            ins = ", ".join(o(_o) for _o in i.inputs)
            outs = ", ".join(o(_o) for _o in i.outputs)
            s = f"inst {o(i.callee):s} ({ins:s}) ({outs:s})"
            if i not in self._names:
                return s
        elif isinstance(i, LlhdInstrBranch):
            return "br " + ", ".join(o(_o) for _o in i.operands)
        elif isinstance(i, LlhdInstrReturn):
            return "ret"
        elif isinstance(i, LlhdInstrWait):
            s = f"wait {o(i.resume):s}"
            if i.signals:
                sigs = ", ".join(o(_o) for _o in i.signals)
                s = f"{s:s} for {sigs:s}"
            return s
        else:
            raise NotImplementedError(i)

        return f"%{self._names[i]:s} = {s:s}"

    def visitUnit(self, u: LlhdUnit):
        w = self.output.write
        self._assignNamesInUnit(u)
        kind = "proc" if isinstance(u, LlhdProcess) else "entity"
        w(f"{kind:s} @{u._name:s} ({self._portsToStr(u.inputs):s}) ({self._portsToStr(u.outputs):s}) {{\n")
        if isinstance(u, LlhdProcess):
            for bb in u.blocks:
                w(f"%{self._names[bb]:s}:\n")
                with Indent(self.output):
                    for i in bb.body:
                        w(self._instrToStr(i))
                        w("\n")
        else:
            assert isinstance(u, LlhdEntity), u
            with Indent(self.output):
                for i in u.body:
                    w(self._instrToStr(i))
                    w("\n")
        w("}\n")

    def visitModule(self, m: LlhdModule):
        for i, u in enumerate(m.units):
            if i != 0:
                self.output.write("\n")
            self.visitUnit(u)


def moduleToAsmStr(m: LlhdModule) -> str:
    buff = StringIO()
    LlhdToAsm(AutoIndentingStream(buff, "    ")).visitModule(m)
    return buff.getvalue()


def unitToAsmStr(u: LlhdUnit) -> str:
    buff = StringIO()
    LlhdToAsm(AutoIndentingStream(buff, "    ")).visitUnit(u)
    return buff.getvalue()


class LlhdPassDumpAsm(LlhdPass):

    def __init__(self, outStreamGetter: OutputStreamGetter):
        self.outStreamGetter = outStreamGetter

    def runOnModuleImpl(self, module: LlhdModule):
        output, doClose = self.outStreamGetter(module.name)
        try:
            LlhdToAsm(AutoIndentingStream(output, "    ")).visitModule(module)
        finally:
            if doClose:
                output.close()
