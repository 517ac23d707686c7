from io import StringIO
from typing import List, Optional, Tuple, Generator

from hwtLlhd.analysisCache import AnalysisCache
from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstr
from hwtLlhd.ir.types import LlhdCompType
from hwtLlhd.ir.value import LlhdValue, LlhdArgument, indexOfValue


class LlhdUnit(LlhdValue):
    """
    Base class of the top level objects of the module.

    :ivar parent: the module which owns this unit
    :ivar inputs: input ports
    :ivar outputs: output ports
    """

    def __init__(self, dtype: LlhdCompType, name: str):
        assert isinstance(dtype, LlhdCompType), dtype
        assert name, "Unit has to have a name"
        super(LlhdUnit, self).__init__(dtype, name)
        self.parent: Optional["LlhdModule"] = None
        self.inputs: Tuple[LlhdArgument, ...] = tuple(
            LlhdArgument(self, t, i, False) for i, t in enumerate(dtype.inputs))
        self.outputs: Tuple[LlhdArgument, ...] = tuple(
            LlhdArgument(self, t, i, True) for i, t in enumerate(dtype.outputs))

    def getInput(self, index: int) -> LlhdArgument:
        return self.inputs[index]

    def getOutput(self, index: int) -> LlhdArgument:
        return self.outputs[index]

    def getUnit(self) -> "LlhdUnit":
        return self

    def appendTo(self, module: "LlhdModule"):
        module.appendUnit(self)

    def iterInstrs(self) -> Generator[LlhdInstr, None, None]:
        raise NotImplementedError("Implement in child class", self)

    @property
    def _dbgLogPassExec(self) -> Optional[StringIO]:
        m = self.parent
        if m is None:
            return None
        return m._dbgLogPassExec


class LlhdEntity(LlhdUnit):
    """
    Unit without control flow, every instruction is evaluated continuously and the order of instructions
    does not matter.
    """

    def __init__(self, dtype: LlhdCompType, name: str):
        super(LlhdEntity, self).__init__(dtype, name)
        self.body: List[LlhdInstr] = []

    def appendInstr(self, instr: LlhdInstr):
        self.insertInstr(len(self.body), instr)

    def insertInstr(self, index: int, instr: LlhdInstr):
        assert instr.parent is None, ("Instruction is already placed somewhere", instr, instr.parent, self)
        assert not instr.isTerminator(), ("Entity can not contain control flow", instr, self)
        instr.parent = self
        self.body.insert(index, instr)

    def removeInstr(self, instr: LlhdInstr):
        assert instr.parent is self, (instr, instr.parent, self)
        self.body.pop(indexOfValue(self.body, instr))
        instr.parent = None

    def iterInstrs(self):
        yield from self.body


class LlhdProcess(LlhdUnit, AnalysisCache):
    """
    Unit described by control flow graph. The first block is the entry block.
    On activation the process executes from the entry until `ret`, then it is suspended until any of values
    which it reads changes.

    :note: analyses are invalidated on block list modification, modification of block content
        has to be followed by manual invalidation
    """

    def __init__(self, dtype: LlhdCompType, name: str):
        LlhdUnit.__init__(self, dtype, name)
        AnalysisCache.__init__(self)
        self.blocks: List[LlhdBasicBlock] = []

    def getEntry(self) -> Optional[LlhdBasicBlock]:
        if self.blocks:
            return self.blocks[0]
        return None

    def appendBlock(self, block: LlhdBasicBlock):
        assert block.parent is None, ("Block is already placed somewhere", block, block.parent, self)
        block.parent = self
        self.blocks.append(block)
        self.invalidateAll()

    def removeBlock(self, block: LlhdBasicBlock):
        assert block.parent is self, (block, block.parent, self)
        assert not block.users, ("Block is still used", block, block.users)
        self.blocks.pop(indexOfValue(self.blocks, block))
        block.parent = None
        self.invalidateAll()

    def iterInstrs(self):
        for b in self.blocks:
            yield from b.body

    def _runAnalysisImpl(self, a: LlhdAnalysisPass):
        a.runOnProcess(self)
