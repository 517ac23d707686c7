from typing import List, Optional, Generator

from hwtLlhd.ir.value import LlhdValue, indexOfValue


class LlhdBasicBlock(LlhdValue):
    """
    Basic block of the process, the last instruction is a terminator (br, ret, wait).
    The block is a value so it can be used as an operand of the branch.

    :ivar parent: the process which owns this block
    :ivar body: instructions of this block in program order
    """

    def __init__(self, name: Optional[str]=None):
        super(LlhdBasicBlock, self).__init__(None, name)
        self.parent: Optional["LlhdProcess"] = None
        self.body: List["LlhdInstr"] = []

    @property
    def label(self) -> Optional[str]:
        return self._name

    def getUnit(self) -> Optional["LlhdProcess"]:
        return self.parent

    def appendTo(self, process: "LlhdProcess"):
        process.appendBlock(self)

    def getTerminator(self) -> Optional["LlhdInstr"]:
        if self.body:
            last = self.body[-1]
            if last.isTerminator():
                return last
        return None

    def appendInstr(self, instr: "LlhdInstr"):
        assert instr.parent is None, ("Instruction is already placed somewhere", instr, instr.parent, self)
        assert self.getTerminator() is None, ("Block is already terminated", self, instr)
        assert instr.OPCODE != "inst", ("Instance is allowed only in entity", instr, self)
        instr.parent = self
        self.body.append(instr)

    def insertInstr(self, index: int, instr: "LlhdInstr"):
        assert instr.parent is None, ("Instruction is already placed somewhere", instr, instr.parent, self)
        assert not instr.isTerminator() or index == len(self.body), ("Terminator must be the last instruction", instr)
        instr.parent = self
        self.body.insert(index, instr)

    def removeInstr(self, instr: "LlhdInstr"):
        assert instr.parent is self, (instr, instr.parent, self)
        self.body.pop(indexOfValue(self.body, instr))
        instr.parent = None

    def iterSuccessors(self) -> Generator["LlhdBasicBlock", None, None]:
        t = self.getTerminator()
        if t is not None:
            yield from t.iterSuccessors()

    @property
    def predecessors(self) -> List["LlhdBasicBlock"]:
        """
        Blocks with terminator jumping to this block (in order of construction of the terminators)
        """
        preds = []
        for u in self.users:
            if u.isTerminator() and u.parent is not None and not any(p is u.parent for p in preds):
                preds.append(u.parent)
        return preds

    def __repr__(self):
        return f"<{self.__class__.__name__:s} {self._name}>"
