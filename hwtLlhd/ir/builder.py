from typing import Dict, Optional, Sequence, Union, Tuple

from hwt.hdl.operatorDefs import AllOps, OpDefinition
from hwt.hdl.types.hdlType import HdlType
from hwt.hdl.value import HValue
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.instr import LlhdInstr, LlhdOperand, LlhdInstrSignal, LlhdInstrCompare, \
    LlhdInstrUnary, LlhdInstrBinary, LlhdInstrSelect, LlhdInstrDrive, LlhdInstrInstance, \
    LlhdInstrBranch, LlhdInstrReturn, LlhdInstrWait, operandType
from hwtLlhd.ir.value import LlhdValue


class LlhdIrBuilder():
    """
    Constructs instructions and inserts them to a basic block or an entity.
    Python ints are converted to constants of the type of other operand.

    :ivar parent: block or entity where new instructions are inserted
    :ivar position: index where next instruction is inserted, None means the end
    :ivar _opCache: cache of unnamed operator instructions so the same expression is not constructed twice
    """

    def __init__(self, parent: Union[LlhdBasicBlock, "LlhdEntity"], position: Optional[int]=None):
        self.parent = parent
        self.position = position
        self._opCache: Dict[Tuple, LlhdInstr] = {}

    def setInsertPoint(self, parent: Union[LlhdBasicBlock, "LlhdEntity"], position: Optional[int]):
        self.parent = parent
        self.position = position

    def _insertInstr(self, instr: LlhdInstr):
        assert isinstance(instr, LlhdInstr), instr
        pos = self.position
        p = self.parent
        if pos is None:
            p.appendInstr(instr)
        else:
            p.insertInstr(pos, instr)
            self.position += 1
        return instr

    @staticmethod
    def _operandKey(o: LlhdOperand):
        if isinstance(o, LlhdValue):
            return o
        return (o._dtype.bit_length(), o.val, o.vld_mask)

    def _cachedOp(self, cls, operator: Optional[OpDefinition], operands: Tuple[LlhdOperand, ...], name: Optional[str]):
        if name is not None:
            if operator is None:
                return self._insertInstr(cls(*operands, name=name))
            return self._insertInstr(cls(operator, *operands, name=name))

        k = (cls, operator, *(self._operandKey(o) for o in operands))
        try:
            instr = self._opCache[k]
            # reuse only in the same block so the definition dominates the use
            if instr.parent is self.parent:
                return instr
        except KeyError:
            pass

        if operator is None:
            instr = cls(*operands)
        else:
            instr = cls(operator, *operands)
        self._insertInstr(instr)
        self._opCache[k] = instr
        return instr

    @staticmethod
    def const(dtype: HdlType, v: Optional[int]) -> HValue:
        return dtype.from_py(v)

    @staticmethod
    def _normalizeOperands(o0: Union[LlhdOperand, int], o1: Union[LlhdOperand, int]):
        if isinstance(o0, int):
            assert not isinstance(o1, int), ("At least one operand must have a type", o0, o1)
            o0 = operandType(o1).from_py(o0)
        elif isinstance(o1, int):
            o1 = operandType(o0).from_py(o1)
        return o0, o1

    def sig(self, dtype: HdlType, init: Optional[Union[HValue, int]]=None, name: Optional[str]=None) -> LlhdInstrSignal:
        if isinstance(init, int):
            init = dtype.from_py(init)
        return self._insertInstr(LlhdInstrSignal(dtype, init, name))

    def cmp(self, operator: OpDefinition, lhs: Union[LlhdOperand, int], rhs: Union[LlhdOperand, int], name: Optional[str]=None) -> LlhdInstrCompare:
        lhs, rhs = self._normalizeOperands(lhs, rhs)
        return self._cachedOp(LlhdInstrCompare, operator, (lhs, rhs), name)

    def eq(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrCompare:
        return self.cmp(AllOps.EQ, lhs, rhs, name)

    def ne(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrCompare:
        return self.cmp(AllOps.NE, lhs, rhs, name)

    def not_(self, o: LlhdOperand, name: Optional[str]=None) -> LlhdInstrUnary:
        return self._cachedOp(LlhdInstrUnary, AllOps.NOT, (o,), name)

    def _binaryOp(self, operator: OpDefinition, lhs, rhs, name: Optional[str]) -> LlhdInstrBinary:
        lhs, rhs = self._normalizeOperands(lhs, rhs)
        return self._cachedOp(LlhdInstrBinary, operator, (lhs, rhs), name)

    def and_(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrBinary:
        return self._binaryOp(AllOps.AND, lhs, rhs, name)

    def or_(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrBinary:
        return self._binaryOp(AllOps.OR, lhs, rhs, name)

    def xor(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrBinary:
        return self._binaryOp(AllOps.XOR, lhs, rhs, name)

    def add(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrBinary:
        return self._binaryOp(AllOps.ADD, lhs, rhs, name)

    def sub(self, lhs, rhs, name: Optional[str]=None) -> LlhdInstrBinary:
        return self._binaryOp(AllOps.SUB, lhs, rhs, name)

    def select(self, cond: LlhdOperand, ifTrue, ifFalse, name: Optional[str]=None) -> LlhdInstrSelect:
        ifTrue, ifFalse = self._normalizeOperands(ifTrue, ifFalse)
        return self._cachedOp(LlhdInstrSelect, None, (cond, ifTrue, ifFalse), name)

    def drv(self, target: LlhdValue, value: Union[LlhdOperand, int]) -> LlhdInstrDrive:
        if isinstance(value, int):
            value = target._dtype.from_py(value)
        return self._insertInstr(LlhdInstrDrive(target, value))

    def inst(self, callee: "LlhdUnit", inputs: Sequence[LlhdOperand], outputs: Sequence[LlhdValue], name: Optional[str]=None) -> LlhdInstrInstance:
        return self._insertInstr(LlhdInstrInstance(callee, inputs, outputs, name))

    def br(self, cond: Optional[LlhdOperand], ifTrue: LlhdBasicBlock, ifFalse: Optional[LlhdBasicBlock]=None) -> LlhdInstrBranch:
        return self._insertInstr(LlhdInstrBranch(cond, ifTrue, ifFalse))

    def ret(self) -> LlhdInstrReturn:
        return self._insertInstr(LlhdInstrReturn())

    def wait(self, resume: LlhdBasicBlock, signals: Sequence[LlhdValue]=()) -> LlhdInstrWait:
        return self._insertInstr(LlhdInstrWait(resume, signals))
