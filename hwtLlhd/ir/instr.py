from operator import lt, le, gt, ge
from typing import Optional, Sequence, Tuple, Union, Generator

from hwt.hdl.operatorDefs import AllOps, OpDefinition
from hwt.hdl.types.defs import BIT
from hwt.hdl.types.hdlType import HdlType
from hwt.hdl.value import HValue
from hwtLlhd.errors import TypeMismatch
from hwtLlhd.ir.basicBlock import LlhdBasicBlock
from hwtLlhd.ir.types import isSameType, isBoolType, typeToStr, LlhdCompType
from hwtLlhd.ir.value import LlhdValue, LlhdArgument

LlhdOperand = Union[LlhdValue, HValue]


def _opDef(fn, idStr: str) -> OpDefinition:
    o = OpDefinition(fn)
    o.id = idStr
    return o


# AllOps resolves the signedness from the type of operands, LLHD has it in the instruction
OP_SLT = _opDef(lt, "SLT")
OP_SGT = _opDef(gt, "SGT")
OP_SLE = _opDef(le, "SLE")
OP_SGE = _opDef(ge, "SGE")
OP_ULT = _opDef(lt, "ULT")
OP_UGT = _opDef(gt, "UGT")
OP_ULE = _opDef(le, "ULE")
OP_UGE = _opDef(ge, "UGE")

CMP_OPS = (AllOps.EQ, AllOps.NE, OP_SLT, OP_SGT, OP_SLE, OP_SGE, OP_ULT, OP_UGT, OP_ULE, OP_UGE)
SIGNED_CMP_OPS = (OP_SLT, OP_SGT, OP_SLE, OP_SGE)
UNARY_OPS = (AllOps.NOT,)
BINARY_OPS = (AllOps.ADD, AllOps.SUB, AllOps.AND, AllOps.OR, AllOps.XOR)


def _opIn(op: OpDefinition, ops: Tuple[OpDefinition, ...]):
    return any(op is o for o in ops)


def operandType(op: LlhdOperand) -> HdlType:
    return op._dtype


class LlhdInstr(LlhdValue):
    """
    Base class of instructions.

    :ivar parent: basic block (for processes) or entity where this instruction is placed
    :ivar operands: tuple of operands, :class:`~.LlhdValue` instances are tracking this instruction
        in its users
    """
    OPCODE: str = None

    def __init__(self, dtype: Optional[HdlType], operands: Sequence[LlhdOperand], name: Optional[str]=None):
        super(LlhdInstr, self).__init__(dtype, name)
        self.parent: Optional[Union[LlhdBasicBlock, "LlhdEntity"]] = None
        self.operands: Tuple[LlhdOperand, ...] = ()
        self._setOperands(operands)

    def _setOperands(self, operands: Sequence[LlhdOperand]):
        operands = tuple(operands)
        for op in operands:
            if isinstance(op, LlhdValue):
                op.users.append(self)
            else:
                assert isinstance(op, HValue), (self, "Unsupported operand", op)
        self.operands = operands

    def _checkSameType(self, a: LlhdOperand, b: LlhdOperand, what: str):
        ta = operandType(a)
        tb = operandType(b)
        if ta is None or tb is None or not isSameType(ta, tb):
            raise TypeMismatch(f"{self.OPCODE:s}: {what:s} must have same type", a, b)

    def _checkBool(self, c: LlhdOperand, what: str):
        t = operandType(c)
        if t is None or not isBoolType(t):
            raise TypeMismatch(f"{self.OPCODE:s}: {what:s} must be i1, is {t}", c)

    def isTerminator(self) -> bool:
        return False

    def hasSideEffects(self) -> bool:
        """
        :return: True if this instruction can not be moved or removed without change of behavior
        """
        return False

    def iterSuccessors(self) -> Generator[LlhdBasicBlock, None, None]:
        return
        yield

    def iterReadOperands(self) -> Generator[LlhdValue, None, None]:
        """
        Iterate operands whose value is read by this instruction (not drive targets, jump targets or callee)
        """
        for o in self.operands:
            if isinstance(o, LlhdValue):
                yield o

    def getUnit(self) -> Optional["LlhdUnit"]:
        p = self.parent
        if p is None:
            return None
        return p.getUnit()

    def appendTo(self, parent: Union[LlhdBasicBlock, "LlhdEntity"]):
        parent.appendInstr(self)

    def replaceInput(self, origExpr: LlhdValue, newExpr: LlhdOperand):
        assert isinstance(newExpr, (LlhdValue, HValue)), (self, origExpr, newExpr)
        assert any(o is origExpr for o in self.operands), (self, origExpr)
        tOrig = operandType(origExpr)
        if tOrig is not None and not isinstance(tOrig, LlhdCompType):
            self._checkSameType(origExpr, newExpr, "replacement")
        self.operands = tuple(
            newExpr if o is origExpr else o
            for o in self.operands
        )
        origExpr.users.remove(self)
        if isinstance(newExpr, LlhdValue):
            newExpr.users.append(self)

    def dropAllReferences(self):
        for o in self.operands:
            if isinstance(o, LlhdValue):
                o.users.discard(self)
        self.operands = ()

    def eraseFromParent(self):
        assert not self.users, ("Instruction must not have users when being erased", self, self.users)
        self.parent.removeInstr(self)
        self.dropAllReferences()

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstr":
        raise NotImplementedError("Implement in child class", self)

    def __repr__(self):
        return f"<{self.__class__.__name__:s} {self._name} {self.OPCODE:s}>"


class LlhdInstrSignal(LlhdInstr):
    """
    Declaration of the internal signal. The value of this instruction is the current value of the signal.

    :ivar init: initial value, None means undefined
    """
    OPCODE = "sig"

    def __init__(self, dtype: HdlType, init: Optional[HValue]=None, name: Optional[str]=None):
        super(LlhdInstrSignal, self).__init__(dtype, (), name)
        if init is not None:
            assert isinstance(init, HValue), init
            if not isSameType(init._dtype, dtype):
                raise TypeMismatch("sig: initial value must have the type of signal", dtype, init)
        self.init = init

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrSignal":
        assert not operands, operands
        return LlhdInstrSignal(self._dtype, self.init, name)


class LlhdInstrOperator(LlhdInstr):
    """
    Base class of instructions which are pure functions of its operands.

    :ivar operator: the operator from :class:`hwt.hdl.operatorDefs.AllOps` or `OP_*` from this module
    """

    def __init__(self, dtype: HdlType, operator: OpDefinition, operands: Sequence[LlhdOperand], name: Optional[str]=None):
        super(LlhdInstrOperator, self).__init__(dtype, operands, name)
        self.operator = operator

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrOperator":
        return self.__class__(self.operator, *operands, name=name)


class LlhdInstrCompare(LlhdInstrOperator):
    OPCODE = "cmp"

    def __init__(self, operator: OpDefinition, lhs: LlhdOperand, rhs: LlhdOperand, name: Optional[str]=None):
        assert _opIn(operator, CMP_OPS), operator
        self._checkSameType(lhs, rhs, "operands")
        super(LlhdInstrCompare, self).__init__(BIT, operator, (lhs, rhs), name)

    @property
    def lhs(self):
        return self.operands[0]

    @property
    def rhs(self):
        return self.operands[1]


class LlhdInstrUnary(LlhdInstrOperator):
    OPCODE = "unary"

    def __init__(self, operator: OpDefinition, operand: LlhdOperand, name: Optional[str]=None):
        assert _opIn(operator, UNARY_OPS), operator
        super(LlhdInstrUnary, self).__init__(operandType(operand), operator, (operand,), name)


class LlhdInstrBinary(LlhdInstrOperator):
    OPCODE = "binary"

    def __init__(self, operator: OpDefinition, lhs: LlhdOperand, rhs: LlhdOperand, name: Optional[str]=None):
        assert _opIn(operator, BINARY_OPS), operator
        self._checkSameType(lhs, rhs, "operands")
        super(LlhdInstrBinary, self).__init__(operandType(lhs), operator, (lhs, rhs), name)


class LlhdInstrSelect(LlhdInstrOperator):
    """
    Multiplexer, ifTrue if cond else ifFalse
    """
    OPCODE = "select"

    def __init__(self, cond: LlhdOperand, ifTrue: LlhdOperand, ifFalse: LlhdOperand, name: Optional[str]=None):
        self._checkBool(cond, "condition")
        self._checkSameType(ifTrue, ifFalse, "values")
        super(LlhdInstrSelect, self).__init__(operandType(ifTrue), AllOps.TERNARY, (cond, ifTrue, ifFalse), name)

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrSelect":
        return LlhdInstrSelect(*operands, name=name)

    @property
    def cond(self):
        return self.operands[0]

    @property
    def ifTrue(self):
        return self.operands[1]

    @property
    def ifFalse(self):
        return self.operands[2]


class LlhdInstrDrive(LlhdInstr):
    """
    Drive the value to output port or signal.
    """
    OPCODE = "drv"

    def __init__(self, target: Union[LlhdArgument, LlhdInstrSignal], value: LlhdOperand, name: Optional[str]=None):
        if not ((isinstance(target, LlhdArgument) and target.isOutput) or isinstance(target, LlhdInstrSignal)):
            raise TypeMismatch("drv: target must be an output port or a signal", target)
        self._checkSameType(target, value, "target and value")
        super(LlhdInstrDrive, self).__init__(None, (target, value), name)

    @property
    def target(self) -> Union[LlhdArgument, LlhdInstrSignal]:
        return self.operands[0]

    @property
    def value(self) -> LlhdOperand:
        return self.operands[1]

    def hasSideEffects(self) -> bool:
        return True

    def iterReadOperands(self):
        v = self.value
        if isinstance(v, LlhdValue):
            yield v

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrDrive":
        return LlhdInstrDrive(*operands, name=name)


def checkInstanceBinding(callee: "LlhdUnit", inputs: Sequence[LlhdOperand], outputs: Sequence[LlhdValue]):
    """
    :raise TypeMismatch: if the arguments do not match the ports of callee
    """
    t: LlhdCompType = callee._dtype
    if len(inputs) != len(t.inputs) or len(outputs) != len(t.outputs):
        raise TypeMismatch("inst: number of arguments does not match the ports of ", callee._name,
                           (len(inputs), len(outputs)), (len(t.inputs), len(t.outputs)))
    for i, (a, pt) in enumerate(zip(inputs, t.inputs)):
        at = operandType(a)
        if at is None or not isSameType(at, pt):
            raise TypeMismatch(f"inst: input {i:d} of {callee._name} is {typeToStr(pt):s}", a)
    for i, (a, pt) in enumerate(zip(outputs, t.outputs)):
        if not ((isinstance(a, LlhdArgument) and a.isOutput) or isinstance(a, LlhdInstrSignal)):
            raise TypeMismatch(f"inst: output {i:d} of {callee._name} has to be bound to an output port or a signal", a)
        if not isSameType(a._dtype, pt):
            raise TypeMismatch(f"inst: output {i:d} of {callee._name} is {typeToStr(pt):s}", a)


class LlhdInstrInstance(LlhdInstr):
    """
    Instance of an unit inside of the entity.
    The input ports of the callee are connected to inputs, output ports drive the outputs.
    """
    OPCODE = "inst"

    def __init__(self, callee: "LlhdUnit", inputs: Sequence[LlhdOperand], outputs: Sequence[LlhdValue], name: Optional[str]=None):
        assert isinstance(callee._dtype, LlhdCompType), callee
        checkInstanceBinding(callee, inputs, outputs)
        super(LlhdInstrInstance, self).__init__(None, (callee, *inputs, *outputs), name)
        self._inputCnt = len(inputs)

    @property
    def callee(self) -> "LlhdUnit":
        return self.operands[0]

    @property
    def inputs(self) -> Tuple[LlhdOperand, ...]:
        return self.operands[1:1 + self._inputCnt]

    @property
    def outputs(self) -> Tuple[LlhdValue, ...]:
        return self.operands[1 + self._inputCnt:]

    def hasSideEffects(self) -> bool:
        return True

    def iterReadOperands(self):
        for o in self.inputs:
            if isinstance(o, LlhdValue):
                yield o

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrInstance":
        callee = operands[0]
        return LlhdInstrInstance(callee, operands[1:1 + self._inputCnt], operands[1 + self._inputCnt:], name=name)


class LlhdInstrBranch(LlhdInstr):
    """
    Unconditional jump (cond is None) or jump to ifTrue if cond else to ifFalse.
    """
    OPCODE = "br"

    def __init__(self, cond: Optional[LlhdOperand], ifTrue: LlhdBasicBlock, ifFalse: Optional[LlhdBasicBlock]=None):
        assert isinstance(ifTrue, LlhdBasicBlock), ifTrue
        if cond is None:
            assert ifFalse is None, ("Unconditional branch has only a single target", ifFalse)
            operands = (ifTrue,)
        else:
            assert isinstance(ifFalse, LlhdBasicBlock), ifFalse
            self._checkBool(cond, "condition")
            operands = (cond, ifTrue, ifFalse)
        super(LlhdInstrBranch, self).__init__(None, operands)

    @property
    def cond(self) -> Optional[LlhdOperand]:
        if len(self.operands) == 1:
            return None
        return self.operands[0]

    @property
    def targets(self) -> Tuple[LlhdBasicBlock, ...]:
        if len(self.operands) == 1:
            return self.operands
        return self.operands[1:]

    def isTerminator(self) -> bool:
        return True

    def hasSideEffects(self) -> bool:
        return True

    def iterSuccessors(self):
        yield from self.targets

    def iterReadOperands(self):
        c = self.cond
        if isinstance(c, LlhdValue):
            yield c


class LlhdInstrReturn(LlhdInstr):
    """
    End of process activation, the process is suspended until any of read values changes
    and then it resumes at the entry block.
    """
    OPCODE = "ret"

    def __init__(self):
        super(LlhdInstrReturn, self).__init__(None, ())

    def isTerminator(self) -> bool:
        return True

    def hasSideEffects(self) -> bool:
        return True

    def cloneWithOperands(self, operands: Sequence[LlhdOperand], name: Optional[str]) -> "LlhdInstrReturn":
        assert not operands, operands
        return LlhdInstrReturn()


class LlhdInstrWait(LlhdInstr):
    """
    Suspend the process until any of signals changes, then continue in resume block.
    """
    OPCODE = "wait"

    def __init__(self, resume: LlhdBasicBlock, signals: Sequence[LlhdValue]=()):
        assert isinstance(resume, LlhdBasicBlock), resume
        super(LlhdInstrWait, self).__init__(None, (resume, *signals))

    @property
    def resume(self) -> LlhdBasicBlock:
        return self.operands[0]

    @property
    def signals(self) -> Tuple[LlhdValue, ...]:
        return self.operands[1:]

    def isTerminator(self) -> bool:
        return True

    def hasSideEffects(self) -> bool:
        return True

    def iterSuccessors(self):
        yield self.resume

    def iterReadOperands(self):
        yield from self.signals
