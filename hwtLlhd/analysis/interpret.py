from operator import eq, ne, lt, le, gt, ge, add, sub, and_, or_, xor
from typing import Dict, Optional, Sequence, Union

from hwt.hdl.operatorDefs import AllOps
from hwt.hdl.value import HValue
from hwtLlhd.errors import UnsupportedControlFlow
from hwtLlhd.ir.instr import LlhdInstr, LlhdInstrSignal, LlhdInstrCompare, LlhdInstrUnary, \
    LlhdInstrBinary, LlhdInstrSelect, LlhdInstrDrive, LlhdInstrInstance, LlhdInstrBranch, \
    LlhdInstrReturn, LlhdInstrWait, OP_SLT, OP_SGT, OP_SLE, OP_SGE, OP_ULT, OP_UGT, OP_ULE, \
    OP_UGE, SIGNED_CMP_OPS, LlhdOperand
from hwtLlhd.ir.types import constToInt
from hwtLlhd.ir.unit import LlhdUnit, LlhdEntity, LlhdProcess
from hwtLlhd.ir.value import LlhdValue, LlhdArgument

# value of a net or an instruction, None means undefined
SimValue = Optional[int]
LlhdNet = Union[LlhdArgument, LlhdInstrSignal]

_CMP_FNS = {
    AllOps.EQ: eq,
    AllOps.NE: ne,
    OP_SLT: lt,
    OP_SGT: gt,
    OP_SLE: le,
    OP_SGE: ge,
    OP_ULT: lt,
    OP_UGT: gt,
    OP_ULE: le,
    OP_UGE: ge,
}
_BINARY_FNS = {
    AllOps.ADD: add,
    AllOps.SUB: sub,
    AllOps.AND: and_,
    AllOps.OR: or_,
    AllOps.XOR: xor,
}


def _mask(width: int) -> int:
    return (1 << width) - 1


def _toSigned(v: int, width: int) -> int:
    if v >> (width - 1):
        return v - (1 << width)
    return v


class LlhdUnitState():
    """
    Values of nets of a single instance of the unit.

    :ivar nets: current value of output ports and signals
    :ivar children: state of the instances of other units (for entity)
    """

    def __init__(self, unit: LlhdUnit):
        self.unit = unit
        self.nets: Dict[LlhdNet, SimValue] = {}
        self.children: Dict[LlhdInstrInstance, "LlhdUnitState"] = {}
        for o in unit.outputs:
            self.nets[o] = None
        for i in unit.iterInstrs():
            if isinstance(i, LlhdInstrSignal):
                self.nets[i] = None if i.init is None else constToInt(i.init)

    def getOutputs(self):
        return [self.nets[o] for o in self.unit.outputs]

    def __repr__(self):
        nets = ", ".join(f"{k._name}={v}" for k, v in self.nets.items())
        return f"<{self.__class__.__name__:s} {self.unit._name:s} {nets:s}>"


class LlhdInterpreter():
    """
    Reference evaluator of the IR, used to check that the transformations are preserving the behavior.

    Process activation runs from the entry block to the `ret`, all reads see the values from before the activation
    and drives are applied after the activation (the last executed drive of the net wins).
    An entity is settled using delta cycles, in each delta cycle the drives of the entity and all instances
    are evaluated and then applied at once until no net changes.
    """

    def __init__(self, maxDeltaCycles: int=256, maxActivationSteps: int=4096):
        self.maxDeltaCycles = maxDeltaCycles
        self.maxActivationSteps = maxActivationSteps

    @staticmethod
    def evalOperator(instr: LlhdInstr, ops: Sequence[SimValue]) -> SimValue:
        if isinstance(instr, LlhdInstrSelect):
            c, t, f = ops
            if c is None:
                if t == f:
                    return t
                return None
            return t if c else f

        if any(o is None for o in ops):
            return None

        if isinstance(instr, LlhdInstrCompare):
            a, b = ops
            if any(instr.operator is o for o in SIGNED_CMP_OPS):
                w = instr.lhs._dtype.bit_length()
                a = _toSigned(a, w)
                b = _toSigned(b, w)
            return int(_CMP_FNS[instr.operator](a, b))

        w = instr._dtype.bit_length()
        if isinstance(instr, LlhdInstrUnary):
            assert instr.operator is AllOps.NOT, instr
            (a,) = ops
            return ~a & _mask(w)
        elif isinstance(instr, LlhdInstrBinary):
            a, b = ops
            return _BINARY_FNS[instr.operator](a, b) & _mask(w)
        else:
            raise NotImplementedError(instr)

    def runProcessActivation(self, proc: LlhdProcess, netValues: Dict[LlhdValue, SimValue]) -> Dict[LlhdNet, SimValue]:
        """
        :param netValues: values of input ports, output ports and signals of the process before the activation
            (missing signals have value of its initialization)
        :return: dictionary of driven nets and the driven value
        """
        values: Dict[LlhdValue, SimValue] = {}

        def valueOf(o: LlhdOperand) -> SimValue:
            if isinstance(o, HValue):
                return constToInt(o)
            elif isinstance(o, LlhdArgument):
                return netValues.get(o, None)
            elif isinstance(o, LlhdInstrSignal):
                try:
                    return netValues[o]
                except KeyError:
                    return None if o.init is None else constToInt(o.init)
            else:
                return values[o]

        drives: Dict[LlhdNet, SimValue] = {}
        bb = proc.getEntry()
        steps = 0
        while True:
            steps += 1
            if steps > self.maxActivationSteps:
                raise UnsupportedControlFlow("Process activation does not terminate", proc._name)
            for instr in bb.body:
                if isinstance(instr, LlhdInstrSignal):
                    continue
                elif isinstance(instr, LlhdInstrDrive):
                    drives[instr.target] = valueOf(instr.value)
                elif isinstance(instr, LlhdInstrBranch):
                    c = instr.cond
                    if c is None:
                        bb = instr.targets[0]
                    else:
                        cv = valueOf(c)
                        if cv is None:
                            raise ValueError("Branch on undefined value", proc._name, bb.label, c)
                        bb = instr.targets[0 if cv else 1]
                    break
                elif isinstance(instr, LlhdInstrReturn):
                    return drives
                elif isinstance(instr, LlhdInstrWait):
                    raise UnsupportedControlFlow("Interpretation of wait is not supported", proc._name, bb.label)
                else:
                    values[instr] = self.evalOperator(instr, [valueOf(o) for o in instr.operands])
            else:
                raise AssertionError("Block without terminator", proc._name, bb)

    def _evalEntityDelta(self, entity: LlhdEntity, inputs: Sequence[SimValue], state: LlhdUnitState) -> Dict[LlhdNet, SimValue]:
        values: Dict[LlhdValue, SimValue] = {}
        inputValues = {a: v for a, v in zip(entity.inputs, inputs)}

        def valueOf(o: LlhdOperand) -> SimValue:
            if isinstance(o, HValue):
                return constToInt(o)
            elif isinstance(o, LlhdArgument):
                if o.isOutput:
                    return state.nets[o]
                return inputValues[o]
            elif isinstance(o, LlhdInstrSignal):
                return state.nets[o]
            try:
                return values[o]
            except KeyError:
                pass
            # instructions of entity are not ordered
            v = self.evalOperator(o, [valueOf(_o) for _o in o.operands])
            values[o] = v
            return v

        pending: Dict[LlhdNet, SimValue] = {}
        for instr in entity.body:
            if isinstance(instr, LlhdInstrDrive):
                pending[instr.target] = valueOf(instr.value)
            elif isinstance(instr, LlhdInstrInstance):
                callee = instr.callee
                calleeInputs = [valueOf(i) for i in instr.inputs]
                childState = state.children.get(instr, None)
                if childState is None:
                    childState = state.children[instr] = LlhdUnitState(callee)

                if isinstance(callee, LlhdProcess):
                    netValues: Dict[LlhdValue, SimValue] = dict(childState.nets)
                    for a, v in zip(callee.inputs, calleeInputs):
                        netValues[a] = v
                    for a, bound in zip(callee.outputs, instr.outputs):
                        netValues[a] = state.nets[bound]
                    res = self.runProcessActivation(callee, netValues)
                    for net, v in res.items():
                        if isinstance(net, LlhdArgument):
                            pending[instr.outputs[net.index]] = v
                        else:
                            # internal signal of the process is private for this instance
                            childState.nets[net] = v
                else:
                    assert isinstance(callee, LlhdEntity), callee
                    self.settleEntity(callee, calleeInputs, childState)
                    for bound, v in zip(instr.outputs, childState.getOutputs()):
                        pending[bound] = v
        return pending

    def settleEntity(self, entity: LlhdEntity, inputs: Sequence[SimValue], state: Optional[LlhdUnitState]=None) -> LlhdUnitState:
        """
        Evaluate delta cycles until the values of nets of entity are stable.

        :param inputs: values for input ports of the entity
        :param state: state from previous evaluation (None for a new instance)
        :return: the updated state
        """
        assert len(inputs) == len(entity.inputs), (entity._name, inputs)
        if state is None:
            state = LlhdUnitState(entity)

        for _ in range(self.maxDeltaCycles):
            pending = self._evalEntityDelta(entity, inputs, state)
            changed = False
            for net, v in pending.items():
                if state.nets[net] != v:
                    state.nets[net] = v
                    changed = True
            if not changed:
                return state

        raise AssertionError("Entity does not settle, combinational loop", entity._name, state)
