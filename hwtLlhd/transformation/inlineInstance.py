from typing import Dict, List, Optional, Set

from hwtLlhd.debugTracer import DebugTracer
from hwtLlhd.errors import UnsupportedControlFlow
from hwtLlhd.ir.instr import LlhdInstr, LlhdInstrInstance, LlhdInstrReturn, LlhdInstrSignal, checkInstanceBinding, \
    LlhdOperand
from hwtLlhd.ir.unit import LlhdEntity, LlhdProcess, LlhdUnit
from hwtLlhd.ir.value import LlhdValue, indexOfValue
from hwtLlhd.transformation.desequentialize import isDesequentialized
from hwtLlhd.transformation.llhdPass import LlhdPass


def _orderByDependencies(instrs: List[LlhdInstr]) -> List[LlhdInstr]:
    """
    Order instructions so each instruction is after the instructions it uses (instructions of entity are unordered).
    """
    members: Set[LlhdInstr] = set(instrs)
    seen: Set[LlhdInstr] = set()
    res: List[LlhdInstr] = []

    def visit(i: LlhdInstr):
        if i in seen:
            return
        seen.add(i)
        for o in i.operands:
            if isinstance(o, LlhdInstr) and o in members:
                visit(o)
        res.append(i)

    for i in instrs:
        visit(i)
    return res


def _copyName(instance: LlhdInstrInstance, name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    prefix = instance._name
    if prefix is None:
        prefix = instance.callee._name
    return f"{prefix:s}.{name:s}"


def inlineInstance(instance: LlhdInstrInstance, dbgTracer: Optional[DebugTracer]=None) -> List[LlhdInstr]:
    """
    Replace the instance in entity with the copy of the body of the instantiated unit.
    Input ports of the callee are replaced with the values bound to instance inputs,
    output ports with the nets bound to instance outputs and signals of callee with new signals
    in the parent entity.

    :return: list of new instructions in parent entity
    :raise TypeMismatch: if ports of callee do not match the instance arguments
    :raise UnsupportedControlFlow: if the callee is a process which is not desequentialized
        or if the callee instantiates the parent entity
    """
    parent = instance.parent
    assert isinstance(parent, LlhdEntity), ("Instance has to be in entity", instance, parent)
    callee: LlhdUnit = instance.callee
    checkInstanceBinding(callee, instance.inputs, instance.outputs)

    if isinstance(callee, LlhdProcess):
        if not isDesequentialized(callee):
            raise UnsupportedControlFlow("Only desequentialized process can be inlined", callee._name, instance._name)
        body = [i for i in callee.blocks[0].body if not isinstance(i, LlhdInstrReturn)]
    else:
        assert isinstance(callee, LlhdEntity), callee
        if callee is parent:
            raise UnsupportedControlFlow("Entity instantiates itself", callee._name)
        body = _orderByDependencies(callee.body)

    if dbgTracer is None:
        dbgTracer = DebugTracer(None)

    with dbgTracer.scoped(inlineInstance, instance):
        valueMap: Dict[LlhdValue, LlhdOperand] = {}
        for port, v in zip(callee.inputs, instance.inputs):
            valueMap[port] = v
        for port, v in zip(callee.outputs, instance.outputs):
            valueMap[port] = v

        def mapOperand(o: LlhdOperand):
            if isinstance(o, LlhdValue):
                return valueMap.get(o, o)
            return o

        # signals may be read before its declaration, the copies have to exist before any reader is copied
        newInstrs: List[LlhdInstr] = []
        for i in body:
            if isinstance(i, LlhdInstrSignal):
                newI = i.cloneWithOperands((), _copyName(instance, i._name))
                valueMap[i] = newI
                newInstrs.append(newI)

        for i in body:
            if isinstance(i, LlhdInstrSignal):
                continue
            newI = i.cloneWithOperands([mapOperand(o) for o in i.operands], _copyName(instance, i._name))
            valueMap[i] = newI
            newInstrs.append(newI)

        # commit
        index = indexOfValue(parent.body, instance)
        instance.dropAllReferences()
        parent.removeInstr(instance)
        for offset, newI in enumerate(newInstrs):
            parent.insertInstr(index + offset, newI)
        dbgTracer.log(("inlined", callee._name, "instructions:", len(newInstrs)))

    return newInstrs


class LlhdPassInlineInstances(LlhdPass):
    """
    Inline all instances of desequentialized processes in all entities of the module.

    :ivar inlineEntities: if True also the instances of entities are inlined
    :ivar skipped: instances which were not inlined because the callee is not desequentialized
    """

    def __init__(self, dbgTracer: Optional[DebugTracer]=None, inlineEntities: bool=False):
        self.dbgTracer = dbgTracer if dbgTracer is not None else DebugTracer(None)
        self.inlineEntities = inlineEntities
        self.skipped: List[LlhdInstrInstance] = []

    def _shouldInline(self, i: LlhdInstrInstance) -> bool:
        c = i.callee
        if isinstance(c, LlhdProcess):
            if isDesequentialized(c):
                return True
            if not any(i is s for s in self.skipped):
                self.dbgTracer.log(("skipping instance of not desequentialized process", i._name, c._name))
                self.skipped.append(i)
            return False
        else:
            return self.inlineEntities

    def runOnModuleImpl(self, module: "LlhdModule"):
        for e in tuple(module.iterEntities()):
            # copies of the instantiated entity may contain another instances
            while True:
                instances = [i for i in e.body if isinstance(i, LlhdInstrInstance) and self._shouldInline(i)]
                if not instances:
                    break
                for i in instances:
                    inlineInstance(i, self.dbgTracer)
