from types import FunctionType
from typing import List, Optional, TextIO, Union

from hwtLlhd.ir.instr import LlhdInstrInstance
from hwtLlhd.ir.value import LlhdValue


class DebugTracer():
    """
    Text trace of the decisions of the transformation passes.

    The trace is organized in scopes, each scope is labeled by the pass function and the unit or instruction
    it works on. The label is written only if something is logged in the scope (or in a nested scope),
    the processes which were not modified do not clutter the trace.

    :ivar _out: output stream, if None nothing is traced
    :ivar _pendingLabels: labels of open scopes, None if the label was already written
    """
    INDENT = "  "

    def __init__(self, out: Optional[TextIO]):
        self._out = out
        self._pendingLabels: List[Optional[str]] = []

    @staticmethod
    def scopeLabel(nameOrFn: Union[str, FunctionType, type], obj: Optional[LlhdValue]) -> str:
        """
        :return: "<pass> <value>" where the value is an unit or an instruction,
            unnamed instances are labeled by the instantiated unit
        """
        if isinstance(nameOrFn, str):
            label = nameOrFn
        else:
            label = nameOrFn.__qualname__

        if obj is None:
            return label
        elif obj._name is not None:
            return f"{label:s} {obj._name:s}"
        elif isinstance(obj, LlhdInstrInstance):
            return f"{label:s} inst @{obj.callee._name:s}"
        else:
            return f"{label:s} <{obj.__class__.__name__:s}>"

    def scoped(self, nameOrFn: Union[str, FunctionType, type], obj: Optional[LlhdValue]):
        """
        Open a scope for "with" statement, messages logged in the scope are indented under its label.
        """
        self._pendingLabels.append(self.scopeLabel(nameOrFn, obj))
        return self

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.log(("raised", exc_type.__name__, exc_val))
        self._pendingLabels.pop()

    def _writePendingLabels(self):
        out = self._out
        for depth, label in enumerate(self._pendingLabels):
            if label is None:
                continue
            out.write(self.INDENT * depth)
            out.write(label)
            out.write(":\n")
            self._pendingLabels[depth] = None

    def log(self, msg):
        """
        :param msg: string or object which is written as its repr
        """
        out = self._out
        if out is None:
            return

        if not isinstance(msg, str):
            msg = repr(msg)
        self._writePendingLabels()
        out.write(self.INDENT * len(self._pendingLabels))
        out.write(msg)
        out.write("\n")

    def close(self):
        if self._out is not None:
            self._out.close()
