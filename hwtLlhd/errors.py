

class LlhdPassError(Exception):
    """
    Base class of errors reported by the construction of the IR and by the passes.
    The pass which raises this error leaves the IR unmodified.
    """
    pass


class TypeMismatch(LlhdPassError):
    """
    Exception raised when type or arity of operands/ports does not match
    """
    pass


class UnsupportedControlFlow(LlhdPassError):
    """
    Exception raised when the process control flow can not be converted to a structural form
    (loops, wait instructions)
    """
    pass


class UndrivenSignal(LlhdPassError):
    """
    Exception raised when it is not possible to resolve the value of signal on every control flow path
    and the latch is not allowed for it
    """
    pass


class DanglingReference(LlhdPassError):
    """
    Exception raised when some value is used outside of the scope where it is defined
    """
    pass
