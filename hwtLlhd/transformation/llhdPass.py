

class LlhdPass():
    """
    A base class for passes which are working on a whole :class:`hwtLlhd.ir.module.LlhdModule`
    """

    def runOnModule(self, module: "LlhdModule"):
        log = module._dbgLogPassExec
        if log is not None:
            log.write(f"Running pass: {self.__class__.__name__:s} on {module.name:s}\n")
        self.runOnModuleImpl(module)

    def runOnModuleImpl(self, module: "LlhdModule"):
        raise NotImplementedError("Should be implemented in child class", self)
