

class LlhdAnalysisPass():
    """
    A base class for analysis of :class:`hwtLlhd.ir.unit.LlhdProcess`,
    the analysis is executed and cached by :meth:`hwtLlhd.ir.unit.LlhdProcess.getAnalysis`
    """

    def runOnProcess(self, proc: "LlhdProcess"):
        "Perform the analysis on the process"
        log = proc._dbgLogPassExec
        if log is not None:
            log.write(f"Running analysis: {self.__class__.__name__:s} on {proc._name:s}\n")
        self.runOnProcessImpl(proc)

    def runOnProcessImpl(self, proc: "LlhdProcess"):
        raise NotImplementedError("Implement this in implementation of this abstract class")

    def invalidate(self, proc: "LlhdProcess"):
        """
        Remove any modification outside of this class when this analysis is invalidated
        :note: to invalidate pass use LlhdProcess.invalidateAnalysis, this function is callback for mentioned function
        which should be used by the pass to implement additional actions
        """
        log = proc._dbgLogPassExec
        if log is not None:
            log.write(f"Invalidating analysis: {self.__class__.__name__:s} on {proc._name:s}\n")
