"""
Passes which are modifying the IR.

* :mod:`hwtLlhd.transformation.desequentialize` - conversion of a level-sensitive process to a single block of drives
* :mod:`hwtLlhd.transformation.inlineInstance` - replacement of the instance of the process/entity by its body
"""
