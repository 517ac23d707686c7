"""
Conversions of the IR to a text for debugging and testing.

* :mod:`hwtLlhd.translation.toAsm` - LLHD assembly like text
* :mod:`hwtLlhd.translation.toGraphviz` - control flow graph of processes in Graphviz dot format
"""
