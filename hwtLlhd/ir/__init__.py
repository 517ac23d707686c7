"""
This module contains the classes of LLHD-like IR.

* The :class:`~hwtLlhd.ir.module.LlhdModule` owns units, unit owns its ports and basic blocks or instructions,
  basic block owns its instructions.
* Every object is constructed without parent and it is attached to the parent by its `appendTo` method.
  The object can be attached only once.
* Instructions keep the list of its users, the operands are :class:`~hwtLlhd.ir.value.LlhdValue`
  or :class:`hwt.hdl.value.HValue` constants.
* Integer types are :class:`hwt.hdl.types.bits.Bits`, the type of unit is :class:`~hwtLlhd.ir.types.LlhdCompType`.
"""
