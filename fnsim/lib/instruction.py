class Instruction:
    """A single disassembled instruction: a mnemonic and its operands.

    Instances are immutable. The operands keep the order in which they were
    given since the order is part of the instruction's meaning.
    """

    __slots__ = ("_mnemonic", "_operands")

    def __init__(self, mnemonic: str, operands=()):
        object.__setattr__(self, "_mnemonic", mnemonic)
        object.__setattr__(self, "_operands", tuple(operands))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def mnemonic(self) -> str:
        return self._mnemonic

    @property
    def operands(self) -> tuple[str, ...]:
        return self._operands

    def as_string(self) -> str:
        """Renders the instruction as `mnemonic op1, op2, ...`."""
        if not self._operands:
            return self._mnemonic
        return f"{self._mnemonic} {', '.join(self._operands)}"

    def to_json(self) -> dict:
        return {"mnemonic": self._mnemonic, "operands": list(self._operands)}

    def __eq__(self, other):
        if not isinstance(other, Instruction):
            return NotImplemented
        return self._mnemonic == other._mnemonic and self._operands == other._operands

    def __hash__(self):
        return hash((self._mnemonic, self._operands))

    def __reduce__(self):
        return (Instruction, (self._mnemonic, self._operands))

    def __repr__(self):
        return f"Instruction({self._mnemonic!r}, {list(self._operands)!r})"

    def __str__(self):
        return self.as_string()
