import copy

import pytest

from fnsim.lib.instruction import Instruction


@pytest.mark.parametrize("mnemonic, operands, expected", [
    ("ret", [], "ret"),
    ("push", ["rbp"], "push rbp"),
    ("mov", ["eax", "ebx"], "mov eax, ebx"),
    ("lea", ["r8", "[rbx + r9 * 2 + 10]"], "lea r8, [rbx + r9 * 2 + 10]"),
])
def test_as_string(mnemonic, operands, expected):
    instruction = Instruction(mnemonic, operands)
    assert instruction.as_string() == expected
    assert str(instruction) == expected


def test_operands_keep_order():
    instruction = Instruction("sub", ["rsp", "8"])
    assert instruction.mnemonic == "sub"
    assert instruction.operands == ("rsp", "8")
    assert instruction != Instruction("sub", ["8", "rsp"])


def test_immutable():
    operands = ["eax", "ebx"]
    instruction = Instruction("mov", operands)
    operands.append("ecx")
    assert instruction.operands == ("eax", "ebx")
    with pytest.raises(AttributeError):
        instruction.mnemonic = "add"
    with pytest.raises(AttributeError):
        instruction._operands = ()


def test_equality_and_copy():
    instruction = Instruction("xor", ["eax", "eax"])
    assert instruction == Instruction("xor", ("eax", "eax"))
    assert hash(instruction) == hash(Instruction("xor", ["eax", "eax"]))
    assert copy.deepcopy(instruction) == instruction
    assert instruction.to_json() == {"mnemonic": "xor", "operands": ["eax", "eax"]}
